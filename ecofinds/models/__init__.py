from ecofinds.models.users import User
from ecofinds.models.product import Product, ProductImage
from ecofinds.models.cart import Cart, CartItem, SavedItem
from ecofinds.models.order import Order, OrderItem
from ecofinds.models.log import Log

__all__ = ["User", "Product", "ProductImage", "Cart", "CartItem", "SavedItem", "Order", "OrderItem", "Log"]
