# ecofinds/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Float, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ecofinds.database import Base

# Represents the user's shopping cart (one per user)
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )
    saved = relationship(
        "SavedItem", back_populates="cart", cascade="all, delete-orphan", order_by="SavedItem.id"
    )


# Represents a single product + quantity within a cart
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_snapshot = Column(Float, nullable=False) # Price at the moment of addition
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        # A product appears at most once per cart
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )


# A product parked out of the cart ("save for later")
class SavedItem(Base):
    __tablename__ = "saved_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    saved_at = Column(DateTime(timezone=True), server_default=func.now())

    cart = relationship("Cart", back_populates="saved")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_saveditem_cart_product"),
    )
