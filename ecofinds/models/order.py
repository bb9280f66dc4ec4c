# ecofinds/models/order.py
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from ecofinds.database import Base

ORDER_STATUSES = ("processing", "shipped", "delivered", "cancelled")
PAYMENT_METHODS = ("card", "paypal", "bank_transfer", "cash")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, nullable=False, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="processing", index=True)
    payment_method = Column(String, nullable=False)
    total_amount = Column(Float, nullable=False)
    tracking_number = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    # Shipping address details
    shipping_name = Column(String, nullable=True)
    shipping_street = Column(String, nullable=True)
    shipping_city = Column(String, nullable=True)
    shipping_zip = Column(String, nullable=True)
    shipping_country = Column(String, nullable=True)
    shipping_phone = Column(String, nullable=True)

    buyer = relationship("User")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


# Snapshot of a purchased listing; survives later edits or deletion of the product
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    unit_price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
    seller = relationship("User")
