from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal
from datetime import datetime

PaymentMethod = Literal["card", "paypal", "bank_transfer", "cash"]
OrderStatus = Literal["processing", "shipped", "delivered", "cancelled"]


class ShippingAddress(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    street: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    zip_code: str = Field(min_length=3, max_length=10)
    country: Optional[str] = None
    phone: Optional[str] = None


# Input schema for placing an order from the cart
class OrderCreatePayload(BaseModel):
    payment_method: PaymentMethod
    shipping_address: ShippingAddress
    notes: Optional[str] = Field(None, max_length=500)


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    product_id: Optional[int] = None
    seller_id: int
    title: str
    category: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    order_number: str
    buyer_id: int
    status: str
    payment_method: str
    total_amount: float
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    shipping_address: ShippingAddress
    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


# Schema for seller status updates
class OrderStatusPatch(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None


class OrderCancel(BaseModel):
    reason: Optional[str] = None


# Seller-side totals over a time window
class SellerAnalytics(BaseModel):
    start_date: datetime
    end_date: Optional[datetime] = None
    total_orders: int
    total_items: int
    total_revenue: float
    average_order_value: float
    status_breakdown: Dict[str, int]
