from pydantic import BaseModel, Field
from typing import List, Optional

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)

# Request schema for setting a cart line quantity (0 removes the line)
class CartUpdateItem(BaseModel):
    product_id: int
    quantity: int = Field(ge=0)

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    title: str
    image_url: Optional[str] = None
    seller_id: Optional[int] = None
    quantity: int
    unit_price: float
    line_total: float
    available_quantity: int

# A product parked out of the cart, priced at its current listing price
class SavedItemOut(BaseModel):
    id: int
    product_id: int
    title: str
    image_url: Optional[str] = None
    seller_id: Optional[int] = None
    quantity: int
    price: float
    available: bool

# Response schema for the entire cart
class CartOut(BaseModel):
    items: List[CartItemOut]
    total_items: int
    subtotal: float
    saved_for_later: List[SavedItemOut] = []

class CartCount(BaseModel):
    count: int

class CartSummary(BaseModel):
    item_count: int
    subtotal: float
    total: float
