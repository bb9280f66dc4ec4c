# ecofinds/schemas/product.py
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal

from ecofinds.config import settings
from ecofinds.models.product import CATEGORIES

Condition = Literal["excellent", "good", "fair", "poor"]
Status = Literal["active", "inactive", "sold"]


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ImageIn(BaseModel):
    url: str
    public_id: Optional[str] = None


class ImageOut(ORMBase):
    url: str
    public_id: Optional[str] = None
    position: int = 0


def _check_category(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in CATEGORIES:
        raise ValueError("Please provide a valid category")
    return value


def _check_price(value: Optional[float]) -> Optional[float]:
    if value is not None and value > settings.MAX_LISTING_PRICE:
        raise ValueError(f"Price cannot exceed {settings.MAX_LISTING_PRICE:,.0f}")
    return value


# Schema for creating a new listing
class ProductCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    category: str
    condition: Condition
    price: float = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    status: Status = "active"
    local_pickup: bool = False
    shipping_available: bool = False
    accept_offers: bool = False
    images: List[ImageIn] = Field(default_factory=list)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("category")
    @classmethod
    def known_category(cls, v):
        return _check_category(v)

    @field_validator("price")
    @classmethod
    def price_cap(cls, v):
        return _check_price(v)

    @model_validator(mode="after")
    def delivery_required(self):
        if not (self.local_pickup or self.shipping_available):
            raise ValueError("Please select at least one delivery option")
        return self


# Schema for partial listing updates (PUT) - all fields optional
class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    category: Optional[str] = None
    condition: Optional[Condition] = None
    price: Optional[float] = Field(None, gt=0)
    quantity: Optional[int] = Field(None, ge=0)
    status: Optional[Status] = None
    local_pickup: Optional[bool] = None
    shipping_available: Optional[bool] = None
    accept_offers: Optional[bool] = None
    images: Optional[List[ImageIn]] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("category")
    @classmethod
    def known_category(cls, v):
        return _check_category(v)

    @field_validator("price")
    @classmethod
    def price_cap(cls, v):
        return _check_price(v)


class StatusUpdate(BaseModel):
    status: Status


class BulkAction(BaseModel):
    ids: List[int] = Field(min_length=1)
    action: Literal["delete", "activate", "deactivate", "mark-sold"]


class BulkResult(BaseModel):
    action: str
    affected: int
    ids: List[int]


class SellerSummary(ORMBase):
    id: int
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None


# Full listing representation
class ProductOut(ORMBase):
    id: int
    seller_id: int
    title: str
    description: str
    category: str
    condition: str
    price: float
    status: str
    local_pickup: bool
    shipping_available: bool
    accept_offers: bool
    quantity: int
    views: int
    image_url: Optional[str] = None
    images: List[ImageOut] = []
    seller: Optional[SellerSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for catalog queries
class ProductListPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool


class CategoryOut(BaseModel):
    value: str
    label: str
