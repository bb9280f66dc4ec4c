# ecofinds/models/product.py
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, ForeignKey, DateTime, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from ecofinds.database import Base

# Fixed category set offered by the listing form
CATEGORIES = {
    "furniture": "Furniture",
    "clothing": "Clothing & Accessories",
    "electronics": "Electronics",
    "books": "Books & Media",
    "sports": "Sports & Recreation",
    "toys": "Toys & Games",
    "kitchen": "Kitchen & Dining",
    "garden": "Home & Garden",
    "art": "Art & Collectibles",
    "automotive": "Automotive",
    "beauty": "Health & Beauty",
    "other": "Other",
}

CONDITIONS = ("excellent", "good", "fair", "poor")
STATUSES = ("active", "inactive", "sold")


# A seller's listing of a second-hand item
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(100), nullable=False, index=True)
    description = Column(String(2000), nullable=False)
    category = Column(String, nullable=False, index=True)
    condition = Column(String, nullable=False)
    price = Column(Float, CheckConstraint("price > 0"), nullable=False)
    status = Column(String, nullable=False, default="active", index=True)

    # Delivery options, at least one must be enabled
    local_pickup = Column(Boolean, nullable=False, default=False)
    shipping_available = Column(Boolean, nullable=False, default=False)
    accept_offers = Column(Boolean, nullable=False, default=False)

    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=1)
    views = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    seller = relationship("User", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.position",
    )

    @property
    def image_url(self):
        # First image is the primary one
        return self.images[0].url if self.images else None


# Hosted image attached to a listing; position 0 is the primary image
class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    url = Column(String, nullable=False)
    public_id = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="images")
