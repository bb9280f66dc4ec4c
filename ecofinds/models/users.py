# ecofinds/models/users.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from ecofinds.database import Base

# Represents a marketplace account; sellers and buyers share the same table
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)

    # Public profile
    avatar_url = Column(String, nullable=True)
    bio = Column(String(500), nullable=True)
    location = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)

    # Account flags
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Password reset (only the SHA-256 of the token is stored)
    reset_token_hash = Column(String, nullable=True, index=True)
    reset_token_expires_at = Column(DateTime, nullable=True)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship("Product", back_populates="seller")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"
