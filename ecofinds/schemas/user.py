import re
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional

# Password must mix upper-case, lower-case and digits
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _check_password(value: str) -> str:
    if len(value) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not PASSWORD_PATTERN.match(value):
        raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
    return value


def _check_website(value: Optional[str]) -> Optional[str]:
    if value and not re.match(r"^https?://.+", value):
        raise ValueError("Please provide a valid website URL")
    return value


# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1)

# Schema for user registration requests
class UserCreate(UserBase):
    password: str
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    phone: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def password_strength(cls, v):
        return _check_password(v)

# Output schema for the owner's profile
class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None

# Profile visible to other users (no contact details)
class PublicProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None
    active_listings: int = 0

# Partial profile update
class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def names_not_null(cls, v, info):
        # Names may be omitted but not nulled
        if v is None:
            raise ValueError(f"{info.field_name.replace('_', ' ').capitalize()} cannot be empty")
        return v.strip() if isinstance(v, str) else v

    @field_validator("website")
    @classmethod
    def website_url(cls, v):
        return _check_website(v)

# Schema for JWT authentication response
class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def password_strength(cls, v):
        return _check_password(v)

class MessageResponse(BaseModel):
    detail: str
