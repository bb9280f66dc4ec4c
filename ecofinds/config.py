# ecofinds/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 10
    DATABASE_URL: str = "sqlite:///./ecofinds.db"

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Media host (Cloudinary) credentials
    CLOUDINARY_CLOUD_NAME: str = "demo"
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_API_URL: str = "https://api.cloudinary.com/v1_1"
    CLOUDINARY_DELIVERY_URL: str = "https://res.cloudinary.com"

    # Upload and listing limits
    MAX_UPLOAD_SIZE_MB: int = 10
    MAX_UPLOAD_FILES: int = 10
    MAX_LISTING_PRICE: float = 10000

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
