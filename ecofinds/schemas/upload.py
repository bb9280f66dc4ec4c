from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


# Hosted image returned by the upload relay
class UploadedImage(BaseModel):
    url: str
    public_id: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    size: Optional[int] = None


class UploadedImages(BaseModel):
    images: List[UploadedImage]


class UploadedAvatar(BaseModel):
    url: str
    public_id: str


class UploadedDocument(BaseModel):
    url: str
    public_id: str
    format: Optional[str] = None
    size: Optional[int] = None
    document_type: str


class SignatureRequest(BaseModel):
    folder: str = "ecofinds"
    public_id: Optional[str] = None


class SignatureResponse(BaseModel):
    signature: str
    timestamp: int
    cloud_name: str
    api_key: str
    folder: str


class HostedFile(BaseModel):
    public_id: str
    url: Optional[str] = None
    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None
    created_at: Optional[datetime] = None
    folder: Optional[str] = None


class HostedFiles(BaseModel):
    files: List[HostedFile]
    total_count: int


class OptimizeUrlRequest(BaseModel):
    public_id: Optional[str] = None
    transformations: Dict[str, Any] = Field(default_factory=dict)


class OptimizeUrlResponse(BaseModel):
    optimized_url: str
