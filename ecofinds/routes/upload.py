# ecofinds/routes/upload.py
import asyncio
import base64
import logging
import time
from typing import List, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from ecofinds.config import settings
from ecofinds.database import get_db
from ecofinds.models.users import User
from ecofinds.schemas import upload as upload_schemas
from ecofinds.utils.audit import write_log, client_ip
from ecofinds.utils.media_client import (
    AVATAR_PRESET, LISTING_IMAGE_PRESET, CloudinaryClient, get_media_client,
)
from ecofinds.utils.tokenJWT import get_current_user

router = APIRouter(prefix="/upload", tags=["Upload"])
logger = logging.getLogger(__name__)


def _max_bytes() -> int:
    return settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


async def _read_validated(file: Optional[UploadFile], *, image_only: bool, missing: str) -> bytes:
    """Read the upload into memory, enforcing size and MIME type before any media host call."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail=missing)
    try:
        data = await file.read()
    finally:
        await file.close()

    if len(data) > _max_bytes():
        raise HTTPException(status_code=400, detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB.")
    if image_only and not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")
    return data


def _data_uri(data: bytes, content_type: Optional[str]) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type or 'application/octet-stream'};base64,{encoded}"


def _uploaded_image(result: dict) -> upload_schemas.UploadedImage:
    return upload_schemas.UploadedImage(
        url=result.get("secure_url") or result.get("url"),
        public_id=result["public_id"],
        width=result.get("width"),
        height=result.get("height"),
        format=result.get("format"),
        size=result.get("bytes"),
    )


def _upstream_error(operation: str, e: Exception) -> HTTPException:
    logger.exception("%s error: %s", operation, e)
    return HTTPException(status_code=500, detail=f"{operation} error: {e}")


# Upload a single listing image
@router.post("/image", response_model=upload_schemas.UploadedImage)
async def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    folder: str = Form("ecofinds"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    data = await _read_validated(image, image_only=True, missing="No image file provided")

    try:
        result = await media.upload(
            _data_uri(data, image.content_type),
            folder=f"{folder}/{current_user.id}",
            transformation=LISTING_IMAGE_PRESET,
        )
        out = _uploaded_image(result)
    except Exception as e:
        raise _upstream_error("Image upload", e)

    write_log(db, user_id=current_user.id, action="UPLOAD_IMAGE", resource="upload", status="SUCCESS",
              ip=client_ip(request), meta={"public_id": out.public_id, "size": out.size})
    return out


# Upload up to MAX_UPLOAD_FILES listing images at once
@router.post("/images", response_model=upload_schemas.UploadedImages)
async def upload_images(
    request: Request,
    images: Optional[List[UploadFile]] = File(None),
    folder: str = Form("ecofinds"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    if not images:
        raise HTTPException(status_code=400, detail="No image files provided")
    if len(images) > settings.MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"Too many files. Maximum is {settings.MAX_UPLOAD_FILES} files.")

    # Validate every file before the first upload starts
    payloads = []
    for f in images:
        data = await _read_validated(f, image_only=True, missing="No image files provided")
        payloads.append(_data_uri(data, f.content_type))

    try:
        results = await asyncio.gather(*[
            media.upload(uri, folder=f"{folder}/{current_user.id}", transformation=LISTING_IMAGE_PRESET)
            for uri in payloads
        ])
        uploaded = [_uploaded_image(r) for r in results]
    except Exception as e:
        raise _upstream_error("Images upload", e)

    write_log(db, user_id=current_user.id, action="UPLOAD_IMAGES", resource="upload", status="SUCCESS",
              ip=client_ip(request), meta={"public_ids": [u.public_id for u in uploaded]})
    return {"images": uploaded}


# Delete a hosted asset
@router.delete("/image/{public_id:path}")
async def delete_image(
    public_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    decoded = unquote(public_id)
    # Uploads always live under a folder named after their owner
    if str(current_user.id) not in decoded.split("/")[:-1]:
        write_log(db, user_id=current_user.id, action="DELETE_IMAGE", resource="upload", status="FAIL",
                  ip=client_ip(request), meta={"public_id": decoded, "reason": "not owner"})
        raise HTTPException(status_code=403, detail="Not authorized to delete this image")

    try:
        result = await media.destroy(decoded)
    except Exception as e:
        raise _upstream_error("Delete image", e)

    outcome = result.get("result")
    if outcome != "ok":
        write_log(db, user_id=current_user.id, action="DELETE_IMAGE", resource="upload", status="FAIL",
                  ip=client_ip(request), meta={"public_id": decoded, "result": outcome})
        raise HTTPException(status_code=400, detail=f"Failed to delete image: {outcome}")

    write_log(db, user_id=current_user.id, action="DELETE_IMAGE", resource="upload", status="SUCCESS",
              ip=client_ip(request), meta={"public_id": decoded})
    return {"detail": "Image deleted successfully"}


# Upload (or overwrite) the caller's avatar
@router.post("/avatar", response_model=upload_schemas.UploadedAvatar)
async def upload_avatar(
    request: Request,
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    data = await _read_validated(avatar, image_only=True, missing="No avatar file provided")

    try:
        # Deterministic id so a new avatar replaces the previous one
        result = await media.upload(
            _data_uri(data, avatar.content_type),
            folder=f"ecofinds/avatars/{current_user.id}",
            transformation=AVATAR_PRESET,
            public_id=f"avatar_{current_user.id}",
            overwrite=True,
        )
        out = upload_schemas.UploadedAvatar(
            url=result.get("secure_url") or result.get("url"),
            public_id=result["public_id"],
        )
    except Exception as e:
        raise _upstream_error("Avatar upload", e)

    current_user.avatar_url = out.url
    db.commit()

    write_log(db, user_id=current_user.id, action="UPLOAD_AVATAR", resource="upload", status="SUCCESS",
              ip=client_ip(request), meta={"public_id": out.public_id})
    return out


# Upload a verification document of any type
@router.post("/document", response_model=upload_schemas.UploadedDocument)
async def upload_document(
    request: Request,
    document: Optional[UploadFile] = File(None),
    document_type: str = Form("general"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    data = await _read_validated(document, image_only=False, missing="No document file provided")

    try:
        result = await media.upload(
            _data_uri(data, document.content_type),
            folder=f"ecofinds/documents/{current_user.id}",
            resource_type="auto",
            public_id=f"{document_type}_{int(time.time() * 1000)}",
        )
        out = upload_schemas.UploadedDocument(
            url=result.get("secure_url") or result.get("url"),
            public_id=result["public_id"],
            format=result.get("format"),
            size=result.get("bytes"),
            document_type=document_type,
        )
    except Exception as e:
        raise _upstream_error("Document upload", e)

    write_log(db, user_id=current_user.id, action="UPLOAD_DOCUMENT", resource="upload", status="SUCCESS",
              ip=client_ip(request), meta={"public_id": out.public_id, "document_type": document_type})
    return out


# Signed parameters for direct browser-to-host uploads
@router.post("/signature", response_model=upload_schemas.SignatureResponse)
def upload_signature(
    payload: Optional[upload_schemas.SignatureRequest] = None,
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    payload = payload or upload_schemas.SignatureRequest()
    params = {"timestamp": int(time.time()), "folder": f"{payload.folder}/{current_user.id}"}
    if payload.public_id:
        params["public_id"] = payload.public_id

    try:
        signature, timestamp = media.sign(params)
    except Exception as e:
        raise _upstream_error("Generate signature", e)

    return {
        "signature": signature,
        "timestamp": timestamp,
        "cloud_name": media.cloud_name,
        "api_key": media.api_key,
        "folder": params["folder"],
    }


# Assets stored under the caller's namespace, newest first
@router.get("/my-files", response_model=upload_schemas.HostedFiles)
async def list_my_files(
    folder: str = Query("ecofinds"),
    max_results: int = Query(20, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    media: CloudinaryClient = Depends(get_media_client),
):
    try:
        result = await media.search(
            f"folder:{folder}/{current_user.id}/*",
            sort_by=[{"created_at": "desc"}],
            max_results=max_results,
        )
    except Exception as e:
        raise _upstream_error("Get files", e)

    files = [
        upload_schemas.HostedFile(
            public_id=r["public_id"],
            url=r.get("secure_url"),
            format=r.get("format"),
            width=r.get("width"),
            height=r.get("height"),
            size=r.get("bytes"),
            created_at=r.get("created_at"),
            folder=r.get("folder"),
        )
        for r in result.get("resources", [])
    ]
    return {"files": files, "total_count": result.get("total_count", len(files))}


# Delivery URL for an existing asset with automatic quality and format
@router.post("/optimize-url", response_model=upload_schemas.OptimizeUrlResponse)
def optimize_url(
    payload: upload_schemas.OptimizeUrlRequest,
    media: CloudinaryClient = Depends(get_media_client),
):
    if not payload.public_id:
        raise HTTPException(status_code=400, detail="Public ID is required")

    transformation = {**payload.transformations, "quality": "auto", "fetch_format": "auto"}
    return {"optimized_url": media.url(payload.public_id, transformation)}
