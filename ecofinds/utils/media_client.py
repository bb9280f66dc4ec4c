# ecofinds/utils/media_client.py
import hashlib
import logging
import time
from typing import Dict, List, Optional, Tuple, Union

import httpx

from ecofinds.config import settings

logger = logging.getLogger(__name__)

# Short names used by the media host for transformation parameters
TRANSFORMATION_KEYS = {
    "width": "w",
    "height": "h",
    "crop": "c",
    "gravity": "g",
    "quality": "q",
    "fetch_format": "f",
    "radius": "r",
    "effect": "e",
    "angle": "a",
    "background": "b",
    "dpr": "dpr",
    "aspect_ratio": "ar",
}

# Listing photos are bounded to 800x800
LISTING_IMAGE_PRESET = [
    {"width": 800, "height": 800, "crop": "limit"},
    {"quality": "auto"},
    {"fetch_format": "auto"},
]

# Avatars are face-cropped squares
AVATAR_PRESET = [
    {"width": 300, "height": 300, "crop": "fill", "gravity": "face"},
    {"quality": "auto"},
    {"fetch_format": "auto"},
]

Transformation = Union[Dict[str, object], List[Dict[str, object]]]


class MediaHostError(Exception):
    """Raised when the media host rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _stringify(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


def transformation_component(params: Dict[str, object]) -> str:
    parts = []
    for key, value in params.items():
        if value is None or value == "":
            continue
        short = TRANSFORMATION_KEYS.get(key, key)
        parts.append(f"{short}_{_stringify(value)}")
    return ",".join(sorted(parts))


def transformation_string(transformation: Optional[Transformation]) -> str:
    """Serialize a transformation dict (or a chain of them) to the URL form,
    e.g. ``c_limit,h_800,w_800/q_auto/f_auto``."""
    if not transformation:
        return ""
    if isinstance(transformation, dict):
        transformation = [transformation]
    components = [transformation_component(t) for t in transformation]
    return "/".join(c for c in components if c)


def api_sign_request(params: Dict[str, object], api_secret: str) -> str:
    # Sorted k=v pairs joined with '&', secret appended, SHA-1 hex digest
    to_sign = "&".join(
        f"{k}={_stringify(v)}" for k, v in sorted(params.items()) if v is not None and v != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryClient:
    def __init__(self):
        # Initialize configuration from settings
        self.cloud_name = settings.CLOUDINARY_CLOUD_NAME
        self.api_key = settings.CLOUDINARY_API_KEY
        self.api_secret = settings.CLOUDINARY_API_SECRET
        self.api_url = settings.CLOUDINARY_API_URL.rstrip("/")
        self.delivery_url = settings.CLOUDINARY_DELIVERY_URL.rstrip("/")

    def _endpoint(self, *parts: str) -> str:
        return "/".join([self.api_url, self.cloud_name, *parts])

    def sign(self, params: Dict[str, object]) -> Tuple[str, int]:
        """Return ``(signature, timestamp)`` for a set of upload parameters."""
        timestamp = params.get("timestamp") or int(time.time())
        to_sign = {**params, "timestamp": timestamp}
        return api_sign_request(to_sign, self.api_secret), timestamp

    def _signed_form(self, params: Dict[str, object]) -> Dict[str, str]:
        clean = {k: v for k, v in params.items() if v is not None and v != ""}
        signature, timestamp = self.sign(clean)
        form = {k: _stringify(v) for k, v in clean.items()}
        form.update({"timestamp": str(timestamp), "signature": signature, "api_key": self.api_key})
        return form

    async def _post(self, url: str, **kwargs) -> dict:
        async with httpx.AsyncClient(timeout=60) as client:
            try:
                response = await client.post(url, **kwargs)
            except httpx.RequestError as e:
                logger.error(f"Media host request error: {e}")
                raise MediaHostError(str(e)) from e

        if response.status_code >= 400:
            # Media host reports errors as {"error": {"message": "..."}}
            try:
                message = response.json().get("error", {}).get("message") or response.text
            except ValueError:
                message = response.text
            logger.error(f"Media host error {response.status_code}: {message}")
            raise MediaHostError(message, status_code=response.status_code)
        return response.json()

    async def upload(
        self,
        data_uri: str,
        *,
        folder: str,
        transformation: Optional[Transformation] = None,
        public_id: Optional[str] = None,
        overwrite: Optional[bool] = None,
        resource_type: str = "image",
    ) -> dict:
        params = {
            "folder": folder,
            "transformation": transformation_string(transformation),
            "public_id": public_id,
            "overwrite": overwrite,
        }
        form = self._signed_form(params)
        form["file"] = data_uri
        return await self._post(self._endpoint(resource_type, "upload"), data=form)

    async def destroy(self, public_id: str, resource_type: str = "image") -> dict:
        form = self._signed_form({"public_id": public_id})
        return await self._post(self._endpoint(resource_type, "destroy"), data=form)

    async def search(
        self,
        expression: str,
        *,
        sort_by: Optional[List[Dict[str, str]]] = None,
        max_results: int = 20,
    ) -> dict:
        payload = {
            "expression": expression,
            "sort_by": sort_by or [{"created_at": "desc"}],
            "max_results": max_results,
        }
        return await self._post(
            self._endpoint("resources", "search"),
            json=payload,
            auth=(self.api_key, self.api_secret),
        )

    def url(
        self,
        public_id: str,
        transformation: Optional[Transformation] = None,
        resource_type: str = "image",
        delivery_type: str = "upload",
    ) -> str:
        parts = [self.delivery_url, self.cloud_name, resource_type, delivery_type]
        t = transformation_string(transformation)
        if t:
            parts.append(t)
        parts.append(public_id)
        return "/".join(parts)


media_client = CloudinaryClient()

def get_media_client() -> CloudinaryClient:
    return media_client
