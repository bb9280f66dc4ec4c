# ecofinds/client/api.py
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import quote

import httpx

from ecofinds.client.exceptions import ApiError
from ecofinds.client.session import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0

# A local path, or an already loaded (filename, content, content_type) triple
FileInput = Union[str, Path, Tuple[str, bytes, str]]


def _clean(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if v is not None}


def _file_part(file: FileInput) -> Tuple[str, bytes, str]:
    if isinstance(file, (str, Path)):
        path = Path(file)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return path.name, path.read_bytes(), content_type
    return file


class ApiClient:
    """
    Thin wrapper over httpx.Client:
    - attaches the stored bearer token to every request
    - drops the stored credential on any 401
    - turns non-2xx answers into ApiError
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        store: Optional[SessionStore] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = (base_url or os.getenv("ECOFINDS_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.store = store if store is not None else SessionStore()
        self._http = http or httpx.Client(base_url=self.base_url, timeout=timeout)

        self.auth = AuthAPI(self)
        self.users = UsersAPI(self)
        self.products = ProductsAPI(self)
        self.cart = CartAPI(self)
        self.orders = OrdersAPI(self)
        self.uploads = UploadsAPI(self)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def request(self, method: str, path: str, **kwargs) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        token = self.store.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"EcoFinds API request error: {method} {path}: {e}")
            raise ApiError(0, str(e)) from e

        if response.status_code == 401:
            self.store.clear_auth()
        if response.status_code >= 400:
            raise ApiError.from_response(response)

        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return response.content

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=_clean(params))

    def post(self, path: str, json: Any = None, **kwargs) -> Any:
        if json is not None:
            kwargs["json"] = json
        return self.request("POST", path, **kwargs)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def patch(self, path: str, json: Any = None) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)


class _SubAPI:
    def __init__(self, api: ApiClient):
        self.api = api


class AuthAPI(_SubAPI):
    def register(self, data: Dict[str, Any]) -> dict:
        return self.api.post("/auth/register", data)

    def login(self, email: str, password: str) -> dict:
        return self.api.post("/auth/login", {"email": email, "password": password})

    def logout(self) -> dict:
        return self.api.post("/auth/logout")

    def me(self) -> dict:
        return self.api.get("/auth/me")

    def forgot_password(self, email: str) -> dict:
        return self.api.post("/auth/forgot-password", {"email": email})

    def reset_password(self, token: str, password: str) -> dict:
        return self.api.post("/auth/reset-password", {"token": token, "password": password})


class UsersAPI(_SubAPI):
    def profile(self) -> dict:
        return self.api.get("/users/profile")

    def update_profile(self, data: Dict[str, Any]) -> dict:
        return self.api.put("/users/profile", data)

    def public_profile(self, user_id: int) -> dict:
        return self.api.get(f"/users/{user_id}")


class ProductsAPI(_SubAPI):
    def list(self, **params) -> dict:
        return self.api.get("/products", params)

    def get(self, product_id: int) -> dict:
        return self.api.get(f"/products/{product_id}")

    def related(self, product_id: int) -> List[dict]:
        return self.api.get(f"/products/{product_id}/related")

    def categories(self) -> List[dict]:
        return self.api.get("/categories")

    def create(self, data: Dict[str, Any]) -> dict:
        return self.api.post("/products", data)

    def update(self, product_id: int, data: Dict[str, Any]) -> dict:
        return self.api.put(f"/products/{product_id}", data)

    def delete(self, product_id: int) -> dict:
        return self.api.delete(f"/products/{product_id}")

    def mine(self, status: str = "all", sort_by: Optional[str] = None) -> List[dict]:
        return self.api.get("/products/mine", {"status": status, "sort_by": sort_by})

    def set_status(self, product_id: int, status: str) -> dict:
        return self.api.patch(f"/products/{product_id}/status", {"status": status})

    def bulk(self, ids: Iterable[int], action: str) -> dict:
        return self.api.post("/products/bulk", {"ids": list(ids), "action": action})


class CartAPI(_SubAPI):
    def get(self) -> dict:
        return self.api.get("/cart")

    def count(self) -> dict:
        return self.api.get("/cart/count")

    def summary(self) -> dict:
        return self.api.get("/cart/summary")

    def add(self, product_id: int, quantity: int = 1) -> dict:
        return self.api.post("/cart/add", {"product_id": product_id, "quantity": quantity})

    def update(self, product_id: int, quantity: int) -> dict:
        return self.api.put("/cart/update", {"product_id": product_id, "quantity": quantity})

    def remove(self, product_id: int) -> dict:
        return self.api.delete(f"/cart/remove/{product_id}")

    def clear(self) -> dict:
        return self.api.delete("/cart/clear")

    def save_for_later(self, product_id: int) -> dict:
        return self.api.post(f"/cart/save-for-later/{product_id}")

    def move_to_cart(self, product_id: int) -> dict:
        return self.api.post(f"/cart/move-to-cart/{product_id}")

    def remove_saved(self, product_id: int) -> dict:
        return self.api.delete(f"/cart/saved-for-later/{product_id}")


class OrdersAPI(_SubAPI):
    def create(self, payment_method: str, shipping_address: Dict[str, Any], notes: Optional[str] = None) -> dict:
        payload = {"payment_method": payment_method, "shipping_address": shipping_address}
        if notes:
            payload["notes"] = notes
        return self.api.post("/orders", payload)

    def list(self, **params) -> dict:
        return self.api.get("/orders", params)

    def sales(self, page: int = 1, page_size: int = 10) -> dict:
        return self.api.get("/orders/sales", {"page": page, "page_size": page_size})

    def get(self, order_id: int) -> dict:
        return self.api.get(f"/orders/{order_id}")

    def set_status(self, order_id: int, status: str, tracking_number: Optional[str] = None) -> dict:
        return self.api.patch(f"/orders/{order_id}/status", _clean({"status": status, "tracking_number": tracking_number}))

    def cancel(self, order_id: int, reason: Optional[str] = None) -> dict:
        return self.api.post(f"/orders/{order_id}/cancel", _clean({"reason": reason}))

    def export(self, format: str = "csv", **params) -> bytes:
        return self.api.get("/orders/export", {"format": format, **params})

    def seller_analytics(self, period: str = "30d", start_date: Optional[str] = None,
                         end_date: Optional[str] = None) -> dict:
        return self.api.get("/orders/analytics/seller",
                            {"period": period, "start_date": start_date, "end_date": end_date})


class UploadsAPI(_SubAPI):
    def image(self, file: FileInput, folder: str = "ecofinds") -> dict:
        return self.api.post("/upload/image", files={"image": _file_part(file)}, data={"folder": folder})

    def images(self, files: Iterable[FileInput], folder: str = "ecofinds") -> dict:
        parts = [("images", _file_part(f)) for f in files]
        return self.api.post("/upload/images", files=parts, data={"folder": folder})

    def avatar(self, file: FileInput) -> dict:
        return self.api.post("/upload/avatar", files={"avatar": _file_part(file)})

    def document(self, file: FileInput, document_type: str = "general") -> dict:
        return self.api.post("/upload/document", files={"document": _file_part(file)},
                             data={"document_type": document_type})

    def delete_image(self, public_id: str) -> dict:
        return self.api.delete(f"/upload/image/{quote(public_id, safe='')}")

    def signature(self, folder: str = "ecofinds", public_id: Optional[str] = None) -> dict:
        return self.api.post("/upload/signature", _clean({"folder": folder, "public_id": public_id}))

    def my_files(self, folder: str = "ecofinds", max_results: int = 20) -> dict:
        return self.api.get("/upload/my-files", {"folder": folder, "max_results": max_results})

    def optimize_url(self, public_id: str, transformations: Optional[Dict[str, Any]] = None) -> str:
        body = self.api.post("/upload/optimize-url", {"public_id": public_id, "transformations": transformations or {}})
        return body["optimized_url"]
