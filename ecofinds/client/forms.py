# ecofinds/client/forms.py
import logging
from typing import Any, Dict, List, Optional, Sequence

from ecofinds.client.api import ApiClient
from ecofinds.client.exceptions import FormValidationError

logger = logging.getLogger(__name__)

MAX_PRICE = 10000


def parse_price(value: Any) -> Optional[float]:
    """Float value of a price field, or None when it is not a number."""
    if isinstance(value, bool):
        return None
    try:
        price = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if price != price or price in (float("inf"), float("-inf")):
        return None
    return price


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def validate_product_form(form: Dict[str, Any], images: Sequence[Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    title = form.get("title")
    if _blank(title):
        errors["title"] = "Product title is required"
    elif len(title) < 5:
        errors["title"] = "Title must be at least 5 characters long"

    description = form.get("description")
    if _blank(description):
        errors["description"] = "Product description is required"
    elif len(description) < 20:
        errors["description"] = "Description must be at least 20 characters long"

    if not form.get("category"):
        errors["category"] = "Please select a category"

    if _blank(form.get("price")):
        errors["price"] = "Price is required"
    else:
        price = parse_price(form["price"])
        if price is None or price <= 0:
            errors["price"] = "Please enter a valid price"
        elif price > MAX_PRICE:
            errors["price"] = f"Price cannot exceed ${MAX_PRICE:,}"

    if not form.get("condition"):
        errors["condition"] = "Please select the item condition"

    if not images:
        errors["images"] = "At least one product image is required"

    if not form.get("local_pickup") and not form.get("shipping_available"):
        errors["delivery"] = "Please select at least one delivery option"

    return errors


def _is_hosted(image: Any) -> bool:
    return isinstance(image, dict) and "url" in image


class ProductFormSubmitter:
    """Validates the add-product form, pushes local image files to the media relay, creates the listing."""

    def __init__(self, api: ApiClient, folder: str = "ecofinds"):
        self.api = api
        self.folder = folder

    def _hosted_images(self, images: Sequence[Any]) -> List[dict]:
        local = [img for img in images if not _is_hosted(img)]
        uploaded = iter(self.api.uploads.images(local, folder=self.folder)["images"] if local else [])

        # Keep the order the seller arranged, primary image first
        hosted = []
        for img in images:
            src = img if _is_hosted(img) else next(uploaded)
            hosted.append({"url": src["url"], "public_id": src.get("public_id")})
        return hosted

    def submit(self, form: Dict[str, Any], images: Sequence[Any]) -> dict:
        errors = validate_product_form(form, images)
        if errors:
            raise FormValidationError(errors)

        payload = {
            "title": form["title"].strip(),
            "description": form["description"].strip(),
            "category": form["category"],
            "condition": form["condition"],
            "price": parse_price(form["price"]),
            "quantity": int(form.get("quantity") or 1),
            "local_pickup": bool(form.get("local_pickup")),
            "shipping_available": bool(form.get("shipping_available")),
            "accept_offers": bool(form.get("accept_offers")),
            "images": self._hosted_images(images),
        }
        product = self.api.products.create(payload)
        logger.info(f"Listing {product.get('id')} published")
        return product
