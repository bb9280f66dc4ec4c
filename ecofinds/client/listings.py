# ecofinds/client/listings.py
from typing import Any, Dict, List, Optional, Set

from ecofinds.client.api import ApiClient
from ecofinds.client.exceptions import FormValidationError
from ecofinds.client.forms import parse_price

EDITABLE_FIELDS = (
    "title", "description", "price", "category", "condition", "status",
    "quantity", "local_pickup", "shipping_available", "accept_offers",
)


def validate_listing_edit(form: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    title = form.get("title")
    if title is None or not str(title).strip():
        errors["title"] = "Title is required"
    elif len(title) < 3:
        errors["title"] = "Title must be at least 3 characters"

    description = form.get("description")
    if description is None or not str(description).strip():
        errors["description"] = "Description is required"
    elif len(description) < 10:
        errors["description"] = "Description must be at least 10 characters"

    price = form.get("price")
    if price is None or not str(price).strip():
        errors["price"] = "Price is required"
    else:
        parsed = parse_price(price)
        if parsed is None or parsed <= 0:
            errors["price"] = "Please enter a valid price"

    for field in ("category", "condition", "status"):
        if not form.get(field):
            errors[field] = f"{field.capitalize()} is required"

    return errors


class ListingManager:
    """The seller's "My Listings" view: filter, edit, toggle, select and bulk actions."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.listings: List[dict] = []
        self.selected: Set[int] = set()
        self.status = "all"
        self.sort_by: Optional[str] = None

    def load(self, status: str = "all", sort_by: Optional[str] = None) -> List[dict]:
        self.status, self.sort_by = status, sort_by
        self.listings = self.api.products.mine(status=status, sort_by=sort_by)
        # Selection only refers to listings still on screen
        visible = {p["id"] for p in self.listings}
        self.selected &= visible
        return self.listings

    def reload(self) -> List[dict]:
        return self.load(self.status, self.sort_by)

    def edit(self, listing_id: int, form: Dict[str, Any]) -> dict:
        errors = validate_listing_edit(form)
        if errors:
            raise FormValidationError(errors)

        payload = {k: form[k] for k in EDITABLE_FIELDS if k in form}
        payload["price"] = parse_price(form["price"])
        updated = self.api.products.update(listing_id, payload)
        self._replace(updated)
        return updated

    def delete(self, listing_id: int):
        self.api.products.delete(listing_id)
        self.listings = [p for p in self.listings if p["id"] != listing_id]
        self.selected.discard(listing_id)

    def toggle_status(self, listing_id: int) -> dict:
        current = next((p for p in self.listings if p["id"] == listing_id), None)
        if current is None:
            current = self.api.products.get(listing_id)
        new_status = "inactive" if current["status"] == "active" else "active"
        updated = self.api.products.set_status(listing_id, new_status)
        self._replace(updated)
        return updated

    def _replace(self, listing: dict):
        self.listings = [listing if p["id"] == listing["id"] else p for p in self.listings]

    # ---- selection ----
    def select(self, listing_id: int):
        self.selected.add(listing_id)

    def deselect(self, listing_id: int):
        self.selected.discard(listing_id)

    def select_all(self):
        self.selected = {p["id"] for p in self.listings}

    def clear_selection(self):
        self.selected = set()

    # ---- bulk actions ----
    def _bulk(self, action: str) -> dict:
        if not self.selected:
            return {"action": action, "affected": 0, "ids": []}
        result = self.api.products.bulk(sorted(self.selected), action)
        self.clear_selection()
        self.reload()
        return result

    def bulk_delete(self) -> dict:
        return self._bulk("delete")

    def bulk_set_status(self, status: str) -> dict:
        actions = {"active": "activate", "inactive": "deactivate", "sold": "mark-sold"}
        if status not in actions:
            raise ValueError(f"Unknown listing status: {status}")
        return self._bulk(actions[status])
