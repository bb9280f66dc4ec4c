# ecofinds/client/cart.py
from typing import List, Optional

from ecofinds.client.api import ApiClient
from ecofinds.client.exceptions import AuthRequiredError


class CartAdapter:
    """
    Local view of the server-side cart.
    Every call replaces `items`, `count` and `saved` with the server's answer.
    """

    def __init__(self, api: ApiClient, session=None):
        self.api = api
        self.items: List[dict] = []
        self.saved: List[dict] = []
        self.count = 0
        if session is not None:
            session.on_logout(self.reset)

    def _require_login(self, message: str):
        if not self.api.store.token:
            raise AuthRequiredError(message)

    def _apply(self, cart: dict) -> dict:
        self.items = list(cart.get("items") or [])
        self.count = cart.get("total_items") or 0
        self.saved = list(cart.get("saved_for_later") or [])
        return cart

    def load(self) -> List[dict]:
        if not self.api.store.token:
            self.reset()
            return self.items
        self._apply(self.api.cart.get())
        return self.items

    def add(self, product_id: int, quantity: int = 1) -> dict:
        self._require_login("Please login to add items to cart")
        return self._apply(self.api.cart.add(product_id, quantity))

    def update(self, product_id: int, quantity: int) -> dict:
        self._require_login("Please login to update cart")
        return self._apply(self.api.cart.update(product_id, quantity))

    def remove(self, product_id: int) -> dict:
        self._require_login("Please login to remove items from cart")
        return self._apply(self.api.cart.remove(product_id))

    def clear(self) -> dict:
        self._require_login("Please login to clear cart")
        return self._apply(self.api.cart.clear())

    def save_for_later(self, product_id: int) -> dict:
        self._require_login("Please login to save items for later")
        return self._apply(self.api.cart.save_for_later(product_id))

    def move_to_cart(self, product_id: int) -> dict:
        self._require_login("Please login to move items to cart")
        return self._apply(self.api.cart.move_to_cart(product_id))

    def remove_saved(self, product_id: int) -> dict:
        self._require_login("Please login to remove saved items")
        return self._apply(self.api.cart.remove_saved(product_id))

    def reset(self):
        self.items = []
        self.count = 0
        self.saved = []

    def total_price(self) -> float:
        return round(sum(i["unit_price"] * i["quantity"] for i in self.items), 2)

    def total_items(self) -> int:
        return sum(i["quantity"] for i in self.items)

    def is_in_cart(self, product_id: int) -> bool:
        return any(i["product_id"] == product_id for i in self.items)

    def quantity_of(self, product_id: int) -> Optional[int]:
        for i in self.items:
            if i["product_id"] == product_id:
                return i["quantity"]
        return None
