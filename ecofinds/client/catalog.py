# ecofinds/client/catalog.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ecofinds.client.api import ApiClient
from ecofinds.client.session import SessionStore

# Slider bounds of the price filter; values at the bounds mean "no limit"
PRICE_FLOOR = 0
PRICE_CEILING = 1000
DEFAULT_SORT = "relevance"
RECENT_SEARCHES_KEY = "recent_searches"
MAX_RECENT_SEARCHES = 10


class CatalogFilters(BaseModel):
    search: str = ""
    category: str = ""
    condition: str = ""
    min_price: float = PRICE_FLOOR
    max_price: float = PRICE_CEILING
    sort: str = DEFAULT_SORT


def _is_selected(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def build_query_params(filters: CatalogFilters, page: int = 1, limit: int = 8) -> Dict[str, Any]:
    """Translate UI filters into /products query parameters, leaving out neutral values."""
    params: Dict[str, Any] = {"page": page, "limit": limit}

    search = (filters.search or "").strip()
    if search:
        params["search"] = search
    if _is_selected(filters.category):
        params["category"] = filters.category
    if _is_selected(filters.condition):
        params["condition"] = filters.condition
    if filters.min_price > PRICE_FLOOR:
        params["min_price"] = filters.min_price
    if filters.max_price < PRICE_CEILING:
        params["max_price"] = filters.max_price
    if filters.sort and filters.sort != DEFAULT_SORT:
        params["sort_by"] = filters.sort
    return params


class CatalogFeed:
    """Paged product feed: `apply` starts over at page 1, `load_more` appends the next page."""

    def __init__(self, api: ApiClient, limit: int = 8):
        self.api = api
        self.limit = limit
        self.filters = CatalogFilters()
        self.items: List[dict] = []
        self.page = 0
        self.total = 0
        self.has_more = False

    def _fetch(self, page: int) -> dict:
        return self.api.products.list(**build_query_params(self.filters, page, self.limit))

    def apply(self, filters: Optional[CatalogFilters] = None) -> List[dict]:
        if filters is not None:
            self.filters = filters
        body = self._fetch(1)
        self.items = list(body["items"])
        self.page = 1
        self.total = body["total"]
        self.has_more = body["has_next"]
        return self.items

    def load_more(self) -> List[dict]:
        if not self.has_more:
            return []
        body = self._fetch(self.page + 1)
        self.items.extend(body["items"])
        self.page += 1
        self.total = body["total"]
        self.has_more = body["has_next"]
        return body["items"]


def remember_search(store: SessionStore, query: str) -> List[str]:
    query = (query or "").strip()
    recent = store.get(RECENT_SEARCHES_KEY, [])
    if not query:
        return recent
    recent = [query] + [q for q in recent if q != query]
    recent = recent[:MAX_RECENT_SEARCHES]
    store.set(RECENT_SEARCHES_KEY, recent)
    return recent


def clear_recent_searches(store: SessionStore):
    store.remove(RECENT_SEARCHES_KEY)
