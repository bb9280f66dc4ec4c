from ecofinds.client.api import ApiClient
from ecofinds.client.auth import AuthSession
from ecofinds.client.cart import CartAdapter
from ecofinds.client.catalog import CatalogFeed, CatalogFilters, build_query_params, remember_search
from ecofinds.client.exceptions import ApiError, AuthRequiredError, FormValidationError
from ecofinds.client.forms import ProductFormSubmitter, validate_product_form
from ecofinds.client.listings import ListingManager, validate_listing_edit
from ecofinds.client.session import SessionStore

__all__ = [
    "ApiClient", "AuthSession", "CartAdapter", "CatalogFeed", "CatalogFilters",
    "build_query_params", "remember_search", "ApiError", "AuthRequiredError",
    "FormValidationError", "ProductFormSubmitter", "validate_product_form",
    "ListingManager", "validate_listing_edit", "SessionStore",
]
