"""Client SDK driven against the in-process API."""
import pytest

from ecofinds.client import (
    ApiClient, ApiError, AuthSession, CartAdapter, CatalogFeed, CatalogFilters,
    ListingManager, ProductFormSubmitter, SessionStore,
)
from tests.conftest import DEFAULT_PASSWORD, create_product

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture()
def api(client):
    return ApiClient(store=SessionStore(), http=client)


@pytest.fixture()
def session(api):
    auth = AuthSession(api)
    auth.signup(email="client@ecofinds.io", password=DEFAULT_PASSWORD, first_name="Cli", last_name="Ent")
    return auth


def test_signup_restore_logout(api, session):
    assert session.is_authenticated
    assert session.user["email"] == "client@ecofinds.io"

    restored = AuthSession(api).restore()
    assert restored["first_name"] == "Cli"

    session.logout()
    assert not session.is_authenticated
    assert api.store.token is None


def test_login_with_wrong_password(api, session):
    session.logout()
    with pytest.raises(ApiError) as exc:
        session.login("client@ecofinds.io", "Wrong123")
    assert exc.value.status_code == 401
    assert not session.is_authenticated


def test_signup_validation_errors_reach_the_caller(api):
    with pytest.raises(ApiError) as exc:
        AuthSession(api).signup(email="bad@ecofinds.io", password="short", first_name="Ba", last_name="Dd")
    assert exc.value.status_code == 400
    assert exc.value.errors[0]["field"] == "password"


def test_restore_with_stale_token_clears_session(api):
    api.store.save_auth("stale-token", {"id": 1})
    assert AuthSession(api).restore() is None
    assert api.store.token is None


def test_update_profile_refreshes_stored_user(api, session):
    session.update_profile({"location": "Lisbon"})
    assert api.store.user["location"] == "Lisbon"


def test_cart_adapter_round_trip(client, api, session, seller):
    lamp = create_product(client, seller["headers"], title="Desk Lamp", price=15, quantity=3)
    rug = create_product(client, seller["headers"], title="Wool Rug", price=60)
    cart = CartAdapter(api, session)

    cart.add(lamp["id"], 2)
    cart.add(rug["id"])
    assert cart.count == 3
    assert cart.total_price() == 90
    assert cart.is_in_cart(rug["id"])

    cart.update(lamp["id"], 1)
    assert cart.quantity_of(lamp["id"]) == 1

    cart.remove(rug["id"])
    assert not cart.is_in_cart(rug["id"])

    with pytest.raises(ApiError) as exc:
        cart.add(lamp["id"], 10)
    assert exc.value.message == "Insufficient stock"

    session.logout()
    assert cart.items == []
    assert cart.count == 0


def test_cart_adapter_saved_for_later(client, api, session, seller):
    chair = create_product(client, seller["headers"], title="Oak Chair", price=45)
    cart = CartAdapter(api, session)

    cart.add(chair["id"])
    cart.save_for_later(chair["id"])
    assert cart.items == []
    assert [s["product_id"] for s in cart.saved] == [chair["id"]]
    assert api.cart.summary() == {"item_count": 0, "subtotal": 0.0, "total": 0.0}

    cart.move_to_cart(chair["id"])
    assert cart.is_in_cart(chair["id"])
    assert cart.saved == []

    cart.save_for_later(chair["id"])
    cart.remove_saved(chair["id"])
    assert cart.saved == []
    assert cart.items == []


def test_seller_analytics_through_client(client, api, session, seller):
    lamp = create_product(client, seller["headers"], title="Desk Lamp", price=15, quantity=3)
    CartAdapter(api, session).add(lamp["id"], 2)
    api.orders.create("card", {"name": "Cli Ent", "street": "1 Main St", "city": "Lisbon",
                               "zip_code": "1000", "country": "Portugal"})

    assert api.orders.seller_analytics()["total_orders"] == 0
    seller_api = ApiClient(store=SessionStore(), http=client)
    AuthSession(seller_api).login("seller@ecofinds.io", DEFAULT_PASSWORD)
    stats = seller_api.orders.seller_analytics(period="7d")
    assert stats["total_revenue"] == 30
    assert stats["total_items"] == 2


def test_catalog_feed_pages(client, api, seller):
    for i in range(10):
        create_product(client, seller["headers"], title=f"Book volume {i}", category="books", price=5 + i)
    create_product(client, seller["headers"], title="Garden Hose", category="garden")

    feed = CatalogFeed(api, limit=4)
    first = feed.apply(CatalogFilters(category="books", sort="price-low"))
    assert [p["price"] for p in first] == [5, 6, 7, 8]
    assert feed.total == 10
    assert feed.has_more

    feed.load_more()
    feed.load_more()
    assert len(feed.items) == 10
    assert not feed.has_more
    assert feed.load_more() == []

    # New filters start over at page 1
    feed.apply(CatalogFilters(category="garden"))
    assert [p["title"] for p in feed.items] == ["Garden Hose"]
    assert feed.page == 1


def test_listing_manager(api, session):
    submitter = ProductFormSubmitter(api)
    form = {
        "title": "Vintage Chair",
        "description": "Beech wood chair with the original paint.",
        "category": "furniture",
        "price": "150.00",
        "condition": "good",
        "local_pickup": True,
    }
    chair = submitter.submit(form, [("chair.png", PNG, "image/png")])
    table = submitter.submit({**form, "title": "Vintage Table"}, [("table.png", PNG, "image/png")])
    assert chair["price"] == 150
    assert chair["image_url"].startswith("https://")

    manager = ListingManager(api)
    assert len(manager.load()) == 2

    toggled = manager.toggle_status(chair["id"])
    assert toggled["status"] == "inactive"
    assert [p["id"] for p in manager.load(status="inactive")] == [chair["id"]]

    manager.load()
    manager.edit(table["id"], {**form, "title": "Vintage Oak Table", "price": "99.5", "status": "active"})
    assert any(p["title"] == "Vintage Oak Table" and p["price"] == 99.5 for p in manager.listings)

    manager.select_all()
    result = manager.bulk_set_status("sold")
    assert result["affected"] == 2
    assert {p["status"] for p in manager.listings} == {"sold"}
    assert manager.selected == set()

    manager.select(chair["id"])
    manager.bulk_delete()
    assert [p["id"] for p in manager.listings] == [table["id"]]
