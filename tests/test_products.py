from ecofinds.models.cart import CartItem
from tests.conftest import create_product, product_payload


def test_categories_are_the_fixed_set(client):
    res = client.get("/categories")
    assert res.status_code == 200
    values = [c["value"] for c in res.json()]
    assert values[0] == "furniture"
    assert "other" in values
    assert len(values) == 12


def test_create_product(client, seller):
    body = create_product(client, seller["headers"])

    assert body["seller_id"] == seller["user"]["id"]
    assert body["status"] == "active"
    assert body["views"] == 0
    assert body["image_url"].endswith("chair.jpg")
    assert body["seller"]["first_name"] == "Sarah"


def test_create_product_requires_login(client):
    assert client.post("/products", json=product_payload()).status_code == 401


def test_create_product_requires_delivery_option(client, seller):
    res = client.post("/products", headers=seller["headers"],
                      json=product_payload(local_pickup=False, shipping_available=False))
    assert res.status_code == 400
    messages = [e["message"] for e in res.json()["errors"]]
    assert "Please select at least one delivery option" in messages


def test_create_product_field_errors(client, seller):
    res = client.post("/products", headers=seller["headers"],
                      json=product_payload(title="ab", price=20000, category="weapons"))
    assert res.status_code == 400
    fields = {e["field"] for e in res.json()["errors"]}
    assert {"title", "price", "category"} <= fields


def test_catalog_lists_only_active(client, seller):
    create_product(client, seller["headers"], title="Active Chair")
    create_product(client, seller["headers"], title="Hidden Chair", status="inactive")
    create_product(client, seller["headers"], title="Sold Chair", status="sold")

    body = client.get("/products").json()
    assert body["total"] == 1
    assert [p["title"] for p in body["items"]] == ["Active Chair"]


def test_catalog_filters_and_sort(client, seller):
    create_product(client, seller["headers"], title="Cheap Novel", category="books", price=5)
    create_product(client, seller["headers"], title="Rare Atlas", category="books", price=80, condition="excellent")
    create_product(client, seller["headers"], title="Garden Bench", category="garden", price=60)

    books = client.get("/products", params={"category": "books", "sort_by": "price-high"}).json()
    assert [p["title"] for p in books["items"]] == ["Rare Atlas", "Cheap Novel"]

    ranged = client.get("/products", params={"min_price": 10, "max_price": 70}).json()
    assert [p["title"] for p in ranged["items"]] == ["Garden Bench"]

    searched = client.get("/products", params={"search": "atlas"}).json()
    assert searched["total"] == 1

    excellent = client.get("/products", params={"condition": "excellent"}).json()
    assert [p["title"] for p in excellent["items"]] == ["Rare Atlas"]


def test_catalog_pagination(client, seller):
    for i in range(5):
        create_product(client, seller["headers"], title=f"Item number {i}", price=10 + i)

    first = client.get("/products", params={"limit": 2, "page": 1, "sort_by": "price-low"}).json()
    assert first["total"] == 5
    assert first["pages"] == 3
    assert first["has_next"] is True
    assert [p["price"] for p in first["items"]] == [10, 11]

    last = client.get("/products", params={"limit": 2, "page": 3, "sort_by": "price-low"}).json()
    assert last["has_next"] is False
    assert [p["price"] for p in last["items"]] == [14]


def test_get_product_counts_views(client, seller):
    product = create_product(client, seller["headers"])
    client.get(f"/products/{product['id']}")
    res = client.get(f"/products/{product['id']}")
    assert res.json()["views"] == 2

    assert client.get("/products/9999").status_code == 404


def test_related_products_share_category(client, seller):
    base = create_product(client, seller["headers"], title="Oak Table")
    create_product(client, seller["headers"], title="Oak Stool")
    create_product(client, seller["headers"], title="Paperback", category="books")

    related = client.get(f"/products/{base['id']}/related").json()
    assert [p["title"] for p in related] == ["Oak Stool"]


def test_update_product_by_owner(client, seller):
    product = create_product(client, seller["headers"])
    res = client.put(f"/products/{product['id']}", headers=seller["headers"],
                     json={"price": 120, "images": []})
    assert res.status_code == 200
    body = res.json()
    assert body["price"] == 120
    assert body["images"] == []
    assert body["title"] == product["title"]


def test_update_product_rejects_blank_title(client, seller):
    product = create_product(client, seller["headers"])
    res = client.put(f"/products/{product['id']}", headers=seller["headers"], json={"title": "    "})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "title"

    assert client.get(f"/products/{product['id']}").json()["title"] == product["title"]


def test_update_product_cannot_drop_all_delivery_options(client, seller):
    product = create_product(client, seller["headers"])
    res = client.put(f"/products/{product['id']}", headers=seller["headers"],
                     json={"local_pickup": False})
    assert res.status_code == 400
    assert res.json()["detail"] == "Please select at least one delivery option"


def test_other_users_cannot_modify_listing(client, seller, buyer):
    product = create_product(client, seller["headers"])

    put = client.put(f"/products/{product['id']}", headers=buyer["headers"], json={"price": 1})
    delete = client.delete(f"/products/{product['id']}", headers=buyer["headers"])
    patch = client.patch(f"/products/{product['id']}/status", headers=buyer["headers"], json={"status": "sold"})

    for res in (put, delete, patch):
        assert res.status_code == 404
        assert res.json()["detail"] == "Product not found or unauthorized"


def test_delete_product_drops_cart_lines(client, seller, buyer, db_session):
    product = create_product(client, seller["headers"])
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})

    res = client.delete(f"/products/{product['id']}", headers=seller["headers"])
    assert res.status_code == 200
    assert db_session.query(CartItem).count() == 0
    assert client.get("/cart", headers=buyer["headers"]).json()["items"] == []
