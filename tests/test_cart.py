from ecofinds.models.log import Log
from tests.conftest import create_product


def test_cart_requires_login(client):
    assert client.get("/cart").status_code == 401
    assert client.post("/cart/add", json={"product_id": 1}).status_code == 401


def test_empty_cart_is_created_lazily(client, buyer):
    res = client.get("/cart", headers=buyer["headers"])
    assert res.status_code == 200
    assert res.json() == {"items": [], "total_items": 0, "subtotal": 0.0, "saved_for_later": []}


def test_add_and_merge(client, seller, buyer):
    product = create_product(client, seller["headers"], price=12.5, quantity=5)

    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 2})
    res = client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})
    assert res.status_code == 200
    body = res.json()

    assert len(body["items"]) == 1
    line = body["items"][0]
    assert line["quantity"] == 3
    assert line["unit_price"] == 12.5
    assert line["line_total"] == 37.5
    assert line["available_quantity"] == 5
    assert body["total_items"] == 3
    assert body["subtotal"] == 37.5

    assert client.get("/cart/count", headers=buyer["headers"]).json() == {"count": 3}


def test_add_unknown_product(client, buyer):
    res = client.post("/cart/add", headers=buyer["headers"], json={"product_id": 4242})
    assert res.status_code == 404


def test_add_inactive_product(client, seller, buyer):
    product = create_product(client, seller["headers"], status="inactive")
    res = client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})
    assert res.status_code == 400
    assert res.json()["detail"] == "Product is not available"


def test_add_beyond_stock_counts_existing_line(client, seller, buyer):
    product = create_product(client, seller["headers"], quantity=2)
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 2})

    res = client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})
    assert res.status_code == 400
    assert res.json()["detail"] == "Insufficient stock"
    assert client.get("/cart/count", headers=buyer["headers"]).json()["count"] == 2


def test_add_rejects_non_positive_quantity(client, seller, buyer):
    product = create_product(client, seller["headers"])
    res = client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 0})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "quantity"


def test_price_snapshot_survives_price_change(client, seller, buyer):
    product = create_product(client, seller["headers"], price=40)
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})
    client.put(f"/products/{product['id']}", headers=seller["headers"], json={"price": 55})

    cart = client.get("/cart", headers=buyer["headers"]).json()
    assert cart["items"][0]["unit_price"] == 40


def test_update_quantity(client, seller, buyer):
    product = create_product(client, seller["headers"], quantity=4)
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})

    res = client.put("/cart/update", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 4})
    assert res.json()["total_items"] == 4

    too_many = client.put("/cart/update", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 5})
    assert too_many.status_code == 400

    removed = client.put("/cart/update", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 0})
    assert removed.json()["items"] == []

    missing = client.put("/cart/update", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 1})
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Item not found in cart"


def test_remove_and_clear(client, seller, buyer, db_session):
    first = create_product(client, seller["headers"], title="First Thing")
    second = create_product(client, seller["headers"], title="Second Thing")
    for p in (first, second):
        client.post("/cart/add", headers=buyer["headers"], json={"product_id": p["id"]})

    res = client.delete(f"/cart/remove/{first['id']}", headers=buyer["headers"])
    assert [i["product_id"] for i in res.json()["items"]] == [second["id"]]
    assert client.delete(f"/cart/remove/{first['id']}", headers=buyer["headers"]).status_code == 404

    cleared = client.delete("/cart/clear", headers=buyer["headers"]).json()
    assert cleared["items"] == []
    assert cleared["total_items"] == 0

    actions = {l.action for l in db_session.query(Log).filter(Log.resource == "cart")}
    assert {"CART_ADD", "CART_REMOVE", "CART_CLEAR"} <= actions


def test_cart_summary(client, seller, buyer):
    empty = client.get("/cart/summary", headers=buyer["headers"]).json()
    assert empty == {"item_count": 0, "subtotal": 0.0, "total": 0.0}

    product = create_product(client, seller["headers"], price=12.5, quantity=5)
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 2})

    summary = client.get("/cart/summary", headers=buyer["headers"]).json()
    assert summary == {"item_count": 2, "subtotal": 25.0, "total": 25.0}


def test_save_for_later_and_move_back(client, seller, buyer, db_session):
    product = create_product(client, seller["headers"], price=30, quantity=3)
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 2})

    res = client.post(f"/cart/save-for-later/{product['id']}", headers=buyer["headers"])
    assert res.status_code == 200
    body = res.json()
    assert body["items"] == []
    assert body["total_items"] == 0
    saved = body["saved_for_later"][0]
    assert saved["product_id"] == product["id"]
    assert saved["quantity"] == 2
    assert saved["available"] is True

    # Saved lines are re-priced when they come back
    client.put(f"/products/{product['id']}", headers=seller["headers"], json={"price": 25})
    moved = client.post(f"/cart/move-to-cart/{product['id']}", headers=buyer["headers"]).json()
    assert moved["saved_for_later"] == []
    assert moved["items"][0]["quantity"] == 2
    assert moved["items"][0]["unit_price"] == 25

    actions = {l.action for l in db_session.query(Log).filter(Log.resource == "cart")}
    assert {"CART_SAVE_FOR_LATER", "CART_MOVE_TO_CART"} <= actions


def test_save_for_later_unknown_line(client, buyer):
    res = client.post("/cart/save-for-later/999", headers=buyer["headers"])
    assert res.status_code == 404
    assert res.json()["detail"] == "Item not found in cart"

    moved = client.post("/cart/move-to-cart/999", headers=buyer["headers"])
    assert moved.status_code == 404
    assert moved.json()["detail"] == "Saved item not found"


def test_move_to_cart_checks_availability_and_stock(client, seller, buyer):
    product = create_product(client, seller["headers"], quantity=2)
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"], "quantity": 2})
    client.post(f"/cart/save-for-later/{product['id']}", headers=buyer["headers"])

    # Merged quantity would exceed stock
    client.post("/cart/add", headers=buyer["headers"], json={"product_id": product["id"]})
    res = client.post(f"/cart/move-to-cart/{product['id']}", headers=buyer["headers"])
    assert res.status_code == 400
    assert res.json()["detail"] == "Insufficient stock"

    client.patch(f"/products/{product['id']}/status", headers=seller["headers"], json={"status": "inactive"})
    res = client.post(f"/cart/move-to-cart/{product['id']}", headers=buyer["headers"])
    assert res.status_code == 400
    assert res.json()["detail"] == "Product is no longer available"

    saved = client.get("/cart", headers=buyer["headers"]).json()["saved_for_later"]
    assert saved[0]["available"] is False


def test_remove_saved_item_and_clear_keeps_saved(client, seller, buyer):
    first = create_product(client, seller["headers"], title="First Thing")
    second = create_product(client, seller["headers"], title="Second Thing")
    for p in (first, second):
        client.post("/cart/add", headers=buyer["headers"], json={"product_id": p["id"]})
        client.post(f"/cart/save-for-later/{p['id']}", headers=buyer["headers"])

    res = client.delete(f"/cart/saved-for-later/{first['id']}", headers=buyer["headers"])
    assert [s["product_id"] for s in res.json()["saved_for_later"]] == [second["id"]]
    assert client.delete(f"/cart/saved-for-later/{first['id']}", headers=buyer["headers"]).status_code == 404

    cleared = client.delete("/cart/clear", headers=buyer["headers"]).json()
    assert [s["product_id"] for s in cleared["saved_for_later"]] == [second["id"]]
