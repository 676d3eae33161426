from datetime import datetime, timedelta

import pytest

from conftest import FakeResponse
from app.models import db, Order
from services import orders as order_service
from services.settings import update_settings

MENU_ID = "3f2b8c1e-9d4a-4f6b-8e21-0c5d7a9b1e42"


def checkout(**overrides):
    payload = {
        "customerName": "Juan Dela Cruz",
        "contactNumber": "09171234567",
        "serviceType": "pickup",
        "paymentMethod": "gcash",
        "total": 250,
        "cartItems": [
            {
                "id": f"{MENU_ID}-large-extra-cheese",
                "name": "Pizza",
                "quantity": 2,
                "totalPrice": 125,
                "selectedVariation": {"name": "Large"},
                "selectedAddOns": [{"name": "Extra cheese"}],
            }
        ],
        "options": {"pickupTime": "12:30", "notes": "No onions"},
    }
    payload.update(overrides)
    return payload


def configure_store():
    err = update_settings(
        {
            "lalamove_store_name": "Main Kitchen",
            "lalamove_store_phone": "+639170000000",
            "lalamove_store_address": "1 Store Rd, Makati",
            "lalamove_store_latitude": "14.5547",
            "lalamove_store_longitude": "121.0244",
        }
    )
    assert err is None


def place(client, **overrides):
    resp = client.post("/api/orders", json=checkout(**overrides))
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["order"]


def test_place_order_persists_items(client):
    order = place(client)

    assert order["order_number"].startswith("ORD-")
    assert order["order_number"].endswith("-0001")
    assert order["status"] == "pending"
    assert order["pickup_time"] == "12:30"
    assert order["notes"] == "No onions"
    assert order["total"] == 250
    [item] = order["order_items"]
    assert item["menu_item_id"] == MENU_ID
    assert item["quantity"] == 2
    assert item["unit_price"] == 125
    assert item["total_price"] == 250
    assert item["selected_variation"] == {"name": "Large"}


def test_order_numbers_increment_within_a_day(client):
    first = place(client)
    second = place(client)
    assert first["order_number"][:-4] == second["order_number"][:-4]
    assert second["order_number"].endswith("-0002")


def test_client_ip_prefers_forwarded_header(client):
    resp = client.post(
        "/api/orders",
        json=checkout(),
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    assert resp.get_json()["order"]["customer_ip"] == "203.0.113.7"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"cartItems": []}, "Cart items are required"),
        ({"customerName": ""}, "Missing required fields"),
        ({"total": None}, "Missing required fields"),
        ({"serviceType": "drive-thru"}, "Invalid serviceType"),
        ({"options": {"branchId": "no-such-branch"}}, "Unknown branch"),
    ],
)
def test_place_order_validation(client, overrides, message):
    resp = client.post("/api/orders", json=checkout(**overrides))
    assert resp.status_code == 400
    assert message in resp.get_json()["error"]


def test_place_order_without_body(client):
    resp = client.post("/api/orders", data="", content_type="application/json")
    assert resp.status_code == 400


def test_admin_endpoints_require_login(client):
    assert client.get("/api/orders").status_code == 401
    assert client.get("/api/orders/stats").status_code == 401
    assert client.patch("/api/orders/bulk", json={}).status_code == 401
    assert client.delete("/api/orders/anything").status_code == 401


def test_list_orders_filters(admin_client):
    place(admin_client, customerName="Ana Reyes")
    place(admin_client, customerName="Ben Cruz", serviceType="dine-in")

    resp = admin_client.get("/api/orders?service_type=dine-in")
    names = [o["customer_name"] for o in resp.get_json()["orders"]]
    assert names == ["Ben Cruz"]

    resp = admin_client.get("/api/orders?search=reyes")
    names = [o["customer_name"] for o in resp.get_json()["orders"]]
    assert names == ["Ana Reyes"]

    resp = admin_client.get("/api/orders?status=completed")
    assert resp.get_json()["orders"] == []


@pytest.mark.parametrize("query", ["status=lost", "service_type=drone", "date_from=yesterday"])
def test_list_orders_rejects_bad_filters(admin_client, query):
    resp = admin_client.get(f"/api/orders?{query}")
    assert resp.status_code == 400


def test_list_orders_date_range(app, admin_client):
    order = place(admin_client)
    with app.app_context():
        row = db.session.get(Order, order["id"])
        row.created_at = datetime(2024, 3, 1, 10, 0)
        db.session.commit()

    resp = admin_client.get("/api/orders?date_from=2024-03-01T00:00:00Z&date_to=2024-03-02T00:00:00Z")
    assert [o["id"] for o in resp.get_json()["orders"]] == [order["id"]]

    resp = admin_client.get("/api/orders?date_from=2024-03-02T00:00:00")
    assert resp.get_json()["orders"] == []


def test_get_update_and_delete_order(admin_client):
    order = place(admin_client)
    url = f"/api/orders/{order['id']}"

    assert admin_client.get(url).get_json()["order"]["id"] == order["id"]

    resp = admin_client.patch(
        url,
        json={"status": "completed", "lalamove_status": "PICKED_UP", "delivery_fee": 49},
    )
    updated = resp.get_json()["order"]
    assert updated["status"] == "completed"
    assert updated["completed_at"] is not None
    assert updated["lalamove_status"] == "PICKED_UP"
    assert updated["delivery_fee"] == 49

    assert admin_client.delete(url).status_code == 200
    assert admin_client.get(url).status_code == 404
    assert admin_client.delete(url).status_code == 404


def test_update_order_validation(admin_client):
    order = place(admin_client)
    url = f"/api/orders/{order['id']}"
    assert admin_client.patch(url, json={}).status_code == 400
    assert admin_client.patch(url, json={"status": "lost"}).status_code == 400
    assert admin_client.patch("/api/orders/missing", json={"status": "ready"}).status_code == 404


def test_bulk_status_update(admin_client):
    ids = [place(admin_client)["id"], place(admin_client)["id"]]

    resp = admin_client.patch("/api/orders/bulk", json={"ids": ids + ["missing"], "status": "preparing"})

    assert resp.get_json() == {"success": True, "updated": 2}
    statuses = {o["status"] for o in admin_client.get("/api/orders").get_json()["orders"]}
    assert statuses == {"preparing"}

    assert admin_client.patch("/api/orders/bulk", json={"ids": [], "status": "ready"}).status_code == 400
    assert admin_client.patch("/api/orders/bulk", json={"ids": ids, "status": "lost"}).status_code == 400


def test_stats(admin_client):
    place(admin_client, total=100)
    place(admin_client, total=50)
    cancelled = place(admin_client, total=30)
    admin_client.patch(f"/api/orders/{cancelled['id']}", json={"status": "cancelled"})

    stats = admin_client.get("/api/orders/stats").get_json()["stats"]

    assert stats["total_orders"] == 3
    assert stats["pending_orders"] == 2
    assert stats["today_orders"] == 3
    assert stats["today_revenue"] == 150
    assert stats["cancelled_orders"] == 1
    assert stats["completed_orders"] == 0


def test_stats_today_excludes_older_orders(app, admin_client):
    order = place(admin_client, total=80)
    with app.app_context():
        row = db.session.get(Order, order["id"])
        row.created_at = row.created_at - timedelta(days=2)
        db.session.commit()

    stats = admin_client.get("/api/orders/stats").get_json()["stats"]
    assert stats["today_orders"] == 0
    assert stats["today_revenue"] == 0
    assert stats["total_orders"] == 1


def delivery_checkout(**options):
    return {
        "serviceType": "delivery",
        "options": {
            "address": "123 Main St",
            "deliveryLat": 14.55,
            "deliveryLng": 121.02,
            "deliveryFee": 85,
            "lalamoveQuotationId": "Q1",
            **options,
        },
    }


def test_delivery_order_is_booked(app, client, upstream):
    with app.app_context():
        configure_store()
    upstream.queue(
        FakeResponse(
            200,
            {"data": {"orderId": "L100", "status": "ASSIGNING_DRIVER", "shareLink": "https://s/L100"}},
        )
    )

    order = place(client, **delivery_checkout())

    assert order["lalamove_order_id"] == "L100"
    assert order["lalamove_status"] == "ASSIGNING_DRIVER"
    assert order["lalamove_tracking_url"] == "https://s/L100"
    assert order["delivery_fee"] == 85

    sent = upstream.sent_json()["data"]
    assert sent["quotationId"] == "Q1"
    assert sent["sender"] == {"name": "Main Kitchen", "phone": "+639170000000"}
    assert sent["recipients"][0]["phone"] == "+639171234567"
    assert sent["metadata"] == {
        "orderId": order["id"],
        "deliveryAddress": "123 Main St",
        "deliveryLat": 14.55,
        "deliveryLng": 121.02,
    }


def test_delivery_failure_keeps_the_order(app, client, upstream):
    with app.app_context():
        configure_store()
    upstream.queue(FakeResponse(403, text='{"message":"quotation expired"}'))

    order = place(client, **delivery_checkout())

    assert order["lalamove_order_id"] is None
    with app.app_context():
        assert db.session.get(Order, order["id"]) is not None


def test_delivery_skipped_without_store_config(client, upstream):
    order = place(client, **delivery_checkout())
    assert order["lalamove_order_id"] is None
    assert upstream.calls == []


def test_delivery_skipped_without_quotation(app, client, upstream):
    with app.app_context():
        configure_store()
    order = place(client, **delivery_checkout(lalamoveQuotationId=""))
    assert order["lalamove_order_id"] is None
    assert upstream.calls == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("09171234567", "+639171234567"),
        ("+63 917 123 4567", "+639171234567"),
        ("639171234567", "+639171234567"),
        ("9171234567", "+639171234567"),
        ("", None),
        ("n/a", None),
    ],
)
def test_normalize_phone_number(raw, expected):
    assert order_service.normalize_phone_number(raw) == expected


@pytest.mark.parametrize(
    "cart_id, expected",
    [
        (f"{MENU_ID}-large", MENU_ID),
        (MENU_ID, MENU_ID),
        ("not-a-uuid", None),
        (None, None),
    ],
)
def test_extract_menu_item_id(cart_id, expected):
    assert order_service.extract_menu_item_id(cart_id) == expected


def test_order_number_not_reused_after_delete(admin_client):
    first = place(admin_client)
    second = place(admin_client)
    assert admin_client.delete(f"/api/orders/{first['id']}").status_code == 200

    resp = admin_client.post("/api/orders", json=checkout())

    assert resp.status_code == 201
    third = resp.get_json()["order"]
    assert third["order_number"] != second["order_number"]
    assert third["order_number"].endswith("-0003")


def test_taken_order_number_is_retried(client, monkeypatch):
    taken = place(client)["order_number"]
    real_next = order_service.next_order_number
    numbers = iter([taken])
    monkeypatch.setattr(
        order_service, "next_order_number", lambda: next(numbers, None) or real_next()
    )

    order = place(client)

    assert order["order_number"] != taken
    assert order["order_number"].endswith("-0002")


def test_order_number_conflict_is_a_json_409(client, monkeypatch):
    taken = place(client)["order_number"]
    monkeypatch.setattr(order_service, "next_order_number", lambda: taken)

    resp = client.post("/api/orders", json=checkout())

    assert resp.status_code == 409
    assert "order number" in resp.get_json()["error"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"customerName": {"first": "Juan"}},
        {"contactNumber": ["0917"]},
        {"paymentMethod": 5},
        {"serviceType": ["pickup"]},
        {"options": {"address": {"street": "Main"}}},
        {"options": {"branchId": ["b1"]}},
        {"cartItems": [{"name": ["Pizza"], "totalPrice": 100}]},
    ],
)
def test_place_order_rejects_non_text_fields(client, overrides):
    resp = client.post("/api/orders", json=checkout(**overrides))
    assert resp.status_code == 400
    assert resp.is_json


def test_zero_delivery_fee_is_kept(client):
    order = place(client, options={"deliveryFee": 0})
    assert order["delivery_fee"] == 0
