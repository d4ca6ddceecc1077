from datetime import datetime, timezone

from tracker.app import utils
from tracker.app.models import Order, TrackingEvent

from tests.helpers import bearer


def test_orders_require_admin(client, user_headers):
    assert client.get("/api/orders").status_code == 401
    r = client.get("/api/orders", headers=user_headers)
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden"}


def test_create_generates_numbers_and_forces_processing(client, admin_headers, device):
    r = client.post("/api/orders", headers=admin_headers, json={
        "deviceId": device.id,
        "customerName": "Sam",
        "customerEmail": "sam@example.com",
        "senderInfo": {"name": "Store", "phone": "0123"},
        "status": "delivered",
    })
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["orderNumber"].startswith("ORD-")
    assert data["trackingNumber"].startswith("TRK-")
    assert data["status"] == "processing"
    assert data["senderInfo"] == {"name": "Store", "phone": "0123"}

    other = client.post("/api/orders", headers=admin_headers, json={}).json()["data"]
    assert other["orderNumber"] != data["orderNumber"]
    assert other["trackingNumber"] != data["trackingNumber"]


def test_generated_reference_skips_taken_numbers(db, monkeypatch):
    db.add(Order(order_number="ORD-5"))
    db.commit()
    draws = iter([5, 5, 7])
    monkeypatch.setattr(utils.random, "randrange", lambda n: next(draws))
    assert utils.generate_reference(db, Order.order_number, "ORD") == "ORD-7"


def test_duplicate_order_number_is_conflict(client, admin_headers, order):
    r = client.post("/api/orders", headers=admin_headers, json={"orderNumber": "ORD-100"})
    assert r.status_code == 409
    assert "error" in r.json()


def test_list_newest_first(client, admin_headers):
    first = client.post("/api/orders", headers=admin_headers, json={"orderNumber": "ORD-1"}).json()["data"]
    second = client.post("/api/orders", headers=admin_headers, json={"orderNumber": "ORD-2"}).json()["data"]
    ids = [o["id"] for o in client.get("/api/orders", headers=admin_headers).json()["data"]]
    assert ids == [second["id"], first["id"]]


def test_update_empty_body_changes_nothing(client, db, admin_headers, order):
    before = order.updated_at
    r = client.put(f"/api/orders/{order.id}", headers=admin_headers, json={})
    assert r.status_code == 200
    assert r.json() == {"success": True}
    db.expire_all()
    fresh = db.get(Order, order.id)
    assert fresh.updated_at == before
    assert fresh.waybill == "WB-1"


def test_update_applies_only_present_fields(client, db, admin_headers, order):
    before = order.updated_at
    r = client.put(f"/api/orders/{order.id}", headers=admin_headers,
                   json={"status": "shipped", "waybill": None})
    assert r.json() == {"success": True}
    db.expire_all()
    fresh = db.get(Order, order.id)
    assert fresh.status == "shipped"
    assert fresh.waybill is None
    assert fresh.customer_name == "Jane Roe"
    assert fresh.shipping_address == "1 Main Rd"
    assert fresh.updated_at > before


def test_update_missing_order(client, admin_headers):
    assert client.put("/api/orders/999", headers=admin_headers, json={"status": "x"}).status_code == 404


def test_add_event_with_status_update(client, db, admin_headers, order):
    before = order.updated_at
    r = client.post(f"/api/orders/{order.id}/events", headers=admin_headers, json={
        "location": "KLIA Hub",
        "description": "Departed facility",
        "date": "2026-03-01T08:30:00Z",
        "updateStatus": "shipped",
    })
    assert r.status_code == 200
    event = r.json()["data"]
    assert event["orderId"] == order.id
    assert event["date"].startswith("2026-03-01T08:30:00")

    db.expire_all()
    fresh = db.get(Order, order.id)
    assert fresh.status == "shipped"
    assert fresh.order_number == "ORD-100"
    assert fresh.waybill == "WB-1"
    assert fresh.customer_name == "Jane Roe"
    assert fresh.updated_at == before


def test_add_event_without_status_keeps_status(client, db, admin_headers, order):
    r = client.post(f"/api/orders/{order.id}/events", headers=admin_headers,
                    json={"location": "Depot", "description": "Arrived"})
    assert r.status_code == 200
    assert r.json()["data"]["date"] is not None

    db.expire_all()
    assert db.get(Order, order.id).status == "processing"
    assert db.query(TrackingEvent).filter_by(order_id=order.id).count() == 1


def test_add_event_to_missing_order(client, db, admin_headers):
    r = client.post("/api/orders/404/events", headers=admin_headers, json={"location": "x"})
    assert r.status_code == 404
    assert db.query(TrackingEvent).count() == 0


def test_list_events_endpoint(client, admin_headers, order):
    client.post(f"/api/orders/{order.id}/events", headers=admin_headers,
                json={"location": "Old", "date": datetime(2026, 1, 1, tzinfo=timezone.utc).isoformat()})
    client.post(f"/api/orders/{order.id}/events", headers=admin_headers,
                json={"location": "New", "date": datetime(2026, 2, 1, tzinfo=timezone.utc).isoformat()})
    data = client.get(f"/api/orders/{order.id}/events", headers=admin_headers).json()["data"]
    assert [e["location"] for e in data] == ["New", "Old"]


def test_unknown_token_user_is_not_admin(client):
    r = client.get("/api/orders", headers=bearer("stranger"))
    assert r.status_code == 403
