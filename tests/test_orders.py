from sqlmodel import Session, select

from app.models.order_event import OrderEvent
from app.models.payment import Payment
from conftest import auth, count_orders, order_payload, stock_of


def test_place_order_totals_and_stock(client, engine, customer, product):
    response = client.post(
        "/api/orders",
        json=order_payload(product, [("9", 2)]),
        headers=auth(customer),
    )

    assert response.status_code == 201
    order = response.json()["order"]
    assert order["status"] == "PENDING"
    assert order["subtotal"] == 10000
    assert order["shipping_cost"] == 500
    assert order["total"] == 10500
    assert order["order_number"].startswith("KZ-")
    assert len(order["order_number"].split("-")[2]) == 6
    assert order["items"][0]["line_total"] == 10000
    assert order["shipping_address"]["city"] == "Nairobi"

    assert stock_of(engine, product.id, "9") == 3


def test_place_order_logs_timeline_event(client, engine, place_order):
    order = place_order()

    with Session(engine) as session:
        events = session.exec(
            select(OrderEvent).where(OrderEvent.order_id == order["id"])
        ).all()

    assert [e.event_type for e in events] == ["order_placed"]


def test_mpesa_order_gets_pending_payment(client, engine, place_order):
    order = place_order(payment_method="MPESA")

    with Session(engine) as session:
        payments = session.exec(
            select(Payment).where(Payment.order_id == order["id"])
        ).all()

    assert len(payments) == 1
    assert payments[0].provider == "MPESA"
    assert payments[0].status == "PENDING"
    assert payments[0].amount == order["total"]


def test_cash_on_delivery_order_has_no_payment(client, place_order):
    order = place_order()
    assert order["payments"] == []


def test_admin_cannot_place_order(client, engine, admin, product):
    response = client.post(
        "/api/orders",
        json=order_payload(product),
        headers=auth(admin),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == (
        "Administrators cannot place orders. Please use a customer account."
    )
    assert count_orders(engine) == 0
    assert stock_of(engine, product.id, "9") == 5


def test_admin_refused_before_body_validation(client, admin):
    response = client.post("/api/orders", json={"items": []}, headers=auth(admin))
    assert response.status_code == 403


def test_unauthenticated_order_refused(client, engine, product):
    response = client.post("/api/orders", json=order_payload(product))

    assert response.status_code == 401
    assert count_orders(engine) == 0


def test_malformed_order_rejected(client, engine, customer, product):
    payload = order_payload(product)
    payload["items"][0]["quantity"] = 0

    response = client.post("/api/orders", json=payload, headers=auth(customer))

    assert response.status_code == 422
    assert count_orders(engine) == 0


def test_empty_cart_rejected(client, customer, product):
    payload = order_payload(product)
    payload["items"] = []

    response = client.post("/api/orders", json=payload, headers=auth(customer))
    assert response.status_code == 422


def test_insufficient_stock_rolls_back(client, engine, customer, product):
    response = client.post(
        "/api/orders",
        json=order_payload(product, [("9", 1), ("10", 4)]),
        headers=auth(customer),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Insufficient stock for Safari Leather Boot (Size: 10). Available: 3, Requested: 4"
    )
    assert count_orders(engine) == 0
    assert stock_of(engine, product.id, "9") == 5
    assert stock_of(engine, product.id, "10") == 3


def test_repeated_lines_are_checked_together(client, engine, customer, product):
    response = client.post(
        "/api/orders",
        json=order_payload(product, [("10", 2), ("10", 2)]),
        headers=auth(customer),
    )

    assert response.status_code == 400
    assert stock_of(engine, product.id, "10") == 3


def test_unknown_size_rejected(client, engine, customer, product):
    response = client.post(
        "/api/orders",
        json=order_payload(product, [("44", 1)]),
        headers=auth(customer),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Size 44 not available for this product"
    assert count_orders(engine) == 0


def test_list_orders_newest_first(client, customer, place_order):
    first = place_order()
    second = place_order(lines=[("10", 1)])

    response = client.get("/api/orders", headers=auth(customer))

    assert response.status_code == 200
    ids = [o["id"] for o in response.json()["orders"]]
    assert ids == [second["id"], first["id"]]


def test_admin_order_list_is_empty(client, admin, place_order):
    place_order()

    response = client.get("/api/orders", headers=auth(admin))

    assert response.status_code == 200
    assert response.json() == {"orders": []}


def test_order_detail_includes_timeline(client, customer, place_order):
    order = place_order()

    response = client.get(f"/api/orders/{order['id']}", headers=auth(customer))

    assert response.status_code == 200
    detail = response.json()["order"]
    assert detail["order_number"] == order["order_number"]
    assert detail["timeline"][0]["event_type"] == "order_placed"


def test_other_users_order_is_not_found(client, other_customer, place_order):
    order = place_order()

    response = client.get(f"/api/orders/{order['id']}", headers=auth(other_customer))

    assert response.status_code == 404
    assert response.json()["detail"] == "Order not found"


def test_invoice_is_a_pdf(client, customer, place_order):
    order = place_order(lines=[("9", 1), ("10", 2)])

    response = client.get(f"/api/orders/{order['id']}/invoice", headers=auth(customer))

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert order["order_number"] in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_invalid_token_rejected(client):
    response = client.get("/api/orders", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
