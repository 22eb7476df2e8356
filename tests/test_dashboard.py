from app.constants.order_status import OrderStatus
from conftest import auth, set_order_status


def test_dashboard_revenue_excludes_pending_and_cancelled(client, engine, admin, place_order):
    paid = place_order(lines=[("9", 1)])
    delivered = place_order(lines=[("10", 1)])
    cancelled = place_order(lines=[("9", 1)])
    place_order(lines=[("9", 1)])

    set_order_status(engine, paid["id"], OrderStatus.PROCESSING)
    set_order_status(engine, delivered["id"], OrderStatus.DELIVERED)
    set_order_status(engine, cancelled["id"], OrderStatus.CANCELLED)

    response = client.get("/api/admin/dashboard", headers=auth(admin))

    assert response.status_code == 200
    stats = response.json()
    assert stats["total_orders"] == 4
    assert stats["total_revenue"] == 11000
    assert stats["orders_by_status"] == {
        "PENDING": 1,
        "PROCESSING": 1,
        "SHIPPED": 0,
        "DELIVERED": 1,
        "CANCELLED": 1,
    }
    assert len(stats["recent_orders"]) == 4

    revenue = client.get("/api/admin/dashboard/revenue", headers=auth(admin)).json()["revenue"]
    assert sum(day["revenue"] for day in revenue) == 11000


def test_low_stock(client, admin, product, place_order):
    place_order(lines=[("10", 1)])

    stats = client.get("/api/admin/dashboard", headers=auth(admin)).json()

    assert {"product_id": product.id, "product_name": product.name, "size": "10", "stock": 2} in (
        stats["low_stock"]
    )


def test_dashboard_requires_admin(client, customer):
    assert client.get("/api/admin/dashboard", headers=auth(customer)).status_code == 403
