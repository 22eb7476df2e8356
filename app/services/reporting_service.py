from typing import List

from sqlmodel import Session, func, select

from app.config import settings
from app.constants.order_status import OrderStatus, REVENUE_EXCLUDED_STATUSES
from app.models.order import Order
from app.models.product import Product
from app.models.product_size import ProductSize
from app.models.user import User

_EXCLUDED = [s.value for s in REVENUE_EXCLUDED_STATUSES]


def total_revenue(session: Session) -> float:
    revenue = session.exec(
        select(func.sum(Order.total)).where(Order.status.not_in(_EXCLUDED))
    ).one()
    return revenue or 0


def orders_by_status(session: Session) -> dict:
    rows = session.exec(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    ).all()
    counts = {s.value: 0 for s in OrderStatus}
    counts.update({status: count for status, count in rows})
    return counts


def low_stock(session: Session, threshold: int) -> List[dict]:
    rows = session.exec(
        select(ProductSize, Product.name)
        .join(Product, Product.id == ProductSize.product_id)
        .where(ProductSize.stock <= threshold)
        .order_by(ProductSize.stock, Product.name)
    ).all()
    return [
        {"product_id": s.product_id, "product_name": name, "size": s.size, "stock": s.stock}
        for s, name in rows
    ]


def dashboard_stats(session: Session) -> dict:
    recent = session.exec(
        select(Order, User)
        .join(User, User.id == Order.user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(5)
    ).all()

    return {
        "total_orders": session.exec(select(func.count(Order.id))).one(),
        "total_revenue": total_revenue(session),
        "total_products": session.exec(select(func.count(Product.id))).one(),
        "orders_by_status": orders_by_status(session),
        "low_stock": low_stock(session, settings.LOW_STOCK_THRESHOLD),
        "recent_orders": [
            {
                "order_id": o.id,
                "order_number": o.order_number,
                "customer_name": u.name,
                "customer_email": u.email,
                "total": o.total,
                "status": o.status,
                "created_at": o.created_at,
            }
            for o, u in recent
        ],
    }


def revenue_by_day(session: Session) -> List[dict]:
    day = func.date(Order.created_at)
    rows = session.exec(
        select(day, func.sum(Order.total))
        .where(Order.status.not_in(_EXCLUDED))
        .group_by(day)
        .order_by(day)
    ).all()
    return [{"date": str(d), "revenue": total} for d, total in rows]
