import logging
from datetime import datetime
from typing import List

from fastapi import HTTPException
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import OrderStatus, PaymentMethod, PaymentProvider, PaymentStatus
from app.dependencies.policy import Action, authorize
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.payment import Payment
from app.models.user import User
from app.schemas.order_schemas import OrderCreate
from app.services.inventory_service import reserve_stock
from app.services.order_event_service import ORDER_PLACED, log_order_event
from app.utils.order_number import generate_order_number

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5


def calculate_totals(items) -> dict:
    subtotal = sum(item.price * item.quantity for item in items)
    shipping_cost = settings.SHIPPING_COST
    return {
        "subtotal": subtotal,
        "shipping_cost": shipping_cost,
        "total": subtotal + shipping_cost,
    }


def _unique_order_number(session: Session) -> str:
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        candidate = generate_order_number()
        taken = session.exec(
            select(Order.id).where(Order.order_number == candidate)
        ).first()
        if taken is None:
            return candidate
    raise HTTPException(500, "Could not allocate an order number")


def create_order(session: Session, user: User, data: OrderCreate) -> Order:
    """
    Turn checkout contents into a PENDING order.

    Stock reservation, the order, its items and (for M-Pesa) its pending
    payment are committed together or not at all.
    """
    authorize(user, Action.PLACE_ORDER)

    totals = calculate_totals(data.items)

    try:
        reserve_stock(session, data.items)

        order = Order(
            order_number=_unique_order_number(session),
            user_id=user.id,
            subtotal=totals["subtotal"],
            shipping_cost=totals["shipping_cost"],
            total=totals["total"],
            shipping_address=data.shipping_address.model_dump(),
            phone=data.phone,
            payment_method=data.payment_method.value,
            status=OrderStatus.PENDING.value,
        )
        session.add(order)
        session.flush()

        for item in data.items:
            session.add(OrderItem(
                order_id=order.id,
                product_id=item.product_id,
                product_name=item.product_name,
                size=item.size,
                price=item.price,
                quantity=item.quantity,
            ))

        if data.payment_method == PaymentMethod.MPESA:
            session.add(Payment(
                order_id=order.id,
                provider=PaymentProvider.MPESA.value,
                amount=order.total,
                status=PaymentStatus.PENDING.value,
                phone_number=data.phone,
            ))

        log_order_event(
            session,
            order.id,
            ORDER_PLACED,
            f"Order {order.order_number} placed",
            created_by="user",
            meta={"total": order.total, "payment_method": order.payment_method},
        )

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(order)
    logger.info(f"Order {order.order_number} created for user {user.id}, total {order.total}")
    return order


def get_owned_order(session: Session, order_id: int, user_id: int) -> Order:
    """Owner-scoped lookup; someone else's order is simply not found."""
    order = session.exec(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    ).first()
    if not order:
        raise HTTPException(404, "Order not found")
    return order


def list_user_orders(session: Session, user: User) -> List[Order]:
    # admin accounts never own orders
    if user.is_admin:
        return []

    return session.exec(
        select(Order)
        .where(Order.user_id == user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()


def touch(order: Order) -> None:
    order.updated_at = datetime.utcnow()


def serialize_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "provider": payment.provider,
        "amount": payment.amount,
        "status": payment.status,
        "correlation_id": payment.correlation_id,
        "phone_number": payment.phone_number,
        "receipt_number": payment.receipt_number,
        "created_at": payment.created_at,
        "updated_at": payment.updated_at,
    }


def serialize_order(order: Order) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "subtotal": order.subtotal,
        "shipping_cost": order.shipping_cost,
        "total": order.total,
        "payment_method": order.payment_method,
        "phone": order.phone,
        "shipping_address": order.shipping_address,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "product_name": i.product_name,
                "size": i.size,
                "price": i.price,
                "quantity": i.quantity,
                "line_total": i.line_total,
            }
            for i in order.items
        ],
        "payments": [serialize_payment(p) for p in order.payments],
    }
