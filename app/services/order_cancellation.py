import logging
from typing import Optional

from fastapi import HTTPException
from sqlmodel import Session

from app.constants.order_status import (
    CANCEL_REFUSALS,
    CANCELLABLE_PAYMENT_STATUSES,
    CANCELLABLE_STATUSES,
    OrderStatus,
    PaymentStatus,
)
from app.models.order import Order
from app.services.inventory_service import restore_stock
from app.services.order_event_service import ORDER_CANCELLED, log_order_event
from app.services.order_service import touch

logger = logging.getLogger(__name__)


def cancellation_refusal(order: Order) -> Optional[str]:
    """Why ``order`` cannot be cancelled, or None when it can."""
    for status, message in CANCEL_REFUSALS:
        if order.status == status.value:
            return message

    if order.status not in {s.value for s in CANCELLABLE_STATUSES}:
        return (
            f"Cannot cancel an order with status: {order.status}. "
            "Only PENDING or PROCESSING orders can be cancelled."
        )
    return None


def cancel_order(
    session: Session,
    order: Order,
    *,
    cancelled_by: str = "user",
    reason: Optional[str] = None,
    commit: bool = True,
) -> dict:
    """
    PENDING/PROCESSING -> CANCELLED.

    Cancels the order, restores stock line by line and cancels any pending
    or completed payment. A line whose stock cannot be restored does not stop
    the cancellation.
    """
    refusal = cancellation_refusal(order)
    if refusal:
        raise HTTPException(400, refusal)

    previous_status = order.status
    order.status = OrderStatus.CANCELLED.value
    touch(order)
    session.add(order)
    # the stock savepoints nest inside the transaction this update opens
    session.flush()

    restored, failures = restore_stock(session, order.items)

    cancellable_payments = {s.value for s in CANCELLABLE_PAYMENT_STATUSES}
    for payment in order.payments:
        if payment.status in cancellable_payments:
            payment.status = PaymentStatus.CANCELLED.value
            session.add(payment)

    log_order_event(
        session,
        order.id,
        ORDER_CANCELLED,
        "Order cancelled",
        created_by=cancelled_by,
        meta={
            "from": previous_status,
            "reason": reason,
            "stock_restore_failures": failures,
        },
    )

    if commit:
        session.commit()
        session.refresh(order)

    if failures:
        logger.warning(
            f"Order {order.order_number} cancelled with {len(failures)} stock restore failure(s)"
        )
    logger.info(f"Order {order.order_number} cancelled by {cancelled_by} (was {previous_status})")

    return {"restored": restored, "failures": failures}
