import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import OrderStatus, PaymentProvider, PaymentStatus
from app.models.payment import Payment
from app.services.order_cancellation import cancel_order, cancellation_refusal
from app.services.order_event_service import (
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    PAYMENT_REFUNDED,
    log_order_event,
)
from app.services.order_service import touch

logger = logging.getLogger(__name__)


def failure_cancels_order(provider: str) -> bool:
    """What a failed gateway payment does to its order, per provider."""
    if provider == PaymentProvider.PAYPAL.value:
        return settings.PAYPAL_DENIAL_CANCELS_ORDER
    if provider == PaymentProvider.MPESA.value:
        return settings.MPESA_FAILURE_CANCELS_ORDER
    return False


def find_payment(session: Session, provider: str, correlation_id: str) -> Optional[Payment]:
    return session.exec(
        select(Payment).where(
            Payment.provider == provider,
            Payment.correlation_id == correlation_id,
        )
    ).first()


def mark_payment_completed(
    session: Session,
    payment: Payment,
    *,
    payload: Optional[dict] = None,
    receipt_number: Optional[str] = None,
    phone_number: Optional[str] = None,
    payer_id: Optional[str] = None,
    capture_id: Optional[str] = None,
) -> Payment:
    """Payment -> COMPLETED, its order PENDING -> PROCESSING. Caller commits."""
    payment.status = PaymentStatus.COMPLETED.value
    payment.receipt_number = receipt_number or payment.receipt_number
    payment.phone_number = phone_number or payment.phone_number
    payment.payer_id = payer_id or payment.payer_id
    payment.capture_id = capture_id or payment.capture_id
    if payload is not None:
        payment.callback_data = payload
    payment.updated_at = datetime.utcnow()
    session.add(payment)

    order = payment.order
    if order.status == OrderStatus.PENDING.value:
        order.status = OrderStatus.PROCESSING.value
        touch(order)
        session.add(order)
    else:
        logger.warning(
            f"Payment {payment.id} completed but order {order.order_number} is "
            f"{order.status}; order status left unchanged"
        )

    log_order_event(
        session,
        order.id,
        PAYMENT_COMPLETED,
        f"Payment received via {payment.provider}",
        created_by=payment.provider.lower(),
        meta={"payment_id": payment.id, "amount": payment.amount, "receipt": payment.receipt_number},
    )
    logger.info(f"Payment {payment.id} completed for order {order.order_number}")
    return payment


def mark_payment_failed(
    session: Session,
    payment: Payment,
    *,
    payload: Optional[dict] = None,
    reason: Optional[str] = None,
) -> Payment:
    """
    Payment -> FAILED. Whether the order is cancelled as well is decided by
    ``failure_cancels_order`` for the payment's provider. Caller commits.
    """
    payment.status = PaymentStatus.FAILED.value
    if payload is not None:
        payment.callback_data = payload
    payment.updated_at = datetime.utcnow()
    session.add(payment)

    order = payment.order
    log_order_event(
        session,
        order.id,
        PAYMENT_FAILED,
        f"Payment via {payment.provider} failed",
        created_by=payment.provider.lower(),
        meta={"payment_id": payment.id, "reason": reason},
    )

    if failure_cancels_order(payment.provider):
        refusal = cancellation_refusal(order)
        if refusal:
            logger.warning(
                f"Payment {payment.id} failed but order {order.order_number} "
                f"cannot be cancelled: {refusal}"
            )
        else:
            cancel_order(
                session,
                order,
                cancelled_by=payment.provider.lower(),
                reason=reason or "payment failed",
                commit=False,
            )

    logger.info(f"Payment {payment.id} failed for order {order.order_number}")
    return payment


def mark_payment_refunded(
    session: Session,
    payment: Payment,
    *,
    payload: Optional[dict] = None,
) -> Payment:
    """Payment -> CANCELLED; the order keeps its status. Caller commits."""
    payment.status = PaymentStatus.CANCELLED.value
    if payload is not None:
        payment.callback_data = payload
    payment.updated_at = datetime.utcnow()
    session.add(payment)

    log_order_event(
        session,
        payment.order_id,
        PAYMENT_REFUNDED,
        f"Payment via {payment.provider} refunded",
        created_by=payment.provider.lower(),
        meta={"payment_id": payment.id},
    )
    logger.info(f"Payment {payment.id} refunded for order {payment.order_id}")
    return payment
