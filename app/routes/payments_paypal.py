import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.config import settings
from app.constants.order_status import OrderStatus, PaymentMethod, PaymentProvider, PaymentStatus
from app.database import get_session
from app.dependencies.gateways import get_paypal_client
from app.dependencies.policy import Action, authorize
from app.models.order import Order
from app.models.payment import Payment
from app.models.user import User
from app.schemas.payment_schemas import PayPalCaptureRequest, PayPalCreateRequest, PayPalWebhookEvent
from app.services.payment_service import (
    find_payment,
    mark_payment_completed,
    mark_payment_failed,
    mark_payment_refunded,
)
from app.services.paypal_client import PayPalClient, PayPalError, approval_url, capture_details
from app.services.webhook_ledger import already_processed, record_event
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
CAPTURE_DENIED = "PAYMENT.CAPTURE.DENIED"
CAPTURE_REFUNDED = "PAYMENT.CAPTURE.REFUNDED"


def to_reference_currency(amount: float) -> float:
    """Store currency -> PayPal currency at the configured fixed rate."""
    return round(amount / settings.PAYPAL_EXCHANGE_RATE, 2)


@router.post("/create")
def create_paypal_order(
    data: PayPalCreateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    paypal: PayPalClient = Depends(get_paypal_client),
):
    order = session.get(Order, data.order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    authorize(current_user, Action.PAY_ORDER, order)

    if order.payment_method != PaymentMethod.PAYPAL.value:
        raise HTTPException(400, "Order payment method is not PayPal")

    if order.status != OrderStatus.PENDING.value:
        raise HTTPException(400, "Order is not pending")

    return_url = f"{settings.FRONTEND_URL}/orders/{order.id}?success=true&payment=paypal"
    cancel_url = f"{settings.FRONTEND_URL}/orders/{order.id}?canceled=true"

    try:
        paypal_order = paypal.create_order(
            amount=to_reference_currency(order.total),
            currency=settings.PAYPAL_CURRENCY,
            reference=order.order_number,
            return_url=return_url,
            cancel_url=cancel_url,
        )
    except PayPalError as exc:
        logger.error(f"PayPal order creation failed for {order.order_number}: {exc}")
        raise HTTPException(502, "Failed to create PayPal order")

    payment = Payment(
        order_id=order.id,
        provider=PaymentProvider.PAYPAL.value,
        correlation_id=paypal_order["id"],
        amount=order.total,
        status=PaymentStatus.PENDING.value,
    )
    session.add(payment)
    session.commit()

    logger.info(f"PayPal order {paypal_order['id']} created for {order.order_number}")

    return {
        "paypal_order_id": paypal_order["id"],
        "approval_url": approval_url(paypal_order),
        "message": "PayPal order created successfully",
    }


@router.post("/capture")
def capture_paypal_order(
    data: PayPalCaptureRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    paypal: PayPalClient = Depends(get_paypal_client),
):
    payment = find_payment(session, PaymentProvider.PAYPAL.value, data.paypal_order_id)
    if not payment:
        raise HTTPException(404, "Payment record not found")

    authorize(current_user, Action.PAY_ORDER, payment.order)

    if payment.status == PaymentStatus.COMPLETED.value:
        return {
            "success": True,
            "message": "Payment already captured",
            "order_id": payment.order_id,
        }

    if (
        payment.status != PaymentStatus.PENDING.value
        or payment.order.status != OrderStatus.PENDING.value
    ):
        raise HTTPException(400, f"Payment cannot be captured (status: {payment.status})")

    try:
        capture = paypal.capture_order(data.paypal_order_id)
    except PayPalError as exc:
        logger.error(f"PayPal capture failed for {data.paypal_order_id}: {exc}")
        raise HTTPException(502, "Failed to capture PayPal payment")

    details = capture_details(capture)
    mark_payment_completed(
        session,
        payment,
        payload=capture,
        payer_id=details["payer_id"],
        capture_id=details["capture_id"],
    )
    session.commit()

    return {
        "success": True,
        "message": "Payment captured successfully",
        "order_id": payment.order_id,
    }


@router.post("/webhook")
def paypal_webhook(
    request: Request,
    raw: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    paypal: PayPalClient = Depends(get_paypal_client),
):
    webhook_id = settings.PAYPAL_WEBHOOK_ID
    if not webhook_id:
        logger.error("PayPal webhook ID not configured")
        raise HTTPException(500, "Webhook not configured")

    try:
        event = PayPalWebhookEvent.model_validate(raw)
    except ValidationError:
        raise HTTPException(400, "Invalid webhook payload")

    try:
        valid = paypal.verify_webhook_signature(
            webhook_id=webhook_id,
            headers=request.headers,
            event=raw,
        )
    except PayPalError as exc:
        logger.error(f"PayPal webhook verification failed: {exc}")
        raise HTTPException(502, "Could not verify webhook signature")

    if not valid:
        logger.error(f"Invalid webhook signature for event {event.id}")
        raise HTTPException(401, "Invalid signature")

    logger.info(f"Received PayPal webhook: {event.event_type} ({event.id})")
    provider = PaymentProvider.PAYPAL.value

    handlers = {
        CAPTURE_COMPLETED: lambda p: mark_payment_completed(
            session, p, payload=raw, capture_id=event.resource.get("id")
        ),
        CAPTURE_DENIED: lambda p: mark_payment_failed(
            session, p, payload=raw, reason="capture denied"
        ),
        CAPTURE_REFUNDED: lambda p: mark_payment_refunded(session, p, payload=raw),
    }

    handler = handlers.get(event.event_type)
    if handler is None:
        logger.info(f"Unhandled webhook event: {event.event_type}")
        return {"received": True}

    if already_processed(session, provider, event.id):
        logger.info(f"Duplicate PayPal webhook {event.id} ignored")
        return {"received": True, "duplicate": True}

    paypal_order_id = event.related_order_id()
    if not paypal_order_id:
        logger.error(f"No PayPal order ID in webhook event {event.id}")
        return {"received": True}

    payment = find_payment(session, provider, paypal_order_id)
    if not payment:
        logger.error(f"Payment not found for PayPal order: {paypal_order_id}")
        return {"received": True}

    handler(payment)
    record_event(session, provider, event.id, event.event_type)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(f"Duplicate PayPal webhook {event.id} ignored")
        return {"received": True, "duplicate": True}

    return {"received": True}
