import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import OrderStatus, PaymentMethod, PaymentProvider, PaymentStatus
from app.database import get_session
from app.dependencies.gateways import get_mpesa_client
from app.models.order import Order
from app.models.payment import Payment
from app.models.user import User
from app.schemas.payment_schemas import MpesaCallback, MpesaInitiateRequest
from app.services.mpesa_client import MpesaClient, MpesaError
from app.services.payment_service import find_payment, mark_payment_completed, mark_payment_failed
from app.services.webhook_ledger import already_processed, record_event
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

MPESA_SUCCESS = 0


@router.post("/initiate")
def initiate_payment(
    data: MpesaInitiateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    mpesa: MpesaClient = Depends(get_mpesa_client),
):
    order = session.exec(
        select(Order).where(
            Order.id == data.order_id,
            Order.user_id == current_user.id,
            Order.payment_method == PaymentMethod.MPESA.value,
        )
    ).first()

    if not order:
        raise HTTPException(404, "Order not found")

    if order.status != OrderStatus.PENDING.value:
        raise HTTPException(400, "Order is not pending")

    payment = session.exec(
        select(Payment).where(
            Payment.order_id == order.id,
            Payment.provider == PaymentProvider.MPESA.value,
            Payment.status == PaymentStatus.PENDING.value,
        )
    ).first()

    if not payment:
        payment = Payment(
            order_id=order.id,
            provider=PaymentProvider.MPESA.value,
            amount=order.total,
            status=PaymentStatus.PENDING.value,
        )
    payment.phone_number = data.phone_number

    try:
        stk = mpesa.stk_push(
            phone_number=data.phone_number,
            amount=order.total,
            account_reference=order.order_number,
            description=f"Payment for order {order.order_number}",
            callback_url=settings.mpesa_callback_url,
        )
    except MpesaError as exc:
        logger.error(f"M-Pesa initiate failed for order {order.order_number}: {exc}")
        raise HTTPException(502, str(exc) or "Failed to initiate payment")

    # a new push replaces whatever request id an earlier attempt left behind
    payment.correlation_id = stk["CheckoutRequestID"]
    session.add(payment)
    session.commit()
    session.refresh(payment)

    return {
        "success": True,
        "message": stk.get("CustomerMessage", "Check your phone to complete the payment"),
        "checkout_request_id": payment.correlation_id,
        "payment_id": payment.id,
    }


@router.post("/callback")
def mpesa_callback(
    body: MpesaCallback,
    session: Session = Depends(get_session),
):
    """Daraja result notification. Unauthenticated, the payload is trusted."""
    callback = body.Body.stkCallback
    checkout_request_id = callback.CheckoutRequestID
    provider = PaymentProvider.MPESA.value

    logger.info(
        f"M-Pesa callback for {checkout_request_id}: "
        f"ResultCode={callback.ResultCode} {callback.ResultDesc or ''}"
    )

    payment = find_payment(session, provider, checkout_request_id)
    if not payment:
        logger.error(f"Payment not found for checkout request: {checkout_request_id}")
        raise HTTPException(404, "Payment not found")

    if already_processed(session, provider, checkout_request_id):
        logger.info(f"Duplicate M-Pesa callback for {checkout_request_id} ignored")
        return {"success": True, "duplicate": True}

    payload = body.model_dump()

    if callback.ResultCode == MPESA_SUCCESS and callback.CallbackMetadata:
        receipt = callback.metadata_value("MpesaReceiptNumber")
        phone = callback.metadata_value("PhoneNumber")
        mark_payment_completed(
            session,
            payment,
            payload=payload,
            receipt_number=str(receipt) if receipt is not None else None,
            phone_number=str(phone) if phone is not None else None,
        )
        event_type = "stk_success"
    else:
        mark_payment_failed(session, payment, payload=payload, reason=callback.ResultDesc)
        event_type = "stk_failed"

    record_event(session, provider, checkout_request_id, event_type)

    try:
        session.commit()
    except IntegrityError:
        # a concurrent delivery of the same callback got there first
        session.rollback()
        logger.info(f"Duplicate M-Pesa callback for {checkout_request_id} ignored")
        return {"success": True, "duplicate": True}

    return {"success": True}
