import logging

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import require_action
from app.dependencies.policy import Action
from app.models.user import User
from app.schemas.order_schemas import OrderCreate
from app.services.invoice_service import generate_invoice_pdf
from app.services.order_cancellation import cancel_order
from app.services.order_event_service import order_timeline
from app.services.order_service import (
    create_order,
    get_owned_order,
    list_user_orders,
    serialize_order,
)
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def place_order(
    data: OrderCreate,
    session: Session = Depends(get_session),
    # resolved before the body is processed: admins are refused up front
    current_user: User = Depends(require_action(Action.PLACE_ORDER)),
):
    order = create_order(session, current_user, data)
    return {"order": serialize_order(order)}


@router.get("")
def my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    orders = list_user_orders(session, current_user)
    return {"orders": [serialize_order(o) for o in orders]}


@router.get("/{order_id}")
def order_detail(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = get_owned_order(session, order_id, current_user.id)

    data = serialize_order(order)
    data["timeline"] = order_timeline(session, order.id)
    return {"order": data}


@router.post("/{order_id}/cancel")
def cancel_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    """
    User cancels their own order
    """
    order = get_owned_order(session, order_id, current_user.id)

    result = cancel_order(session, order, cancelled_by="user")

    return {
        "success": True,
        "message": "Order cancelled successfully and inventory has been restored",
        "order_id": order.id,
        "status": order.status,
        "stock_restored": result["restored"],
        "stock_restore_failures": result["failures"],
    }


@router.get("/{order_id}/invoice")
def download_invoice(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = get_owned_order(session, order_id, current_user.id)

    return Response(
        content=generate_invoice_pdf(order),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice_{order.order_number}.pdf"'},
    )
