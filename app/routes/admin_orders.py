# -------- ADMIN ORDERS --------
import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import String, cast
from sqlmodel import Session, or_, select

from app.constants.order_status import OrderStatus, TERMINAL_STATUSES
from app.database import get_session
from app.dependencies.admin import require_action
from app.dependencies.policy import Action
from app.models.order import Order
from app.models.user import User
from app.schemas.order_schemas import OrderStatusUpdate
from app.services.order_cancellation import cancel_order
from app.services.order_event_service import STATUS_CHANGED, log_order_event, order_timeline
from app.services.order_service import serialize_order, touch
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

require_order_admin = require_action(Action.UPDATE_ORDER_STATUS)


@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_order_admin)
):
    query = (
        select(Order, User)
        .join(User, User.id == Order.user_id)
    )

    if search:
        like = f"%{search}%"
        query = query.where(
            or_(
                User.name.ilike(like),
                User.email.ilike(like),
                Order.order_number.ilike(like),
                cast(Order.id, String).ilike(like),
            )
        )

    if status:
        query = query.where(Order.status == status.value)

    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        query = query.where(Order.created_at <= datetime.combine(end_date, time.max))

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda row: {
            "order_id": row[0].id,
            "order_number": row[0].order_number,
            "customer_name": row[1].name,
            "customer_email": row[1].email,
            "date": row[0].created_at.date(),
            "total_amount": row[0].total,
            "payment_method": row[0].payment_method,
            "status": row[0].status,
        },
    )


@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_order_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    customer = session.get(User, order.user_id)

    data = serialize_order(order)
    data["customer"] = {
        "id": customer.id,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
    }
    data["timeline"] = order_timeline(session, order.id)
    return {"order": data}


@router.patch("/{order_id}")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_order_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    if order.status == OrderStatus.CANCELLED.value:
        raise HTTPException(400, "Cannot update a cancelled order. Cancelled orders are final.")

    if order.status in {s.value for s in TERMINAL_STATUSES}:
        raise HTTPException(400, f"Cannot update a {order.status.lower()} order. This status is final.")

    new_status = data.status.value
    previous_status = order.status

    if new_status == previous_status:
        return {"order": serialize_order(order)}

    if data.status == OrderStatus.CANCELLED:
        # same rules and side effects as the customer's own cancellation
        cancel_order(session, order, cancelled_by="admin")
    else:
        order.status = new_status
        touch(order)
        session.add(order)

        log_order_event(
            session,
            order.id,
            STATUS_CHANGED,
            f"Status changed to {new_status}",
            created_by="admin",
            meta={"from": previous_status, "to": new_status, "admin_id": admin.id},
        )
        session.commit()
        session.refresh(order)

    logger.info(f"Admin {admin.id} moved order {order.order_number} {previous_status} -> {new_status}")
    return {"order": serialize_order(order)}
