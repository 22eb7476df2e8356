from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, Index, JSON


class OrderEvent(SQLModel, table=True):
    """One line of an order's timeline. Rows are only ever appended."""
    __tablename__ = "order_event"
    __table_args__ = (
        Index("ix_order_event_order_created", "order_id", "created_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    # order_placed | payment_completed | payment_failed | payment_refunded
    # status_changed | order_cancelled
    event_type: str = Field(index=True)
    label: str

    # from/to statuses, payment ids, stock restore failures ...
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    # user | admin | mpesa | paypal | system
    created_by: str = Field(default="system", max_length=20)
