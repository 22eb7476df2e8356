from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON, UniqueConstraint
from typing import Optional, TYPE_CHECKING
from datetime import datetime

from app.constants.order_status import PaymentStatus

if TYPE_CHECKING:
    from app.models.order import Order


class Payment(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("provider", "correlation_id", name="uq_payment_provider_correlation"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    provider: str  # MPESA | PAYPAL
    amount: float
    status: str = Field(default=PaymentStatus.PENDING.value, index=True)

    # CheckoutRequestID for m-pesa, gateway order id for paypal
    correlation_id: Optional[str] = Field(default=None, index=True)

    phone_number: Optional[str] = None
    receipt_number: Optional[str] = None
    payer_id: Optional[str] = None
    capture_id: Optional[str] = None

    callback_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    order: Optional["Order"] = Relationship(back_populates="payments")
