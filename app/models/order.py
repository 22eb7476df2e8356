from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime

from app.constants.order_status import OrderStatus
from app.models.order_item import OrderItem
from app.models.payment import Payment

class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(index=True, unique=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    subtotal: float
    shipping_cost: float
    total: float

    # snapshot: full_name, phone, address_line1, address_line2, city, postal_code
    shipping_address: dict = Field(sa_column=Column(JSON, nullable=False))
    phone: str
    payment_method: str

    status: str = Field(default=OrderStatus.PENDING.value, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
    payments: List["Payment"] = Relationship(back_populates="order")
