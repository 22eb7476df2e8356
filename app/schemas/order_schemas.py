from pydantic import BaseModel, Field
from typing import List, Optional

from app.constants.order_status import OrderStatus, PaymentMethod


class OrderItemCreate(BaseModel):
    product_id: int
    size: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    price: float = Field(gt=0)
    product_name: str = Field(min_length=1)


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    postal_code: Optional[str] = None


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(min_length=1)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    phone: str = Field(min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
