from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    MPESA = "MPESA"
    PAYPAL = "PAYPAL"


class PaymentProvider(str, Enum):
    MPESA = "MPESA"
    PAYPAL = "PAYPAL"


# no transition leaves these
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

# payments that follow their order into CANCELLED
CANCELLABLE_PAYMENT_STATUSES = {PaymentStatus.PENDING, PaymentStatus.COMPLETED}

# checked in this order, most final state first
CANCEL_REFUSALS = [
    (
        OrderStatus.DELIVERED,
        "Cannot cancel a delivered order. Please contact support for returns or refunds.",
    ),
    (
        OrderStatus.SHIPPED,
        "Cannot cancel an order that has been shipped. Please contact support for returns.",
    ),
    (
        OrderStatus.CANCELLED,
        "Order is already cancelled",
    ),
]

# statuses left out of revenue
REVENUE_EXCLUDED_STATUSES = {OrderStatus.CANCELLED, OrderStatus.PENDING}
