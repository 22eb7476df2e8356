import secrets
import string
from datetime import datetime
from typing import Optional

from app.config import settings

_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(now: Optional[datetime] = None) -> str:
    """Human readable order number, e.g. KZ-20250115-A1B2C3."""
    now = now or datetime.utcnow()
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"{settings.ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{suffix}"
