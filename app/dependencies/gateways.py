from functools import lru_cache

from app.config import settings
from app.services.mpesa_client import MpesaClient
from app.services.paypal_client import PayPalClient


@lru_cache(maxsize=1)
def get_mpesa_client() -> MpesaClient:
    return MpesaClient.from_settings(settings)


@lru_cache(maxsize=1)
def get_paypal_client() -> PayPalClient:
    return PayPalClient.from_settings(settings)
