import base64
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://sandbox.safaricom.co.ke"
PRODUCTION_URL = "https://api.safaricom.co.ke"

# refresh the oauth token this long before it expires
TOKEN_EXPIRY_BUFFER = 5 * 60


class MpesaError(Exception):
    """The Daraja API refused or could not be reached."""


def format_phone_number(phone_number: str) -> str:
    """07XXXXXXXX / +2547XXXXXXXX -> 2547XXXXXXXX"""
    phone = phone_number.strip().replace(" ", "")
    if phone.startswith("+"):
        phone = phone[1:]
    if phone.startswith("0"):
        phone = "254" + phone[1:]
    return phone


def stk_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d%H%M%S")


class MpesaClient:
    """
    Daraja STK push client.

    One instance per process; the oauth token is cached on the instance.
    """

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        business_short_code: str,
        passkey: str,
        environment: str = "sandbox",
        timeout: int = 30,
        http: Optional[requests.Session] = None,
    ):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.business_short_code = business_short_code
        self.passkey = passkey
        self.base_url = PRODUCTION_URL if environment == "production" else SANDBOX_URL
        self.timeout = timeout
        self.http = http or requests.Session()

        self._access_token: Optional[str] = None
        self._token_expiry: float = 0

        if not (consumer_key and consumer_secret and business_short_code and passkey):
            logger.warning("M-Pesa configuration is missing. Payments will fail.")

    @classmethod
    def from_settings(cls, settings) -> "MpesaClient":
        return cls(
            consumer_key=settings.MPESA_CONSUMER_KEY,
            consumer_secret=settings.MPESA_CONSUMER_SECRET,
            business_short_code=settings.MPESA_BUSINESS_SHORTCODE,
            passkey=settings.MPESA_PASSKEY,
            environment=settings.MPESA_ENVIRONMENT,
            timeout=settings.MPESA_TIMEOUT_SECONDS,
        )

    def get_access_token(self) -> str:
        if self._access_token and time.time() < self._token_expiry - TOKEN_EXPIRY_BUFFER:
            return self._access_token

        try:
            response = self.http.get(
                f"{self.base_url}/oauth/v1/generate",
                params={"grant_type": "client_credentials"},
                auth=(self.consumer_key, self.consumer_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise MpesaError(f"M-Pesa unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(f"M-Pesa token request failed ({response.status_code}): {response.text}")
            raise MpesaError("Failed to get M-Pesa access token")

        data = response.json()
        if not data.get("access_token"):
            raise MpesaError("Invalid response from M-Pesa: no access_token")

        self._access_token = data["access_token"]
        self._token_expiry = time.time() + int(data.get("expires_in", 3599))
        return self._access_token

    def generate_password(self, timestamp: str) -> str:
        raw = f"{self.business_short_code}{self.passkey}{timestamp}"
        return base64.b64encode(raw.encode("utf-8")).decode("utf-8")

    def stk_push(
        self,
        *,
        phone_number: str,
        amount: float,
        account_reference: str,
        description: str,
        callback_url: str,
    ) -> Dict[str, Any]:
        """
        Start a payment prompt on the customer's phone.

        Returns the gateway response; ``CheckoutRequestID`` is what the
        asynchronous callback will carry.
        """
        token = self.get_access_token()
        timestamp = stk_timestamp()
        phone = format_phone_number(phone_number)

        payload = {
            "BusinessShortCode": self.business_short_code,
            "Password": self.generate_password(timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": int(round(amount)),
            "PartyA": phone,
            "PartyB": self.business_short_code,
            "PhoneNumber": phone,
            "CallBackURL": callback_url,
            "AccountReference": account_reference,
            "TransactionDesc": description,
        }

        try:
            response = self.http.post(
                f"{self.base_url}/mpesa/stkpush/v1/processrequest",
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise MpesaError(f"M-Pesa unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(f"M-Pesa STK push failed ({response.status_code}): {response.text}")
            raise MpesaError(f"M-Pesa STK Push failed: {response.text}")

        data = response.json()
        if not data.get("CheckoutRequestID"):
            raise MpesaError("Invalid response from M-Pesa: no CheckoutRequestID")

        logger.info(f"STK push sent for {account_reference}: {data['CheckoutRequestID']}")
        return data
