import logging
import time
from typing import Any, Dict, Mapping, Optional

import requests

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://api-m.sandbox.paypal.com"
LIVE_URL = "https://api-m.paypal.com"

TOKEN_EXPIRY_BUFFER = 5 * 60

# headers PayPal signs every webhook delivery with
SIGNATURE_HEADERS = {
    "transmission_id": "paypal-transmission-id",
    "transmission_time": "paypal-transmission-time",
    "transmission_sig": "paypal-transmission-sig",
    "cert_url": "paypal-cert-url",
    "auth_algo": "paypal-auth-algo",
}


class PayPalError(Exception):
    """The PayPal REST API refused or could not be reached."""


def approval_url(paypal_order: Dict[str, Any]) -> Optional[str]:
    for link in paypal_order.get("links", []):
        if link.get("rel") in ("approve", "payer-action"):
            return link.get("href")
    return None


def capture_details(capture: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Payer id and capture id out of a capture response."""
    payer_id = (capture.get("payer") or {}).get("payer_id")

    capture_id = None
    units = capture.get("purchase_units") or []
    if units:
        captures = (units[0].get("payments") or {}).get("captures") or []
        if captures:
            capture_id = captures[0].get("id")

    return {"payer_id": payer_id, "capture_id": capture_id}


class PayPalClient:
    """Orders v2 + webhook verification over the PayPal REST API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        mode: str = "sandbox",
        brand_name: str = "",
        timeout: int = 30,
        http: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = LIVE_URL if mode == "live" else SANDBOX_URL
        self.brand_name = brand_name
        self.timeout = timeout
        self.http = http or requests.Session()

        self._access_token: Optional[str] = None
        self._token_expiry: float = 0

        if not (client_id and client_secret):
            logger.warning("PayPal configuration is missing. Payments will fail.")

    @classmethod
    def from_settings(cls, settings) -> "PayPalClient":
        return cls(
            client_id=settings.PAYPAL_CLIENT_ID,
            client_secret=settings.PAYPAL_CLIENT_SECRET,
            mode=settings.PAYPAL_MODE,
            brand_name=settings.STORE_NAME,
            timeout=settings.PAYPAL_TIMEOUT_SECONDS,
        )

    def get_access_token(self) -> str:
        if self._access_token and time.time() < self._token_expiry - TOKEN_EXPIRY_BUFFER:
            return self._access_token

        try:
            response = self.http.post(
                f"{self.base_url}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PayPalError(f"PayPal unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(f"PayPal token request failed ({response.status_code}): {response.text}")
            raise PayPalError("Failed to get PayPal access token")

        data = response.json()
        self._access_token = data["access_token"]
        self._token_expiry = time.time() + int(data.get("expires_in", 32400))
        return self._access_token

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.get_access_token()}",
            "Content-Type": "application/json",
        }
        headers.update(kwargs.pop("headers", {}))

        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise PayPalError(f"PayPal unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(f"PayPal {method} {path} failed ({response.status_code}): {response.text}")
            raise PayPalError(f"PayPal request failed: {response.text}")

        return response.json()

    def create_order(
        self,
        *,
        amount: float,
        currency: str,
        reference: str,
        return_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": reference,
                    "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
                }
            ],
            "application_context": {
                "return_url": return_url,
                "cancel_url": cancel_url,
                "brand_name": self.brand_name,
                "landing_page": "BILLING",
                "user_action": "PAY_NOW",
            },
        }
        return self._request("POST", "/v2/checkout/orders", json=body)

    def capture_order(self, paypal_order_id: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/v2/checkout/orders/{paypal_order_id}/capture",
            headers={"Prefer": "return=representation"},
        )

    def verify_webhook_signature(
        self,
        *,
        webhook_id: str,
        headers: Mapping[str, str],
        event: Dict[str, Any],
    ) -> bool:
        """Ask PayPal whether the delivery was signed for ``webhook_id``."""
        body = {field: headers.get(header, "") for field, header in SIGNATURE_HEADERS.items()}
        if not all(body.values()):
            logger.warning("PayPal webhook is missing signature headers")
            return False

        body["webhook_id"] = webhook_id
        body["webhook_event"] = event

        result = self._request("POST", "/v1/notifications/verify-webhook-signature", json=body)
        return result.get("verification_status") == "SUCCESS"
