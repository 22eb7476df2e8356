import base64
from datetime import datetime
from unittest import mock

import pytest
import requests

from app.services.mpesa_client import MpesaClient, MpesaError, format_phone_number, stk_timestamp
from app.services.paypal_client import PayPalClient, approval_url, capture_details


def _response(status_code, payload):
    response = mock.Mock(status_code=status_code, text=str(payload))
    response.json.return_value = payload
    return response


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0712345678", "254712345678"),
        ("+254712345678", "254712345678"),
        ("254712345678", "254712345678"),
        (" 0712 345 678 ", "254712345678"),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_stk_timestamp():
    assert stk_timestamp(datetime(2026, 1, 15, 9, 30, 12)) == "20260115093012"


def test_mpesa_password():
    client = MpesaClient("key", "secret", "174379", "passkey")
    expected = base64.b64encode(b"174379passkey20260115093012").decode()
    assert client.generate_password("20260115093012") == expected


def test_mpesa_stk_push_and_token_cache():
    http = mock.Mock()
    http.get.return_value = _response(200, {"access_token": "tok", "expires_in": "3599"})
    http.post.return_value = _response(
        200, {"CheckoutRequestID": "ws_CO_1", "CustomerMessage": "Success"}
    )
    client = MpesaClient("key", "secret", "174379", "passkey", http=http)

    for _ in range(2):
        result = client.stk_push(
            phone_number="0712345678",
            amount=5500.4,
            account_reference="KZ-20260115-ABC123",
            description="Payment for order KZ-20260115-ABC123",
            callback_url="http://localhost:8000/api/payments/mpesa/callback",
        )

    assert result["CheckoutRequestID"] == "ws_CO_1"
    assert http.get.call_count == 1
    body = http.post.call_args.kwargs["json"]
    assert body["Amount"] == 5500
    assert body["PartyA"] == "254712345678"
    assert body["BusinessShortCode"] == "174379"
    assert http.post.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"


def test_mpesa_errors():
    http = mock.Mock()
    http.get.return_value = _response(200, {"access_token": "tok", "expires_in": 3599})
    http.post.return_value = _response(400, {"errorMessage": "Invalid PhoneNumber"})
    client = MpesaClient("key", "secret", "174379", "passkey", http=http)

    with pytest.raises(MpesaError):
        client.stk_push(
            phone_number="07",
            amount=100,
            account_reference="ref",
            description="desc",
            callback_url="http://localhost/cb",
        )

    http.post.side_effect = requests.ConnectionError("down")
    with pytest.raises(MpesaError):
        client.stk_push(
            phone_number="0712345678",
            amount=100,
            account_reference="ref",
            description="desc",
            callback_url="http://localhost/cb",
        )


def test_paypal_helpers():
    assert approval_url({"links": [{"rel": "payer-action", "href": "https://pp/approve"}]}) == (
        "https://pp/approve"
    )
    assert approval_url({"links": []}) is None

    assert capture_details({
        "payer": {"payer_id": "P1"},
        "purchase_units": [{"payments": {"captures": [{"id": "C1"}]}}],
    }) == {"payer_id": "P1", "capture_id": "C1"}
    assert capture_details({}) == {"payer_id": None, "capture_id": None}


def test_paypal_webhook_verification():
    http = mock.Mock()
    http.post.return_value = _response(200, {"access_token": "tok", "expires_in": 32400})
    http.request.return_value = _response(200, {"verification_status": "SUCCESS"})
    client = PayPalClient("id", "secret", http=http)

    headers = {
        "paypal-transmission-id": "t-1",
        "paypal-transmission-time": "2026-01-15T09:30:12Z",
        "paypal-transmission-sig": "sig",
        "paypal-cert-url": "https://api.paypal.com/cert.pem",
        "paypal-auth-algo": "SHA256withRSA",
    }
    event = {"id": "WH-1", "event_type": "PAYMENT.CAPTURE.COMPLETED"}

    assert client.verify_webhook_signature(webhook_id="WH", headers=headers, event=event)
    sent = http.request.call_args.kwargs["json"]
    assert sent["webhook_id"] == "WH"
    assert sent["webhook_event"] == event
    assert sent["transmission_sig"] == "sig"

    http.request.return_value = _response(200, {"verification_status": "FAILURE"})
    assert not client.verify_webhook_signature(webhook_id="WH", headers=headers, event=event)

    # unsigned deliveries never reach PayPal
    http.request.reset_mock()
    assert not client.verify_webhook_signature(webhook_id="WH", headers={}, event=event)
    http.request.assert_not_called()
