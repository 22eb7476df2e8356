from sqlmodel import Session, select

from app.models.order import Order
from app.models.payment import Payment
from app.models.webhook_event import WebhookEvent
from conftest import auth, stock_of


def _callback(checkout_request_id, result_code=0, receipt="QGH7XK2L9P"):
    callback = {
        "MerchantRequestID": "29115-34620561-1",
        "CheckoutRequestID": checkout_request_id,
        "ResultCode": result_code,
        "ResultDesc": (
            "The service request is processed successfully."
            if result_code == 0
            else "Request cancelled by user"
        ),
    }
    if result_code == 0:
        callback["CallbackMetadata"] = {
            "Item": [
                {"Name": "Amount", "Value": 5500},
                {"Name": "MpesaReceiptNumber", "Value": receipt},
                {"Name": "TransactionDate", "Value": 20260115093012},
                {"Name": "PhoneNumber", "Value": 254712345678},
            ]
        }
    return {"Body": {"stkCallback": callback}}


def _initiate(client, customer, order):
    response = client.post(
        "/api/payments/mpesa/initiate",
        json={"order_id": order["id"], "phone_number": "0712345678"},
        headers=auth(customer),
    )
    assert response.status_code == 200, response.text
    return response.json()


def _payment(engine, order_id):
    with Session(engine) as session:
        return session.exec(select(Payment).where(Payment.order_id == order_id)).one()


def _order_status(engine, order_id):
    with Session(engine) as session:
        return session.get(Order, order_id).status


def test_initiate_sends_stk_push(client, engine, mpesa, customer, place_order):
    order = place_order(payment_method="MPESA")

    body = _initiate(client, customer, order)

    assert body["success"] is True
    assert body["checkout_request_id"] == "ws_CO_TEST_1"
    assert mpesa.pushes[0]["amount"] == order["total"]
    assert mpesa.pushes[0]["account_reference"] == order["order_number"]
    assert mpesa.pushes[0]["callback_url"].endswith("/api/payments/mpesa/callback")

    payment = _payment(engine, order["id"])
    assert payment.id == body["payment_id"]
    assert payment.correlation_id == "ws_CO_TEST_1"


def test_initiate_again_reuses_payment(client, engine, customer, place_order):
    order = place_order(payment_method="MPESA")

    _initiate(client, customer, order)
    second = _initiate(client, customer, order)

    assert second["checkout_request_id"] == "ws_CO_TEST_2"
    assert _payment(engine, order["id"]).correlation_id == "ws_CO_TEST_2"


def test_initiate_gateway_error(client, engine, mpesa, mpesa_error, customer, place_order):
    order = place_order(payment_method="MPESA")
    mpesa.error = mpesa_error

    response = client.post(
        "/api/payments/mpesa/initiate",
        json={"order_id": order["id"], "phone_number": "0712345678"},
        headers=auth(customer),
    )

    assert response.status_code == 502
    assert _payment(engine, order["id"]).correlation_id is None


def test_initiate_for_non_mpesa_order(client, customer, place_order):
    order = place_order(payment_method="CASH_ON_DELIVERY")

    response = client.post(
        "/api/payments/mpesa/initiate",
        json={"order_id": order["id"], "phone_number": "0712345678"},
        headers=auth(customer),
    )

    assert response.status_code == 404


def test_initiate_for_someone_elses_order(client, other_customer, place_order):
    order = place_order(payment_method="MPESA")

    response = client.post(
        "/api/payments/mpesa/initiate",
        json={"order_id": order["id"], "phone_number": "0712345678"},
        headers=auth(other_customer),
    )

    assert response.status_code == 404


def test_successful_callback_moves_order_to_processing(client, engine, customer, place_order):
    order = place_order(payment_method="MPESA")
    checkout_request_id = _initiate(client, customer, order)["checkout_request_id"]

    response = client.post("/api/payments/mpesa/callback", json=_callback(checkout_request_id))

    assert response.status_code == 200
    assert response.json() == {"success": True}

    payment = _payment(engine, order["id"])
    assert payment.status == "COMPLETED"
    assert payment.receipt_number == "QGH7XK2L9P"
    assert payment.phone_number == "254712345678"
    assert payment.callback_data["Body"]["stkCallback"]["ResultCode"] == 0
    assert _order_status(engine, order["id"]) == "PROCESSING"


def test_failed_callback_leaves_order_pending(client, engine, customer, product, place_order):
    order = place_order(payment_method="MPESA")
    checkout_request_id = _initiate(client, customer, order)["checkout_request_id"]

    response = client.post(
        "/api/payments/mpesa/callback", json=_callback(checkout_request_id, result_code=1032)
    )

    assert response.status_code == 200
    assert _payment(engine, order["id"]).status == "FAILED"
    assert _order_status(engine, order["id"]) == "PENDING"
    assert stock_of(engine, product.id, "9") == 4


def test_unknown_checkout_request(client, engine, customer, place_order):
    order = place_order(payment_method="MPESA")
    _initiate(client, customer, order)

    response = client.post("/api/payments/mpesa/callback", json=_callback("ws_CO_UNKNOWN"))

    assert response.status_code == 404
    assert response.json()["detail"] == "Payment not found"
    assert _payment(engine, order["id"]).status == "PENDING"
    assert _order_status(engine, order["id"]) == "PENDING"


def test_duplicate_callback_applied_once(client, engine, customer, place_order):
    order = place_order(payment_method="MPESA")
    checkout_request_id = _initiate(client, customer, order)["checkout_request_id"]

    client.post("/api/payments/mpesa/callback", json=_callback(checkout_request_id))
    response = client.post(
        "/api/payments/mpesa/callback", json=_callback(checkout_request_id, result_code=1)
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "duplicate": True}
    assert _payment(engine, order["id"]).status == "COMPLETED"

    with Session(engine) as session:
        assert len(session.exec(select(WebhookEvent)).all()) == 1


def test_malformed_callback(client):
    response = client.post("/api/payments/mpesa/callback", json={"Body": {}})
    assert response.status_code == 422
