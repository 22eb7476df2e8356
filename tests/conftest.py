import os

# settings are read on first import of app.config
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["PAYPAL_WEBHOOK_ID"] = "WH-TEST-0001"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

import app.models  # noqa: F401
from app.constants.order_status import OrderStatus
from app.database import get_session
from app.dependencies.gateways import get_mpesa_client, get_paypal_client
from app.main import app as api
from app.models.category import Category
from app.models.order import Order
from app.models.product import Product
from app.models.product_image import ProductImage
from app.models.product_size import ProductSize
from app.models.user import ROLE_ADMIN, User
from app.services.mpesa_client import MpesaError
from app.utils.token import create_access_token


class FakeMpesa:
    def __init__(self):
        self.pushes = []
        self.error = None

    def stk_push(self, **kwargs):
        if self.error:
            raise self.error
        self.pushes.append(kwargs)
        return {
            "MerchantRequestID": f"29115-{len(self.pushes)}",
            "CheckoutRequestID": f"ws_CO_TEST_{len(self.pushes)}",
            "ResponseCode": "0",
            "CustomerMessage": "Success. Request accepted for processing",
        }


class FakePayPal:
    def __init__(self):
        self.created = []
        self.captured = []
        self.signature_valid = True

    def create_order(self, *, amount, currency, reference, return_url, cancel_url):
        self.created.append({"amount": amount, "currency": currency, "reference": reference})
        paypal_order_id = f"PAYPAL-{len(self.created)}"
        return {
            "id": paypal_order_id,
            "status": "CREATED",
            "links": [
                {"rel": "self", "href": f"https://api-m.sandbox.paypal.com/v2/checkout/orders/{paypal_order_id}"},
                {"rel": "approve", "href": f"https://www.sandbox.paypal.com/checkoutnow?token={paypal_order_id}"},
            ],
        }

    def capture_order(self, paypal_order_id):
        self.captured.append(paypal_order_id)
        return {
            "id": paypal_order_id,
            "status": "COMPLETED",
            "payer": {"payer_id": "PAYER-42"},
            "purchase_units": [
                {"payments": {"captures": [{"id": "CAPTURE-42", "status": "COMPLETED"}]}}
            ],
        }

    def verify_webhook_signature(self, *, webhook_id, headers, event):
        return self.signature_valid


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def mpesa():
    return FakeMpesa()


@pytest.fixture
def mpesa_error():
    return MpesaError("M-Pesa STK Push failed: Bad Request - Invalid PhoneNumber")


@pytest.fixture
def paypal():
    return FakePayPal()


@pytest.fixture
def client(engine, mpesa, paypal):
    def _session_override():
        with Session(engine) as session:
            yield session

    api.dependency_overrides[get_session] = _session_override
    api.dependency_overrides[get_mpesa_client] = lambda: mpesa
    api.dependency_overrides[get_paypal_client] = lambda: paypal

    yield TestClient(api)

    api.dependency_overrides.clear()


def _make_user(session, name, email, role="user"):
    user = User(name=name, email=email, phone="0712345678", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def customer(session):
    return _make_user(session, "Wanjiru Kamau", "wanjiru@example.com")


@pytest.fixture
def other_customer(session):
    return _make_user(session, "Otieno Ouma", "otieno@example.com")


@pytest.fixture
def admin(session):
    return _make_user(session, "Store Admin", "admin@example.com", role=ROLE_ADMIN)


def auth(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def category(session):
    category = Category(name="Work Boots", slug="work-boots")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture
def product(session, category):
    product = Product(
        name="Safari Leather Boot",
        slug="safari-leather-boot",
        price=5000,
        category_id=category.id,
        sku="SLB-001",
    )
    product.sizes = [ProductSize(size="9", stock=5), ProductSize(size="10", stock=3)]
    product.images = [ProductImage(url="https://cdn.example.com/boot.jpg")]
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def order_payload(product, lines=None, payment_method="CASH_ON_DELIVERY"):
    lines = lines or [("9", 1)]
    return {
        "items": [
            {
                "product_id": product.id,
                "size": size,
                "quantity": quantity,
                "price": product.price,
                "product_name": product.name,
            }
            for size, quantity in lines
        ],
        "shipping_address": {
            "full_name": "Wanjiru Kamau",
            "phone": "0712345678",
            "address_line1": "Kenyatta Avenue 12",
            "city": "Nairobi",
        },
        "payment_method": payment_method,
        "phone": "0712345678",
    }


@pytest.fixture
def place_order(client, customer, product):
    """Place an order as ``customer`` through the API, return its JSON."""
    def _place(lines=None, payment_method="CASH_ON_DELIVERY", user=None):
        response = client.post(
            "/api/orders",
            json=order_payload(product, lines, payment_method),
            headers=auth(user or customer),
        )
        assert response.status_code == 201, response.text
        return response.json()["order"]
    return _place


def stock_of(engine, product_id, size):
    with Session(engine) as session:
        row = session.get(ProductSize, (product_id, size))
        return row.stock if row else None


def set_order_status(engine, order_id, status: OrderStatus):
    with Session(engine) as session:
        order = session.get(Order, order_id)
        order.status = status.value
        session.add(order)
        session.commit()


def count_orders(engine):
    with Session(engine) as session:
        return len(session.exec(select(Order)).all())
