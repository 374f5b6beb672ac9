"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from errors import GatewayError  # noqa: E402
from models import db  # noqa: E402
from models.baker_profile import BakerProfile  # noqa: E402
from models.category import Category  # noqa: E402
from models.product import Product  # noqa: E402
from models.user import User  # noqa: E402
from notifications import EmailSender  # noqa: E402
from payments import PaymentGateway  # noqa: E402
from storage import AbstractStorage  # noqa: E402
from utils.auth import issue_token  # noqa: E402

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "rzp_test_secret"


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    RAZORPAY_KEY_ID = RAZORPAY_KEY_ID
    RAZORPAY_KEY_SECRET = RAZORPAY_KEY_SECRET


class FakeEmailSender(EmailSender):
    """Records OTP emails instead of sending them."""

    def __init__(self):
        self.sent: list[tuple[str, str, int]] = []
        self.fail = False

    def send_otp(self, email, otp, ttl_minutes):
        if self.fail:
            raise GatewayError("Failed to send verification email.")
        self.sent.append((email, otp, ttl_minutes))

    def last_otp(self, email: str) -> str:
        return [otp for to, otp, _ in self.sent if to == email][-1]


class FakeStorage(AbstractStorage):
    """In-memory media backend; folders in ``fail_folders`` raise on upload."""

    def __init__(self):
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail_folders: set[str] = set()

    def upload(self, file_obj, filename, folder):
        if folder in self.fail_folders:
            raise GatewayError("Media upload failed.")
        url = f"https://media.test/{folder}/{filename}"
        self.uploaded.append(url)
        return url

    def delete(self, url):
        self.deleted.append(url)


class FakePaymentGateway(PaymentGateway):
    """Hands out sequential order ids; payments are captured only when listed."""

    def __init__(self):
        self.orders: list[dict] = []
        self.payment_statuses: dict[str, str] = {}

    def create_order(self, amount, currency, receipt, notes):
        order = {
            "id": f"order_test{len(self.orders) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        self.orders.append(order)
        return order

    def fetch_payment(self, payment_id):
        return {"id": payment_id, "status": self.payment_statuses.get(payment_id, "failed")}


@pytest.fixture()
def fakes() -> SimpleNamespace:
    return SimpleNamespace(
        email=FakeEmailSender(), storage=FakeStorage(), payments=FakePaymentGateway()
    )


@pytest.fixture()
def app(tmp_path, fakes) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(
        TestConfig,
        email_sender=fakes.email,
        media_storage=fakes.storage,
        payment_gateway=fakes.payments,
    )

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def create_user(app):
    """Persist a user and return its id."""

    def _create(
        email: str,
        password: str = "Secret123",
        role: str = "user",
        *,
        name: str = "Test User",
        verified: bool = False,
        status: str = "active",
    ) -> str:
        with app.app_context():
            user = User(
                name=name,
                email=email,
                phone="9999999999",
                role=role,
                is_verified=verified,
                status=status,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _create


@pytest.fixture()
def auth_headers(app):
    """Bearer headers for an existing user id."""

    def _headers(user_id: str) -> dict[str, str]:
        with app.app_context():
            token = issue_token(db.session.get(User, user_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def create_baker(app, create_user):
    """Persist a baker with a profile in the given verification state."""

    def _create(
        email: str,
        *,
        status: str = "approved",
        bakery_name: str = "Sweet Crumbs",
        name: str = "Baker",
    ) -> str:
        user_id = create_user(email, role="baker", name=name, verified=status == "approved")
        with app.app_context():
            db.session.add(
                BakerProfile(
                    user_id=user_id,
                    bakery_name=bakery_name,
                    city="Pune",
                    state="Maharashtra",
                    pincode="411001",
                    id_proof_type="aadhaar",
                    id_proof_number="1234-5678-9012",
                    payment_method="upi",
                    upi_id="baker@upi",
                    terms_accepted=True,
                    verification_status=status,
                )
            )
            db.session.commit()
        return user_id

    return _create


@pytest.fixture()
def create_category(app):
    def _create(name: str = "Cakes") -> str:
        with app.app_context():
            category = Category(name=name)
            db.session.add(category)
            db.session.commit()
            return category.id

    return _create


@pytest.fixture()
def create_product(app, create_category):
    """Persist a product for ``baker_id`` and return its id."""

    def _create(
        baker_id: str,
        name: str = "Chocolate Cake",
        price: str = "250.00",
        *,
        category_id: str | None = None,
        available: bool = True,
        image_urls: list[str] | None = None,
        description: str | None = None,
    ) -> str:
        if category_id is None:
            with app.app_context():
                existing = Category.query.first()
                category_id = existing.id if existing else None
            if category_id is None:
                category_id = create_category()
        with app.app_context():
            product = Product(
                baker_id=baker_id,
                category_id=category_id,
                name=name,
                description=description,
                price=Decimal(price),
                is_available=available,
                image_urls=image_urls or ["https://media.test/baker-app/products/a.png"],
            )
            db.session.add(product)
            db.session.commit()
            return product.id

    return _create
