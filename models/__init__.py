"""Database initialization and model exports."""

import uuid
from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime."""

    return datetime.now(UTC).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .address import Address  # noqa: E402,F401
from .baker_profile import BakerProfile  # noqa: E402,F401
from .otp_verification import OtpVerification  # noqa: E402,F401
from .category import Category  # noqa: E402,F401
from .product import Product  # noqa: E402,F401
from .order import Order, OrderItem  # noqa: E402,F401
from .review import Review  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "new_id",
    "User",
    "Address",
    "BakerProfile",
    "OtpVerification",
    "Category",
    "Product",
    "Order",
    "OrderItem",
    "Review",
]
