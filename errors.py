"""Typed errors raised by the marketplace workflows.

Every error is a werkzeug ``HTTPException`` so the JSON error handler in
``app.py`` renders it directly. Extra keyword arguments are carried in
``extra`` and merged into the error body (for example ``requires`` or
``verification_status``).
"""

from __future__ import annotations

from werkzeug.exceptions import (
    BadRequest,
    Forbidden,
    InternalServerError,
    NotFound,
    Unauthorized,
)


class _MarketplaceError:
    """Mixin storing additional response fields."""

    def __init__(self, description: str | None = None, **extra: object) -> None:
        super().__init__(description)  # type: ignore[call-arg]
        self.extra = extra


class ValidationError(_MarketplaceError, BadRequest):
    """Missing or malformed input."""


class InvalidCode(ValidationError):
    """No unused OTP record matches the submitted code."""


class OtpExpired(ValidationError):
    """The matching OTP record is past its expiry time."""


class InvalidSignature(ValidationError):
    """A payment callback signature does not match the recomputed HMAC."""


class PaymentNotCaptured(ValidationError):
    """The payment provider does not report the payment as captured."""


class ConflictError(_MarketplaceError, BadRequest):
    """Duplicate email, review, profile or category, or a concurrent write."""


class AuthError(_MarketplaceError, Unauthorized):
    """Missing or invalid credentials."""


class ForbiddenError(_MarketplaceError, Forbidden):
    """Role mismatch, resource not owned, blocked account or unapproved baker."""


class NotFoundError(_MarketplaceError, NotFound):
    """The addressed resource does not exist."""


class GatewayError(_MarketplaceError, InternalServerError):
    """An email, media or payment provider call failed."""
