"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping

from flask import Request

from errors import ValidationError


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise ValidationError("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise ValidationError("Request JSON body is required.")

    if not isinstance(data, dict):
        raise ValidationError("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise ValidationError("Request JSON body must not be empty.")

    if required_keys:
        require_fields(data, required_keys)

    return data


def request_fields(req: Request) -> dict:
    """Return body fields from a JSON or form-encoded (multipart) request."""

    if req.is_json:
        return parse_json_request(req, allow_empty=True)
    return req.form.to_dict()


def require_fields(data: Mapping, keys: Iterable[str], message: str | None = None) -> None:
    missing = [key for key in keys if data.get(key) in (None, "", False)]
    if missing:
        raise ValidationError(
            message
            or "Missing required fields: {}.".format(", ".join(sorted(missing)))
        )


def parse_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    return None


def parse_decimal(value: object, field: str, *, positive: bool = True) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be numeric") from None
    if not number.is_finite():
        raise ValidationError(f"{field} must be numeric")
    if positive and number <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return number


def parse_positive_int(value: object, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer") from None
    if number <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return number


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()
