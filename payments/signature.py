"""Checkout callback signatures."""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``order_id|payment_id`` keyed by ``secret``."""

    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(
    gateway_order_id: str, gateway_payment_id: str, signature: str | None, secret: str
) -> bool:
    expected = compute_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(expected, signature or "")
