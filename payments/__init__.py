"""Payment provider integration."""

from .abstract_gateway import PaymentGateway
from .razorpay_gateway import RazorpayGateway
from .signature import compute_signature, verify_signature

__all__ = [
    "PaymentGateway",
    "RazorpayGateway",
    "build_payment_gateway",
    "compute_signature",
    "verify_signature",
]


def build_payment_gateway(config) -> PaymentGateway:
    return RazorpayGateway(
        config.get("RAZORPAY_KEY_ID") or "",
        config.get("RAZORPAY_KEY_SECRET") or "",
        timeout=config.get("GATEWAY_TIMEOUT", 10),
    )
