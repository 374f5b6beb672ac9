"""Razorpay REST client."""

from __future__ import annotations

import logging

import requests

from errors import GatewayError

from .abstract_gateway import PaymentGateway

logger = logging.getLogger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    """Talk to the Razorpay Orders and Payments APIs with HTTP basic auth."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{RAZORPAY_API_URL}{path}"
        try:
            response = self.session.request(
                method,
                url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Razorpay %s %s failed: %s", method, path, exc)
            raise GatewayError("Payment provider request failed.") from exc

    def create_order(
        self, amount: int, currency: str, receipt: str, notes: dict[str, str]
    ) -> dict:
        order = self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            },
        )
        logger.info("Created Razorpay order %s for receipt %s", order.get("id"), receipt)
        return order

    def fetch_payment(self, payment_id: str) -> dict:
        return self._request("GET", f"/payments/{payment_id}")
