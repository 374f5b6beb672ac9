"""Payment provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class PaymentGateway(ABC):
    """Creates provider-side orders and reports payment state."""

    @abstractmethod
    def create_order(
        self, amount: int, currency: str, receipt: str, notes: dict[str, str]
    ) -> dict:
        """Create a remote order for ``amount`` minor units and return it.

        The returned mapping carries at least ``id``, ``amount`` and ``currency``.
        """

    @abstractmethod
    def fetch_payment(self, payment_id: str) -> dict:
        """Return the provider's view of a payment, including its ``status``."""
