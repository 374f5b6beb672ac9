"""Order placement, fulfilment status and payment reconciliation."""

from __future__ import annotations

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Mapping

from sqlalchemy.orm.exc import StaleDataError

from errors import (
    ConflictError,
    InvalidSignature,
    NotFoundError,
    PaymentNotCaptured,
    ValidationError,
)
from models import db, utcnow
from models.order import BAKER_SETTABLE_STATUSES, Order, OrderItem
from models.product import Product
from payments import PaymentGateway, verify_signature
from utils.request_validation import parse_decimal, parse_positive_int, require_fields

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ADDRESS_FIELDS = ("street", "city", "state", "pincode")


class OrderLifecycle:
    """Customer orders split into per-baker items, plus Razorpay payment capture."""

    def __init__(
        self,
        payment_gateway: PaymentGateway,
        *,
        key_id: str,
        key_secret: str,
        currency: str = "INR",
        clock: Callable = utcnow,
    ):
        self.payment_gateway = payment_gateway
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency
        self.clock = clock

    def place_order(
        self,
        user_id: str,
        items: object,
        total_amount: object,
        delivery_address: object,
        payment_id: str | None = None,
    ) -> Order:
        """Create the order and one item per cart line in a single transaction.

        Item prices and owning bakers come from the product rows; the submitted
        ``total_amount`` must equal the sum of price x quantity.
        """

        if not isinstance(items, list) or not items:
            raise ValidationError("items must be a non-empty list")
        if not isinstance(delivery_address, Mapping):
            raise ValidationError("delivery_address is required")
        require_fields(delivery_address, ADDRESS_FIELDS)
        total = parse_decimal(total_amount, "total_amount").quantize(CENT, ROUND_HALF_UP)

        order = Order(
            user_id=user_id,
            total_amount=total,
            delivery_street=delivery_address["street"],
            delivery_city=delivery_address["city"],
            delivery_state=delivery_address["state"],
            delivery_pincode=str(delivery_address["pincode"]),
            payment_id=payment_id or None,
            status="pending",
            payment_status="pending",
            created_at=self.clock(),
        )

        computed = Decimal("0")
        for line in items:
            item = self._build_item(line)
            computed += item.line_total
            order.items.append(item)

        computed = computed.quantize(CENT, ROUND_HALF_UP)
        if computed != total:
            raise ValidationError(
                "total_amount does not match the order items",
                expected_total=float(computed),
            )

        db.session.add(order)
        db.session.commit()
        logger.info(
            "User %s placed order %s with %d item(s)", user_id, order.id, len(order.items)
        )
        return order

    @staticmethod
    def _build_item(line: object) -> OrderItem:
        if not isinstance(line, Mapping):
            raise ValidationError("Each item must be an object")
        require_fields(line, ("product_id", "quantity"))
        quantity = parse_positive_int(line["quantity"], "quantity")

        product = db.session.get(Product, str(line["product_id"]))
        if product is None:
            raise NotFoundError(f"Product {line['product_id']} not found")
        if not product.is_available or not product.baker.is_verified:
            raise ValidationError(f"Product {product.name} is not available")

        claimed_baker = line.get("baker_id")
        if claimed_baker and str(claimed_baker) != product.baker_id:
            raise ValidationError(f"baker_id does not match the owner of product {product.id}")

        return OrderItem(
            product_id=product.id,
            baker_id=product.baker_id,
            quantity=quantity,
            price=product.price,
        )

    def update_status(self, baker_id: str, order_id: str, new_status: object) -> Order:
        """Set the order-level status on behalf of a contributing baker."""

        if new_status not in BAKER_SETTABLE_STATUSES:
            raise ValidationError("Invalid status")

        order = db.session.get(Order, order_id)
        if order is None or not order.items_for_baker(baker_id):
            raise NotFoundError(
                "Order not found or you do not have permission to update it"
            )
        if order.status == new_status:
            return order
        if order.is_terminal:
            raise ValidationError(f"Order is already {order.status}")

        previous = order.status
        order.status = new_status
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConflictError("The order was updated by another request. Please retry.")

        logger.info(
            "Baker %s moved order %s from %s to %s", baker_id, order_id, previous, new_status
        )
        return order

    def create_payment_intent(self, user_id: str, order_id: str | None, amount: object) -> dict:
        """Create a Razorpay order for ``amount`` and link it to the order row."""

        if not order_id:
            raise ValidationError("order_id is required")
        value = parse_decimal(amount, "amount")

        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        remote = self.payment_gateway.create_order(
            amount=int((value * 100).quantize(Decimal("1"), ROUND_HALF_UP)),
            currency=self.currency,
            receipt=f"order_{int(time.time() * 1000)}",
            notes={"user_id": str(user_id), "order_id": str(order_id)},
        )

        order.razorpay_order_id = remote["id"]
        db.session.commit()
        logger.info("Linked Razorpay order %s to order %s", remote["id"], order_id)

        return {
            "orderId": remote["id"],
            "order_id": order_id,
            "amount": remote.get("amount"),
            "currency": remote.get("currency", self.currency),
            "keyId": self.key_id,
        }

    def confirm_payment(
        self,
        order_id: str | None,
        gateway_order_id: str | None,
        gateway_payment_id: str | None,
        signature: str | None,
    ) -> Order:
        """Verify the checkout signature, then require a captured payment."""

        if not order_id:
            raise ValidationError("order_id (database UUID) is required")

        if not verify_signature(
            gateway_order_id or "", gateway_payment_id or "", signature, self.key_secret
        ):
            logger.warning("Rejected payment callback for order %s: bad signature", order_id)
            raise InvalidSignature("Invalid signature")

        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        payment = self.payment_gateway.fetch_payment(gateway_payment_id)
        if payment.get("status") != "captured":
            raise PaymentNotCaptured("Payment not successful")

        order.payment_id = gateway_payment_id
        order.payment_status = "completed"
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConflictError("The order was updated by another request. Please retry.")

        logger.info("Payment %s captured for order %s", gateway_payment_id, order_id)
        return order
