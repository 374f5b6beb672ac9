"""Order and OrderItem models."""

from decimal import Decimal

from . import db, new_id, utcnow


ORDER_STATUSES = ("pending", "accepted", "preparing", "ready", "completed", "cancelled")
BAKER_SETTABLE_STATUSES = ("accepted", "preparing", "ready", "completed", "cancelled")
TERMINAL_STATUSES = ("completed", "cancelled")
PAYMENT_STATUSES = ("pending", "completed")


def _money(value):
    return float(value) if isinstance(value, Decimal) else value


class Order(db.Model):
    """A customer order; fulfilment and payment progress independently."""

    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    delivery_street = db.Column(db.String(255), nullable=True)
    delivery_city = db.Column(db.String(120), nullable=True)
    delivery_state = db.Column(db.String(120), nullable=True)
    delivery_pincode = db.Column(db.String(12), nullable=True)
    status = db.Column(
        db.Enum(*ORDER_STATUSES, name="order_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="order_payment_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    payment_id = db.Column(db.String(100), nullable=True)
    razorpay_order_id = db.Column(db.String(100), nullable=True, index=True)
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    customer = db.relationship("User", foreign_keys=[user_id])
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def delivery_address(self) -> dict:
        return {
            "street": self.delivery_street,
            "city": self.delivery_city,
            "state": self.delivery_state,
            "pincode": self.delivery_pincode,
        }

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def items_for_baker(self, baker_id: str) -> list["OrderItem"]:
        return [item for item in self.items if item.baker_id == baker_id]

    def to_dict(self, items=None, include_customer: bool = False) -> dict:
        """Serialize the order; ``items`` defaults to every line of the order."""

        data = {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": _money(self.total_amount),
            "delivery_address": self.delivery_address,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_id": self.payment_id,
            "razorpay_order_id": self.razorpay_order_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "items": [item.to_dict() for item in (self.items if items is None else items)],
        }
        if include_customer and self.customer is not None:
            data.update(
                {
                    "user_name": self.customer.name,
                    "user_email": self.customer.email,
                    "user_phone": self.customer.phone,
                }
            )
        return data


class OrderItem(db.Model):
    """One cart line of an order. Never updated after creation."""

    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    baker_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")
    baker = db.relationship("User", foreign_keys=[baker_id])

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity

    def to_dict(self) -> dict:
        profile = self.baker.baker_profile if self.baker is not None else None
        return {
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "image_urls": list(self.product.image_urls or []) if self.product else [],
            "quantity": self.quantity,
            "price": _money(self.price),
            "baker_id": self.baker_id,
            "baker_name": self.baker.name if self.baker is not None else None,
            "bakery_name": profile.bakery_name if profile else None,
        }
