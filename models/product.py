"""Product model."""

from decimal import Decimal

from . import db, new_id, utcnow


class Product(db.Model):
    """A baked item listed by a baker."""

    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    baker_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id = db.Column(
        db.String(36), db.ForeignKey("categories.id"), nullable=False, index=True
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_urls = db.Column(db.JSON, nullable=False, default=list)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    baker = db.relationship("User", backref=db.backref("products", lazy="dynamic"))
    category = db.relationship("Category")
    reviews = db.relationship(
        "Review", back_populates="product", cascade="all, delete-orphan"
    )

    def to_dict(self, include_baker: bool = False) -> dict:
        """Serialize the product, optionally with the baker's public details."""

        price = float(self.price) if isinstance(self.price, Decimal) else self.price
        data = {
            "id": self.id,
            "baker_id": self.baker_id,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "name": self.name,
            "description": self.description,
            "price": price,
            "image_urls": list(self.image_urls or []),
            "is_available": self.is_available,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_baker and self.baker is not None:
            profile = self.baker.baker_profile
            data.update(
                {
                    "baker_name": self.baker.name,
                    "baker_email": self.baker.email,
                    "baker_phone": self.baker.phone,
                    "bakery_name": profile.bakery_name if profile else None,
                    "baker_city": profile.city if profile else None,
                    "baker_state": profile.state if profile else None,
                }
            )
        return data
