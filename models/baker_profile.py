"""BakerProfile model definition."""

from datetime import datetime

from . import db, new_id, utcnow


VERIFICATION_STATUSES = ("pending", "approved", "rejected")
PAYMENT_METHODS = ("upi", "bank")


class BakerProfile(db.Model):
    """Business and identity attestation submitted by a baker for review.

    ``version`` is an optimistic-concurrency counter: an UPDATE issued from a
    stale copy of the row matches nothing and SQLAlchemy raises
    ``StaleDataError`` at flush time.
    """

    __tablename__ = "baker_profiles"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    bakery_name = db.Column(db.String(200), nullable=False)
    city = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(120), nullable=False)
    pincode = db.Column(db.String(12), nullable=False)

    id_proof_type = db.Column(db.String(64), nullable=False)
    id_proof_number = db.Column(db.String(64), nullable=False)
    id_proof_document = db.Column(db.String(512), nullable=True)
    profile_photo = db.Column(db.String(512), nullable=True)
    fssai_number = db.Column(db.String(64), nullable=True)
    fssai_certificate = db.Column(db.String(512), nullable=True)
    food_safety_declaration = db.Column(db.Boolean, nullable=False, default=False)

    payment_method = db.Column(db.String(16), nullable=False)
    upi_id = db.Column(db.String(120), nullable=True)
    bank_account_number = db.Column(db.String(64), nullable=True)
    bank_ifsc = db.Column(db.String(32), nullable=True)
    account_holder_name = db.Column(db.String(200), nullable=True)

    item_types = db.Column(db.JSON, nullable=True)
    is_veg = db.Column(db.Boolean, nullable=False, default=False)
    is_nonveg = db.Column(db.Boolean, nullable=False, default=False)
    has_eggless_option = db.Column(db.Boolean, nullable=False, default=False)
    terms_accepted = db.Column(db.Boolean, nullable=False, default=False)
    terms_accepted_at = db.Column(db.DateTime, nullable=True)

    verification_status = db.Column(
        db.Enum(*VERIFICATION_STATUSES, name="baker_verification_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    verified_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship(
        "User", back_populates="baker_profile", foreign_keys=[user_id]
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_approved(self) -> bool:
        return self.verification_status == "approved"

    def approve(self, admin_id: str, now: datetime) -> bool:
        """Mark the profile approved. Returns False when nothing changed."""

        if self.verification_status == "approved" and self.user.is_verified:
            return False
        self.verification_status = "approved"
        self.verified_by = admin_id
        self.verified_at = now
        self.rejection_reason = None
        self.user.is_verified = True
        return True

    def reject(self, admin_id: str, reason: str | None, now: datetime) -> bool:
        """Mark the profile rejected. Returns False when nothing changed."""

        if self.verification_status == "rejected" and self.rejection_reason == reason:
            return False
        self.verification_status = "rejected"
        self.verified_by = admin_id
        self.verified_at = now
        self.rejection_reason = reason
        self.user.is_verified = False
        return True

    def status_dict(self) -> dict:
        return {
            "verification_status": self.verification_status,
            "rejection_reason": self.rejection_reason,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
        }

    def to_dict(self) -> dict:
        """Serialize the full profile."""

        data = {
            "id": self.id,
            "user_id": self.user_id,
            "bakery_name": self.bakery_name,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "id_proof_type": self.id_proof_type,
            "id_proof_number": self.id_proof_number,
            "id_proof_document": self.id_proof_document,
            "profile_photo": self.profile_photo,
            "fssai_number": self.fssai_number,
            "fssai_certificate": self.fssai_certificate,
            "food_safety_declaration": self.food_safety_declaration,
            "payment_method": self.payment_method,
            "upi_id": self.upi_id,
            "bank_account_number": self.bank_account_number,
            "bank_ifsc": self.bank_ifsc,
            "account_holder_name": self.account_holder_name,
            "item_types": self.item_types or [],
            "is_veg": self.is_veg,
            "is_nonveg": self.is_nonveg,
            "has_eggless_option": self.has_eggless_option,
            "terms_accepted": self.terms_accepted,
            "terms_accepted_at": self.terms_accepted_at.isoformat()
            if self.terms_accepted_at
            else None,
            "verified_by": self.verified_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        data.update(self.status_dict())
        return data

    def __repr__(self) -> str:
        return (
            f"<BakerProfile user_id={self.user_id} status={self.verification_status}>"
        )
