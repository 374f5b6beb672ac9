"""User model definition."""

from werkzeug.security import check_password_hash, generate_password_hash

from . import db, new_id, utcnow


ROLES = ("user", "baker", "admin")
USER_STATUSES = ("active", "blocked")


class User(db.Model):
    """Represents a customer, baker or administrator account."""

    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="user")
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(
        db.String(16),
        nullable=False,
        default="active",
        server_default=db.text("'active'"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    baker_profile = db.relationship(
        "BakerProfile",
        back_populates="user",
        uselist=False,
        foreign_keys="BakerProfile.user_id",
        cascade="all, delete-orphan",
    )
    addresses = db.relationship(
        "Address", back_populates="user", cascade="all, delete-orphan"
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    @property
    def is_blocked(self) -> bool:
        return self.status == "blocked"

    def to_dict(self) -> dict:
        """Serialize the account without credentials."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "is_verified": self.is_verified,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email} role={self.role}>"
