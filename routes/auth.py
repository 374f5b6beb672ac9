"""Authentication blueprint: customer signup, login and own profile."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from errors import AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import db
from models.address import Address
from models.user import User
from utils.auth import current_user_id, issue_token, role_required
from utils.request_validation import normalize_email, parse_json_request, require_fields

auth_bp = Blueprint("auth", __name__)


def _clean_text(value: object, field: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{field} must not be empty")
    return text


# Fields a user may change on their own account, and how each is normalized.
UPDATABLE_PROFILE_FIELDS = {
    "name": lambda value: _clean_text(value, "name"),
    "phone": lambda value: _clean_text(value, "phone"),
}


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """Register a customer account with an optional address."""

    payload = parse_json_request(request, required_keys=("name", "email", "password"))
    email = normalize_email(payload.get("email"))
    password = str(payload.get("password") or "")

    existing = User.query.filter(func.lower(User.email) == email).first()
    if existing is not None:
        raise ConflictError("User already exists with this email")

    user = User(
        name=str(payload["name"]).strip(),
        email=email,
        phone=payload.get("phone"),
        role="user",
    )
    user.set_password(password)
    db.session.add(user)

    address = payload.get("address")
    if isinstance(address, dict):
        db.session.add(
            Address(
                user=user,
                street=address.get("street"),
                city=address.get("city"),
                state=address.get("state"),
                pincode=address.get("pincode"),
            )
        )

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("User already exists with this email")

    current_app.logger.info("Customer %s registered", user.id)
    return (
        jsonify(
            {
                "message": "User registered successfully",
                "token": issue_token(user),
                "user": {
                    "id": user.id,
                    "name": user.name,
                    "email": user.email,
                    "role": user.role,
                },
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate any role and return a bearer token."""

    payload = parse_json_request(request)
    require_fields(payload, ("email", "password"), "Email and password are required.")
    email = normalize_email(payload.get("email"))
    password = str(payload.get("password"))

    user = User.query.filter(func.lower(User.email) == email).first()
    if user is None or not user.check_password(password):
        raise AuthError("Invalid credentials")

    if user.role == "baker" and not user.is_verified:
        raise ForbiddenError("Baker account not verified")
    if user.is_blocked:
        raise ForbiddenError("Account is blocked")

    return jsonify(
        {
            "message": "Login successful",
            "token": issue_token(user),
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": user.role,
            },
        }
    )


def _load_current_user() -> User:
    user = db.session.get(User, current_user_id())
    if user is None:
        raise NotFoundError("User not found")
    return user


@auth_bp.route("/profile", methods=["GET"])
@role_required()
def get_profile():
    return jsonify({"user": _load_current_user().to_dict()})


@auth_bp.route("/profile", methods=["PUT"])
@role_required()
def update_profile():
    """Update the allow-listed account fields; anything else is rejected."""

    payload = parse_json_request(request)
    unknown = sorted(set(payload) - set(UPDATABLE_PROFILE_FIELDS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

    user = _load_current_user()
    for field, normalize in UPDATABLE_PROFILE_FIELDS.items():
        if field in payload:
            setattr(user, field, normalize(payload[field]))
    db.session.commit()

    return jsonify({"message": "Profile updated successfully", "user": user.to_dict()})
