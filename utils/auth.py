"""Bearer-token helpers and role authorization."""

from __future__ import annotations

from functools import wraps

from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request

from errors import ForbiddenError
from models.user import User


def issue_token(user: User) -> str:
    """Sign a token carrying the account id, email and role."""

    return create_access_token(
        identity=str(user.id),
        additional_claims={"email": user.email, "role": user.role},
    )


def current_user_id() -> str:
    return get_jwt_identity()


def current_role() -> str | None:
    return get_jwt().get("role")


def role_required(*roles: str):
    """Require a valid bearer token and, when given, one of ``roles``."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if roles and current_role() not in roles:
                raise ForbiddenError("Access denied. Insufficient permissions.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
