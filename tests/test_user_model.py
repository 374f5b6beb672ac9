"""Tests for the User model helpers."""

from models import db
from models.user import User


def test_password_hashing_and_serialization(app):
    with app.app_context():
        user = User(name="Asha", email="helper@example.com", role="user")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert user.password_hash != "password123"
        assert user.check_password("password123") is True
        assert user.check_password("wrong") is False
        assert user.status == "active"
        assert user.is_verified is False
        assert user.is_blocked is False

        data = user.to_dict()
        assert "password_hash" not in data
        assert data["email"] == "helper@example.com"
        assert len(data["id"]) == 36


def test_blocked_status(app):
    with app.app_context():
        user = User(name="Ravi", email="blocked@example.com", status="blocked")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert user.is_blocked is True
