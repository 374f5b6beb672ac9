"""Email delivery interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

OTP_SUBJECT = "Email Verification - Home Baker Marketplace"


def render_otp_html(otp: str, ttl_minutes: int) -> str:
    return (
        "<h2>Email Verification</h2>"
        "<p>Your OTP for email verification is:</p>"
        f'<h1 style="color: #4CAF50;">{otp}</h1>'
        f"<p>This OTP will expire in {ttl_minutes} minutes.</p>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )


def render_otp_text(otp: str, ttl_minutes: int) -> str:
    return (
        f"Your OTP for email verification is: {otp}\n\n"
        f"This OTP will expire in {ttl_minutes} minutes.\n"
        "If you didn't request this, please ignore this email."
    )


class EmailSender(ABC):
    """Sends transactional email. Implementations raise ``GatewayError`` on failure."""

    @abstractmethod
    def send_otp(self, email: str, otp: str, ttl_minutes: int) -> None:
        """Deliver a one-time passcode to ``email``."""
