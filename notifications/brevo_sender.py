"""Brevo transactional email sender."""

from __future__ import annotations

import logging

import requests

from errors import GatewayError

from .abstract_sender import OTP_SUBJECT, EmailSender, render_otp_html

logger = logging.getLogger(__name__)

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"


class BrevoEmailSender(EmailSender):
    """Send email through the Brevo (Sendinblue) v3 REST API."""

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str = "Home Baker Marketplace",
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_otp(self, email: str, otp: str, ttl_minutes: int) -> None:
        payload = {
            "sender": {"email": self.sender_email, "name": self.sender_name},
            "to": [{"email": email}],
            "subject": OTP_SUBJECT,
            "htmlContent": render_otp_html(otp, ttl_minutes),
        }
        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }
        try:
            response = self.session.post(
                BREVO_SEND_URL, json=payload, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Brevo rejected OTP email to %s: %s", email, exc)
            raise GatewayError("Failed to send verification email.") from exc

        logger.info("OTP email sent to %s", email)
