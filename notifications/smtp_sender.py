"""SMTP email sender."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from errors import GatewayError

from .abstract_sender import OTP_SUBJECT, EmailSender, render_otp_html, render_otp_text

logger = logging.getLogger(__name__)


class SmtpEmailSender(EmailSender):
    """Send email over SMTP with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        sender_email: str,
        sender_name: str = "Home Baker Marketplace",
        timeout: float = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.timeout = timeout

    def send_otp(self, email: str, otp: str, ttl_minutes: int) -> None:
        msg = EmailMessage()
        msg["From"] = f"{self.sender_name} <{self.sender_email}>"
        msg["To"] = email
        msg["Subject"] = OTP_SUBJECT
        msg.set_content(render_otp_text(otp, ttl_minutes))
        msg.add_alternative(render_otp_html(otp, ttl_minutes), subtype="html")

        context = ssl.create_default_context()
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=context)
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send OTP email to %s: %s", email, exc)
            raise GatewayError("Failed to send verification email.") from exc

        logger.info("OTP email sent to %s", email)
