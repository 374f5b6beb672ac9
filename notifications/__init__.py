"""Email delivery backends."""

from .abstract_sender import EmailSender
from .brevo_sender import BrevoEmailSender
from .smtp_sender import SmtpEmailSender

__all__ = ["EmailSender", "BrevoEmailSender", "SmtpEmailSender", "build_email_sender"]


def build_email_sender(config) -> EmailSender:
    """Return the email backend selected by ``EMAIL_BACKEND``."""

    backend = (config.get("EMAIL_BACKEND") or "brevo").lower()
    timeout = config.get("GATEWAY_TIMEOUT", 10)
    if backend == "brevo":
        return BrevoEmailSender(
            config.get("BREVO_API_KEY") or "",
            config["EMAIL_SENDER"],
            config.get("EMAIL_SENDER_NAME", "Home Baker Marketplace"),
            timeout=timeout,
        )
    if backend == "smtp":
        return SmtpEmailSender(
            config["SMTP_HOST"],
            int(config.get("SMTP_PORT", 587)),
            config.get("SMTP_USER"),
            config.get("SMTP_PASS"),
            config["EMAIL_SENDER"],
            config.get("EMAIL_SENDER_NAME", "Home Baker Marketplace"),
            timeout=timeout,
        )
    raise ValueError(f"Unknown EMAIL_BACKEND: {backend}")
