"""Factory for the outgoing mailer."""

from app.adapters.mail.base import AbstractMailer
from app.adapters.mail.smtp_mailer import SmtpMailer
from app.core.config import SmtpSettings, settings


def create_mailer(smtp_settings: SmtpSettings | None = None) -> AbstractMailer:
    """Instantiate the SMTP mailer from configuration.

    Args:
        smtp_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractMailer: Configured mailer instance.
    """
    cfg = smtp_settings or settings.smtp
    return SmtpMailer(
        host=cfg.host,
        port=cfg.port,
        user=cfg.user,
        password=cfg.password,
        secure=cfg.secure,
        timeout_seconds=cfg.timeout_seconds,
    )


def resolve_sender(smtp_settings: SmtpSettings | None = None) -> str | None:
    """Return the From address: SMTP_FROM, else the SMTP username."""
    cfg = smtp_settings or settings.smtp
    return cfg.from_address or cfg.user
