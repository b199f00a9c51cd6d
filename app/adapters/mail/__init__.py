"""Mail adapter layer - hides the SMTP transport behind an interface."""

from app.adapters.mail.base import AbstractMailer
from app.adapters.mail.factory import create_mailer, resolve_sender
from app.adapters.mail.smtp_mailer import SmtpMailer

__all__ = [
    "AbstractMailer",
    "SmtpMailer",
    "create_mailer",
    "resolve_sender",
]
