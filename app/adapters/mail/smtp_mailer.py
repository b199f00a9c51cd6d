"""SMTP mailer adapter."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from app.adapters.mail.base import AbstractMailer
from app.core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class SmtpMailer(AbstractMailer):
    """Send messages through an SMTP relay using aiosmtplib.

    Credentials are checked at send time, so a missing configuration only
    affects email delivery and never application startup.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str | None,
        password: str | None,
        *,
        secure: bool = False,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize the mailer.

        Args:
            host: SMTP server hostname.
            port: SMTP server port.
            user: Login username.
            password: Login password.
            secure: Use implicit TLS; STARTTLS is negotiated otherwise.
            timeout_seconds: Connection and command timeout.
        """
        self.host = host
        self.port = port
        self.user = user
        self._password = password
        self.secure = secure
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self._password)

    async def send(self, message: EmailMessage) -> None:
        """Send ``message`` via the configured relay.

        Raises:
            EmailDeliveryError: If credentials are missing or the relay fails.
        """
        if not self.is_configured:
            raise EmailDeliveryError(
                code="email_config_missing",
                message="Email configuration is missing",
                details={"hint": "Set SMTP_USER and SMTP_PASSWORD"},
            )

        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.user,
                password=self._password,
                use_tls=self.secure,
                start_tls=not self.secure,
                timeout=self.timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(
                code="email_send_failed",
                message=f"SMTP delivery failed: {type(exc).__name__}",
                details={"context": {"host": self.host, "port": self.port}},
            ) from exc

        logger.debug("email.sent", extra={"smtp_host": self.host, "smtp_port": self.port})
