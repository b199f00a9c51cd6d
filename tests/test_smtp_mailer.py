"""Tests for the SMTP mailer adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from app.adapters.mail.factory import create_mailer, resolve_sender
from app.adapters.mail.smtp_mailer import SmtpMailer
from app.core.config import SmtpSettings
from app.core.errors import EmailDeliveryError
from app.services.confirmation_email import build_confirmation_email


@pytest.fixture
def message():
    return build_confirmation_email("a@b.com", sender="reports@example.com")


@pytest.mark.asyncio
async def test_missing_credentials_raise_config_error(message) -> None:
    mailer = SmtpMailer(host="smtp.example.com", port=587, user=None, password=None)

    with patch("app.adapters.mail.smtp_mailer.aiosmtplib.send", new_callable=AsyncMock) as send:
        with pytest.raises(EmailDeliveryError) as exc_info:
            await mailer.send(message)

    assert exc_info.value.code == "email_config_missing"
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_starttls_by_default(message) -> None:
    mailer = SmtpMailer(host="smtp.example.com", port=587, user="u", password="p", timeout_seconds=5)

    with patch("app.adapters.mail.smtp_mailer.aiosmtplib.send", new_callable=AsyncMock) as send:
        await mailer.send(message)

    send.assert_awaited_once()
    assert send.await_args.args[0] is message
    kwargs = send.await_args.kwargs
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 587
    assert kwargs["username"] == "u"
    assert kwargs["password"] == "p"
    assert kwargs["use_tls"] is False
    assert kwargs["start_tls"] is True
    assert kwargs["timeout"] == 5


@pytest.mark.asyncio
async def test_secure_uses_implicit_tls(message) -> None:
    mailer = SmtpMailer(host="smtp.example.com", port=465, user="u", password="p", secure=True)

    with patch("app.adapters.mail.smtp_mailer.aiosmtplib.send", new_callable=AsyncMock) as send:
        await mailer.send(message)

    assert send.await_args.kwargs["use_tls"] is True
    assert send.await_args.kwargs["start_tls"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        aiosmtplib.SMTPAuthenticationError(535, "bad credentials"),
        ConnectionRefusedError("refused"),
    ],
)
async def test_transport_errors_are_wrapped(message, error: Exception) -> None:
    mailer = SmtpMailer(host="smtp.example.com", port=587, user="u", password="p")

    with patch(
        "app.adapters.mail.smtp_mailer.aiosmtplib.send",
        new_callable=AsyncMock,
        side_effect=error,
    ):
        with pytest.raises(EmailDeliveryError) as exc_info:
            await mailer.send(message)

    assert exc_info.value.code == "email_send_failed"
    assert exc_info.value.__cause__ is error


def test_factory_and_sender_resolution() -> None:
    cfg = SmtpSettings(host="mail.example.com", port=2525, user="bot@example.com", password="p")

    mailer = create_mailer(cfg)

    assert isinstance(mailer, SmtpMailer)
    assert mailer.host == "mail.example.com"
    assert mailer.port == 2525
    assert resolve_sender(cfg) == "bot@example.com"
    assert resolve_sender(SmtpSettings(user="bot@example.com", from_address="news@example.com")) == (
        "news@example.com"
    )
