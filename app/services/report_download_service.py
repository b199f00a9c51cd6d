"""Report download service gating the report behind the email form.

Flow for one request (email already validated by the schema):
- Consume one unit of the client's rate limit budget (429 when exhausted)
- Record the download in the record store (best effort)
- Send the confirmation email (best effort)
- Return the download URL

Record and email failures of any kind are logged and never change the
response.
"""

from __future__ import annotations

import asyncio
import logging

from app.adapters.download_records.base import AbstractDownloadRecordStore, DownloadRecord
from app.adapters.mail.base import AbstractMailer
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.errors import DownloadRecordError, EmailDeliveryError, RateLimitExceededError
from app.schemas.report_download import ReportDownloadResponse
from app.services.confirmation_email import build_confirmation_email

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Report download initiated successfully!"
RATE_LIMITED_MESSAGE = "Too many download attempts. Please try again later."


class ReportDownloadService:
    """Grant report downloads subject to per-client rate limiting."""

    def __init__(
        self,
        *,
        limiter: AbstractRateLimiter | None,
        record_store: AbstractDownloadRecordStore,
        mailer: AbstractMailer,
        download_url: str,
        sender: str | None = None,
    ) -> None:
        """Initialize with injected collaborators.

        Args:
            limiter: Rate limiter keyed by client id; None disables limiting.
            record_store: Where granted downloads are recorded.
            mailer: Transport for the confirmation email.
            download_url: URL handed back to the client.
            sender: From address of the confirmation email.
        """
        self.limiter = limiter
        self.record_store = record_store
        self.mailer = mailer
        self.download_url = download_url
        self.sender = sender

    async def _enforce_rate_limit(self, client_ip: str) -> None:
        if self.limiter is None:
            return

        # File-backed stores block on disk I/O; keep it off the event loop.
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self.limiter.consume, client_ip)
        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "client_ip": client_ip,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "client_ip": client_ip,
                "limit": result.limit,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise RateLimitExceededError(
            code="rate_limit_exceeded",
            message=RATE_LIMITED_MESSAGE,
            details={
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
                "retry_after": result.retry_after_seconds or 0,
            },
        )

    async def _save_record(self, record: DownloadRecord) -> None:
        try:
            await self.record_store.save(record)
        except DownloadRecordError as exc:
            logger.error(
                "download_record.failed",
                extra={
                    "error_code": exc.code,
                    "error_msg": exc.message,
                    "email": record.email,
                },
            )
        except Exception:
            logger.exception("download_record.unexpected_error", extra={"email": record.email})

    async def _send_confirmation(self, email: str) -> None:
        try:
            message = build_confirmation_email(email, sender=self.sender)
            await self.mailer.send(message)
        except EmailDeliveryError as exc:
            logger.error(
                "email.failed",
                extra={
                    "error_code": exc.code,
                    "error_msg": exc.message,
                    "email": email,
                },
            )
            return
        except Exception:
            logger.exception("email.unexpected_error", extra={"email": email})
            return

        logger.info("email.confirmation_sent", extra={"email": email})

    async def request_download(
        self,
        email: str,
        *,
        client_ip: str,
        user_agent: str | None = None,
    ) -> ReportDownloadResponse:
        """Grant a report download for ``email``.

        Args:
            email: Validated email address.
            client_ip: Client identifier used as the rate limit key.
            user_agent: Client User-Agent header, stored with the record.

        Returns:
            ReportDownloadResponse with the download URL.

        Raises:
            RateLimitExceededError: If the client exhausted its window budget.
        """
        await self._enforce_rate_limit(client_ip)

        await self._save_record(
            DownloadRecord(email=email, ip=client_ip, user_agent=user_agent)
        )
        await self._send_confirmation(email)

        logger.info(
            "report_download.granted",
            extra={"client_ip": client_ip, "email": email},
        )
        return ReportDownloadResponse(message=SUCCESS_MESSAGE, download_url=self.download_url)
