from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from app.adapters.download_records.factory import create_download_record_store
from app.adapters.mail.factory import create_mailer, resolve_sender
from app.core.config import settings
from app.core.rate_limit import get_client_ip, get_rate_limiter
from app.schemas.report_download import (
    ErrorResponse,
    ReportDownloadRequest,
    ReportDownloadResponse,
)
from app.services.report_download_service import ReportDownloadService

router = APIRouter(tags=["Reports"])

# Initialize collaborators shared by all requests
_record_store = create_download_record_store()
_mailer = create_mailer()


def get_report_download_service() -> ReportDownloadService:
    """Build the service around the current process-wide limiter.

    The limiter is looked up per request so configuration changes (tests)
    take effect without re-importing this module.
    """
    return ReportDownloadService(
        limiter=get_rate_limiter(),
        record_store=_record_store,
        mailer=_mailer,
        download_url=settings.app.download_url,
        sender=resolve_sender(),
    )


@router.post(
    "/report-download",
    response_model=ReportDownloadResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email address"},
        429: {"model": ErrorResponse, "description": "Too many download attempts"},
        500: {"model": ErrorResponse, "description": "Unexpected failure"},
    },
)
async def request_report_download(
    payload: ReportDownloadRequest,
    request: Request,
    service: Annotated[ReportDownloadService, Depends(get_report_download_service)],
    user_agent: Annotated[str | None, Header()] = None,
) -> ReportDownloadResponse:
    """Release the report in exchange for an email address.

    The body is validated before the rate limit is consulted, so a malformed
    address is always answered with 400.

    Args:
        payload: Email capture form.
        request: Incoming request (client IP resolution).
        service: Report download service.
        user_agent: Client User-Agent header, stored with the download record.

    Returns:
        ReportDownloadResponse: success flag, message and download URL.

    Raises:
        RateLimitExceededError: Rendered as 429 by the global handler.
    """
    return await service.request_download(
        str(payload.email),
        client_ip=get_client_ip(request),
        user_agent=user_agent,
    )
