"""Supabase download record store.

Inserts rows through the PostgREST endpoint Supabase exposes at
``/rest/v1/<table>`` using the service role key.
"""

from __future__ import annotations

import logging

import httpx

from app.adapters.download_records.base import AbstractDownloadRecordStore, DownloadRecord
from app.core.errors import DownloadRecordError

logger = logging.getLogger(__name__)


class SupabaseDownloadRecordStore(AbstractDownloadRecordStore):
    """Store download records in a Supabase table over HTTP."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        table: str = "report_downloads",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            base_url: Supabase project URL (e.g., "https://xyz.supabase.co").
            service_key: Service role key sent as ``apikey`` and bearer token.
            table: Target table name.
            timeout_seconds: Request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.table = table
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }
        self._timeout = timeout_seconds
        self._transport = transport

    async def save(self, record: DownloadRecord) -> None:
        """Insert one row for ``record``.

        Raises:
            DownloadRecordError: On network failure or a non-2xx response.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json=record.to_row(),
                    headers=self._headers,
                )
        except httpx.HTTPError as exc:
            raise DownloadRecordError(
                code="download_record_unreachable",
                message=f"Supabase request failed: {type(exc).__name__}",
                details={"hint": "Check SUPABASE_URL and network connectivity"},
            ) from exc

        if response.is_error:
            raise DownloadRecordError(
                code="download_record_rejected",
                message=f"Supabase rejected insert into {self.table}",
                details={"status_code": response.status_code},
            )

        logger.debug(
            "download_record.saved",
            extra={"table": self.table, "status_code": response.status_code},
        )
