"""Factory for the download record store."""

import logging

from app.adapters.download_records.base import AbstractDownloadRecordStore
from app.adapters.download_records.null_store import NullDownloadRecordStore
from app.adapters.download_records.supabase_store import SupabaseDownloadRecordStore
from app.core.config import RecordStoreSettings, settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_download_record_store(
    record_settings: RecordStoreSettings | None = None,
) -> AbstractDownloadRecordStore:
    """Instantiate the record store described by configuration.

    Persistence is optional: without ``SUPABASE_URL`` a no-op store is
    returned and downloads are simply not recorded.

    Args:
        record_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractDownloadRecordStore: Configured store instance.

    Raises:
        ValidationAppError: If SUPABASE_URL is set without a service key.
    """
    cfg = record_settings or settings.record_store

    if not cfg.url:
        logger.info("download_record.store_disabled", extra={"reason": "supabase_url_missing"})
        return NullDownloadRecordStore()

    if not cfg.service_key:
        raise ValidationAppError(
            code="record_store_missing_key",
            message="Supabase record store requires SUPABASE_SERVICE_KEY environment variable",
        )

    return SupabaseDownloadRecordStore(
        base_url=cfg.url,
        service_key=cfg.service_key,
        table=cfg.table,
        timeout_seconds=cfg.timeout_seconds,
    )
