from __future__ import annotations

import logging

from app.adapters.download_records.base import AbstractDownloadRecordStore, DownloadRecord

logger = logging.getLogger(__name__)


class NullDownloadRecordStore(AbstractDownloadRecordStore):
    """Discards records; used when no record store is configured."""

    async def save(self, record: DownloadRecord) -> None:
        logger.debug("download_record.skipped", extra={"reason": "store_not_configured"})
