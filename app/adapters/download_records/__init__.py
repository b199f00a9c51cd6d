"""Download record adapters - where granted downloads are logged."""

from app.adapters.download_records.base import AbstractDownloadRecordStore, DownloadRecord
from app.adapters.download_records.factory import create_download_record_store
from app.adapters.download_records.null_store import NullDownloadRecordStore
from app.adapters.download_records.supabase_store import SupabaseDownloadRecordStore

__all__ = [
    "AbstractDownloadRecordStore",
    "DownloadRecord",
    "NullDownloadRecordStore",
    "SupabaseDownloadRecordStore",
    "create_download_record_store",
]
