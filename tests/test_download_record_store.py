"""Tests for download record stores and their factory."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from app.adapters.download_records.base import DownloadRecord
from app.adapters.download_records.factory import create_download_record_store
from app.adapters.download_records.null_store import NullDownloadRecordStore
from app.adapters.download_records.supabase_store import SupabaseDownloadRecordStore
from app.core.config import RecordStoreSettings
from app.core.errors import DownloadRecordError, ValidationAppError

RECORD = DownloadRecord(
    email="a@b.com",
    ip="198.51.100.1",
    user_agent="pytest",
    downloaded_at=datetime(2025, 1, 11, 12, 0, tzinfo=timezone.utc),
)


def _store(handler) -> SupabaseDownloadRecordStore:
    return SupabaseDownloadRecordStore(
        base_url="https://project.supabase.co/",
        service_key="service-key",
        transport=httpx.MockTransport(handler),
    )


def test_record_row_layout() -> None:
    assert RECORD.to_row() == {
        "email": "a@b.com",
        "ip": "198.51.100.1",
        "user_agent": "pytest",
        "downloaded_at": "2025-01-11T12:00:00+00:00",
    }


@pytest.mark.asyncio
async def test_supabase_store_posts_row() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201)

    await _store(handler).save(RECORD)

    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == "https://project.supabase.co/rest/v1/report_downloads"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Authorization"] == "Bearer service-key"
    assert request.headers["Prefer"] == "return=minimal"
    assert json.loads(request.content) == RECORD.to_row()


@pytest.mark.asyncio
async def test_supabase_store_raises_on_error_status() -> None:
    store = _store(lambda request: httpx.Response(401, json={"message": "Invalid API key"}))

    with pytest.raises(DownloadRecordError) as exc_info:
        await store.save(RECORD)

    assert exc_info.value.code == "download_record_rejected"
    assert exc_info.value.details == {"status_code": 401}


@pytest.mark.asyncio
async def test_supabase_store_raises_on_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DownloadRecordError) as exc_info:
        await _store(handler).save(RECORD)

    assert exc_info.value.code == "download_record_unreachable"


@pytest.mark.asyncio
async def test_null_store_accepts_records() -> None:
    await NullDownloadRecordStore().save(RECORD)


class TestFactory:
    def test_returns_null_store_without_url(self) -> None:
        store = create_download_record_store(RecordStoreSettings(url=None))

        assert isinstance(store, NullDownloadRecordStore)

    def test_returns_supabase_store_when_configured(self) -> None:
        store = create_download_record_store(
            RecordStoreSettings(url="https://project.supabase.co", service_key="k", table="downloads")
        )

        assert isinstance(store, SupabaseDownloadRecordStore)
        assert store.endpoint == "https://project.supabase.co/rest/v1/downloads"

    def test_requires_service_key_with_url(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_download_record_store(
                RecordStoreSettings(url="https://project.supabase.co", service_key=None)
            )

        assert exc_info.value.code == "record_store_missing_key"
