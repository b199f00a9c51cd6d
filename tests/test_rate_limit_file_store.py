"""Tests for the JSON file rate limit store."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.base import RateLimitEntry
from app.adapters.rate_limit.file_store import JsonFileRateLimitStore
from app.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from app.core.errors import RateLimitStoreError


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "limits.json"


def test_missing_file_loads_as_empty(store_path: Path) -> None:
    assert JsonFileRateLimitStore(store_path).load() == {}


def test_save_creates_directory_and_writes_indented_json(store_path: Path) -> None:
    store = JsonFileRateLimitStore(store_path)

    store.save({"198.51.100.1": RateLimitEntry(client_id="198.51.100.1", count=2, reset_at=1900.0)})

    raw = store_path.read_text(encoding="utf-8")
    assert json.loads(raw) == {"198.51.100.1": {"count": 2, "reset_at": 1900.0}}
    assert '\n  "198.51.100.1"' in raw


def test_load_returns_saved_entries(store_path: Path) -> None:
    store = JsonFileRateLimitStore(store_path)
    store.save(
        {
            "a": RateLimitEntry(client_id="a", count=1, reset_at=100.0),
            "b": RateLimitEntry(client_id="b", count=3, reset_at=200.5),
        }
    )

    entries = store.load()

    assert entries["a"] == RateLimitEntry(client_id="a", count=1, reset_at=100.0)
    assert entries["b"] == RateLimitEntry(client_id="b", count=3, reset_at=200.5)


def test_save_leaves_no_temporary_files(store_path: Path) -> None:
    store = JsonFileRateLimitStore(store_path)
    store.save({"a": RateLimitEntry(client_id="a", count=1, reset_at=100.0)})
    store.save({"a": RateLimitEntry(client_id="a", count=2, reset_at=100.0)})

    assert [p.name for p in store_path.parent.iterdir()] == ["limits.json"]


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"a": {"count": "many", "reset_at": 1}}',
        '{"a": {"count": 1}}',
        '{"a": {"count": -1, "reset_at": 1}}',
    ],
)
def test_corrupt_file_raises_store_error(store_path: Path, content: str) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text(content, encoding="utf-8")

    with pytest.raises(RateLimitStoreError) as exc_info:
        JsonFileRateLimitStore(store_path).load()

    assert exc_info.value.code == "rate_limit_store_corrupt"


def test_unwritable_location_raises_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonFileRateLimitStore(blocker / "limits.json")

    with pytest.raises(RateLimitStoreError) as exc_info:
        store.save({})

    assert exc_info.value.code == "rate_limit_store_unwritable"


def test_limiter_over_file_store_creates_file_on_first_action(store_path: Path) -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path), limit=3, window_seconds=900, clock=clock
    )

    assert limiter.is_allowed("198.51.100.1") is True
    assert not store_path.exists()

    limiter.record_action("198.51.100.1")

    assert json.loads(store_path.read_text(encoding="utf-8")) == {
        "198.51.100.1": {"count": 1, "reset_at": 1900.0}
    }


def test_limiter_fails_open_on_corrupt_file(store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text("garbage", encoding="utf-8")
    limiter = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path), limit=1, window_seconds=900
    )

    assert limiter.is_allowed("198.51.100.1") is True

    limiter.record_action("198.51.100.1")
    assert json.loads(store_path.read_text(encoding="utf-8"))["198.51.100.1"]["count"] == 1


def test_state_survives_new_limiter_instance(store_path: Path) -> None:
    clock = Mock(return_value=1000.0)
    first = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path), limit=2, window_seconds=900, clock=clock
    )
    first.consume("k")
    first.consume("k")

    second = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path), limit=2, window_seconds=900, clock=clock
    )
    assert second.consume("k").allowed is False


def test_fail_closed_limiter_starts_on_fresh_path(store_path: Path) -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path),
        limit=3,
        window_seconds=900,
        fail_open=False,
        clock=clock,
    )

    results = [limiter.consume("198.51.100.1").allowed for _ in range(5)]

    assert results == [True, True, True, False, False]
    assert json.loads(store_path.read_text(encoding="utf-8")) == {
        "198.51.100.1": {"count": 3, "reset_at": 1900.0}
    }


def test_fail_closed_limiter_denies_on_corrupt_file(store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text("garbage", encoding="utf-8")
    limiter = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path), limit=3, window_seconds=900, fail_open=False
    )

    assert limiter.consume("198.51.100.1").allowed is False
    assert store_path.read_text(encoding="utf-8") == "garbage"


def test_concurrent_consume_never_exceeds_limit(store_path: Path) -> None:
    limiter = FixedWindowRateLimiter(
        store=JsonFileRateLimitStore(store_path), limit=5, window_seconds=900
    )

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: limiter.consume("203.0.113.7"), range(40)))

    assert sum(result.allowed for result in results) == 5
    stored = json.loads(store_path.read_text(encoding="utf-8"))
    assert stored["203.0.113.7"]["count"] == 5
