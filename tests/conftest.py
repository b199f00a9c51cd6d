"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment before settings are imported so no real Supabase
project or SMTP relay is ever contacted.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
for _var in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM"):
    os.environ.pop(_var, None)

import pytest

from app.core import rate_limit as rate_limit_module


@pytest.fixture(autouse=True)
def isolated_rate_limit_store(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point the process-wide limiter at a fresh file for every test."""
    store_path = tmp_path / "report-download-limits.json"
    monkeypatch.setattr(rate_limit_module.settings.app, "rate_limit_store_path", str(store_path))
    monkeypatch.setattr(rate_limit_module, "_limiter", None)
    monkeypatch.setattr(rate_limit_module, "_limiter_config", None)
    return store_path
