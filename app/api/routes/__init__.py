from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.report_download import router as report_download_router

__all__ = ["health_router", "report_download_router"]
