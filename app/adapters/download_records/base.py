from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DownloadRecord:
    """One granted report download, kept for lead tracking."""

    email: str
    ip: str
    user_agent: str | None = None
    downloaded_at: datetime = field(default_factory=_utcnow)

    def to_row(self) -> dict[str, Any]:
        """Serialize to the column layout of the ``report_downloads`` table."""
        return {
            "email": self.email,
            "ip": self.ip,
            "user_agent": self.user_agent,
            "downloaded_at": self.downloaded_at.isoformat(),
        }


class AbstractDownloadRecordStore(ABC):
    """Interface for stores that persist download records."""

    @abstractmethod
    async def save(self, record: DownloadRecord) -> None:
        """Persist a single download record.

        Args:
            record: The download to store.

        Raises:
            DownloadRecordError: If the record could not be stored.
        """
        ...
