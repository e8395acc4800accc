"""Domain records exchanged between scraper, store, ledger and registry."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

NO_DESCRIPTION = "No description"
UNKNOWN = "unknown"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: datetime) -> str:
    """Fixed-width UTC ISO string so lexical order matches time order."""

    return to_utc(value).isoformat(timespec="microseconds")


@dataclass(slots=True)
class ComplaintRecord:
    """A single complaint card parsed from a listing page."""

    entity: str
    title: str
    external_id: str | None = None
    description: str = NO_DESCRIPTION
    status: str = UNKNOWN
    occurred_at: str = ""
    location: str = UNKNOWN
    link: str | None = None
    collected_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.collected_at = to_utc(self.collected_at)
        if not self.occurred_at:
            self.occurred_at = isoformat(self.collected_at)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["collected_at"] = isoformat(self.collected_at)
        return payload


@dataclass(slots=True)
class MonitorConfig:
    """Ledger row describing the desired monitoring state of one entity."""

    entity: str
    interval: str
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "interval": self.interval,
            "active": self.active,
            "created_at": isoformat(self.created_at) if self.created_at else None,
            "updated_at": isoformat(self.updated_at) if self.updated_at else None,
        }


@dataclass(slots=True)
class ActiveJob:
    """In-memory handle on a recurring job; never persisted."""

    entity: str
    interval: str
    crontab: str
    job_id: str
    started_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "interval": self.interval,
            "crontab": self.crontab,
            "started_at": isoformat(self.started_at),
            "active": True,
        }


@dataclass(slots=True)
class UpsertResult:
    inserted: int = 0
    duplicate: int = 0


@dataclass(slots=True)
class ComplaintFilters:
    """Optional filters for historical queries, combined with AND."""

    entity: str | None = None
    status: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: int | None = None


__all__ = [
    "ActiveJob",
    "ComplaintFilters",
    "ComplaintRecord",
    "MonitorConfig",
    "NO_DESCRIPTION",
    "UNKNOWN",
    "UpsertResult",
    "isoformat",
    "to_utc",
    "utc_now",
]
