"""Error taxonomy shared by the fetch pipeline, the store and the command surface."""

from __future__ import annotations

from typing import Any


class MonitorError(Exception):
    """Base class for every failure surfaced to callers."""

    kind = "unknown"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "detail": self.detail}


class InvalidArgument(MonitorError):
    """Caller supplied missing or malformed input."""

    kind = "invalid_argument"


class StorageUnavailable(MonitorError):
    """The backing store failed while serving a request."""

    kind = "storage_unavailable"


class FetchError(MonitorError):
    """Base class for failures while talking to the complaints site."""

    kind = "unknown"

    def __init__(self, detail: str, status_code: int | None = None, url: str | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


class NotFoundError(FetchError):
    """Upstream has no page for the requested company."""

    kind = "not_found"


class BlockedError(FetchError):
    """Upstream rejected the request as automated traffic."""

    kind = "blocked"


class NetworkError(FetchError):
    """The request was sent but no response came back."""

    kind = "network"


class UnknownFetchError(FetchError):
    """Any other upstream failure."""

    kind = "unknown"


__all__ = [
    "BlockedError",
    "FetchError",
    "InvalidArgument",
    "MonitorError",
    "NetworkError",
    "NotFoundError",
    "StorageUnavailable",
    "UnknownFetchError",
]
