"""User-Agent pool abstraction."""

from __future__ import annotations

import random
from threading import Lock
from typing import Iterable, Optional


class UserAgentPool:
    """Hand out browser identities, rotating when more than one is configured."""

    def __init__(self, user_agents: Iterable[str] | None = None, fallback: str | None = None) -> None:
        self._lock = Lock()
        self._fallback = fallback
        self._uas = [ua.strip() for ua in user_agents or () if ua.strip()]

    def get(self) -> Optional[str]:
        with self._lock:
            if not self._uas:
                return self._fallback
            return random.choice(self._uas)


__all__ = ["UserAgentPool"]
