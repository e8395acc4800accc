"""Infra layer utilities (storage, user-agent pool)."""

from .storage import SQLiteManager
from .ua_pool import UserAgentPool

__all__ = ["SQLiteManager", "UserAgentPool"]
