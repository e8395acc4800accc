"""Engine components wiring fetch → parse → dedup store."""

from .fetcher import FetchRequest, FetchResponse, Fetcher
from .ledger import MonitorLedger
from .parser import ComplaintParser
from .scraper import ComplaintScraper
from .slug import slugify
from .store import ComplaintStore
from .thread_pool import ThreadPoolManager

__all__ = [
    "ComplaintParser",
    "ComplaintScraper",
    "ComplaintStore",
    "FetchRequest",
    "FetchResponse",
    "Fetcher",
    "MonitorLedger",
    "ThreadPoolManager",
    "slugify",
]
