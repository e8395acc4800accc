"""Shared fixtures: temporary project home, SQLite storage, record and markup builders."""

from __future__ import annotations

import os
from concurrent.futures import Future
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from complaint_monitor.config import ConfigRepository, GlobalConfig, MonitorPaths
from complaint_monitor.engine import ComplaintStore, MonitorLedger
from complaint_monitor.infra import SQLiteManager
from complaint_monitor.models import ComplaintRecord

BASE_URL = "https://complaints.example"


@pytest.fixture(scope="session", autouse=True)
def _isolated_home(tmp_path_factory: pytest.TempPathFactory) -> Iterable[Path]:
    home = tmp_path_factory.mktemp("home")
    previous = os.environ.get("COMPLAINT_MONITOR_HOME")
    os.environ["COMPLAINT_MONITOR_HOME"] = str(home)
    yield home
    if previous is None:
        os.environ.pop("COMPLAINT_MONITOR_HOME", None)
    else:
        os.environ["COMPLAINT_MONITOR_HOME"] = previous


@pytest.fixture
def sample_global_config() -> GlobalConfig:
    return GlobalConfig(base_url=BASE_URL, request_timeout=5, max_complaints=20)


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigRepository:
    monkeypatch.setenv("COMPLAINT_MONITOR_HOME", str(tmp_path))
    return ConfigRepository(MonitorPaths(tmp_path))


@pytest.fixture
def sqlite_manager() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "complaints.db"


@pytest.fixture
def store(sqlite_manager: SQLiteManager, db_path: Path) -> ComplaintStore:
    return ComplaintStore(sqlite_manager, db_path)


@pytest.fixture
def ledger(sqlite_manager: SQLiteManager, db_path: Path) -> MonitorLedger:
    return MonitorLedger(sqlite_manager, db_path)


@pytest.fixture
def make_record() -> Callable[..., ComplaintRecord]:
    def _builder(**overrides: Any) -> ComplaintRecord:
        base: dict[str, Any] = {
            "entity": "Example Co",
            "title": "Charged twice",
            "external_id": "abc123",
            "description": "The card was charged twice for one order.",
            "status": "Respondida",
            "occurred_at": "2024-05-01",
            "location": "São Paulo - SP",
            "link": f"{BASE_URL}/reclamacao/abc123",
            "collected_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        }
        base.update(overrides)
        return ComplaintRecord(**base)

    return _builder


def render_card(
    title: str = "Charged twice",
    href: str | None = "/example-co/charged-twice_abc123/",
    description: str | None = "The card was charged twice.",
    status: str | None = "Respondida",
    date: str | None = "01/05/2024",
    location: str | None = "São Paulo - SP",
    card_class: str = "sc-1pe7b5t-0",
) -> str:
    parts = [f'<div class="{card_class}">']
    if href is not None:
        parts.append(f'<a href="{href}"><h4 data-testid="complaint-title">{title}</h4></a>')
    else:
        parts.append(f'<h4 data-testid="complaint-title">{title}</h4>')
    if description is not None:
        parts.append(f'<p data-testid="complaint-description">{description}</p>')
    if status is not None:
        parts.append(f'<span data-testid="complaint-status">{status}</span>')
    if date is not None:
        parts.append(f'<span data-testid="complaint-creation-date">{date}</span>')
    if location is not None:
        parts.append(f'<span data-testid="complaint-location">{location}</span>')
    parts.append("</div>")
    return "".join(parts)


def render_page(cards: Iterable[str]) -> str:
    return "<html><body><main>" + "".join(cards) + "</main></body></html>"


@pytest.fixture
def listing_html() -> Callable[..., str]:
    def _builder(count: int = 3) -> str:
        return render_page(
            render_card(title=f"Complaint {index}", href=f"/example-co/complaint_{index}/")
            for index in range(count)
        )

    return _builder


class StubScheduler:
    """Records schedule/remove calls instead of running APScheduler."""

    def __init__(self) -> None:
        self.jobs: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.started = False

    def start(self) -> None:
        self.started = True

    def shutdown(self) -> None:
        self.started = False

    def schedule_entity(self, entity: str, crontab: str, callback) -> str:  # noqa: ANN001
        job_id = f"entity::{entity}"
        self.jobs[job_id] = {"entity": entity, "crontab": crontab, "callback": callback}
        self.calls.append(("add", entity))
        return job_id

    def schedule_every(self, job_id: str, seconds: int, callback) -> None:  # noqa: ANN001
        self.jobs[job_id] = {"seconds": seconds, "callback": callback}
        self.calls.append(("every", job_id))

    def remove_entity(self, entity: str) -> bool:
        self.calls.append(("remove", entity))
        return self.jobs.pop(f"entity::{entity}", None) is not None

    def fire(self, entity: str) -> Any:
        return self.jobs[f"entity::{entity}"]["callback"](entity)


class InlinePool:
    """Runs submitted work immediately on the calling thread."""

    def __init__(self) -> None:
        self.submitted: list[tuple] = []

    def submit(self, fn, *args) -> Future:  # noqa: ANN001
        self.submitted.append(args)
        future: Future = Future()
        future.set_result(fn(*args))
        return future

    def shutdown(self, wait: bool = False) -> None:  # noqa: ARG002
        return


class StubScraper:
    """Returns canned records (or raises) per entity."""

    def __init__(self, records: dict[str, list[ComplaintRecord]] | None = None) -> None:
        self.records = records or {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.closed = False

    def fetch(self, entity: str) -> list[ComplaintRecord]:
        self.calls.append(entity)
        if entity in self.errors:
            raise self.errors[entity]
        return list(self.records.get(entity, []))

    def search(self, entity: str) -> list[ComplaintRecord]:
        self.calls.append(f"search:{entity}")
        return self.fetch(entity)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_scheduler() -> StubScheduler:
    return StubScheduler()


@pytest.fixture
def inline_pool() -> InlinePool:
    return InlinePool()


@pytest.fixture
def stub_scraper() -> StubScraper:
    return StubScraper()
