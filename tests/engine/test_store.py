from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from complaint_monitor.engine import ComplaintStore
from complaint_monitor.errors import InvalidArgument, StorageUnavailable
from complaint_monitor.models import ComplaintFilters, utc_now


class FlakyConnection:
    """Delegates to a real connection but fails the Nth execute call."""

    def __init__(self, conn: sqlite3.Connection, fail_on: int) -> None:
        self._conn = conn
        self._fail_on = fail_on
        self.calls = 0

    def execute(self, *args):
        self.calls += 1
        if self.calls == self._fail_on:
            raise sqlite3.OperationalError("disk I/O error")
        return self._conn.execute(*args)

    def __enter__(self):
        return self._conn.__enter__()

    def __exit__(self, *exc_info):
        return self._conn.__exit__(*exc_info)


def test_upsert_is_idempotent(store: ComplaintStore, make_record) -> None:
    batch = [make_record(external_id=f"id-{index}") for index in range(3)]
    first = store.upsert_batch(batch)
    assert (first.inserted, first.duplicate) == (3, 0)
    second = store.upsert_batch(batch)
    assert (second.inserted, second.duplicate) == (0, 3)
    assert len(store.query_by_entity("Example Co")) == 3


def test_duplicates_never_overwrite(store: ComplaintStore, make_record) -> None:
    store.upsert_batch([make_record(title="Original")])
    result = store.upsert_batch([make_record(title="Edited upstream")])
    assert result.duplicate == 1
    assert store.query_by_entity("Example Co")[0].title == "Original"


def test_same_id_for_different_entities_is_distinct(store: ComplaintStore, make_record) -> None:
    result = store.upsert_batch([make_record(entity="A"), make_record(entity="B")])
    assert result.inserted == 2


def test_null_ids_are_never_deduplicated(store: ComplaintStore, make_record) -> None:
    batch = [make_record(external_id=None, link=None) for _ in range(2)]
    assert store.upsert_batch(batch).inserted == 2
    assert store.upsert_batch(batch).inserted == 2
    assert len(store.query_by_entity("Example Co")) == 4


def test_query_by_entity_orders_newest_first_and_limits(store: ComplaintStore, make_record) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    batch = [
        make_record(external_id=f"id-{index}", collected_at=base + timedelta(hours=index))
        for index in range(5)
    ]
    batch.append(make_record(entity="Other", external_id="other"))
    store.upsert_batch(batch)
    records = store.query_by_entity("Example Co", limit=3)
    assert [record.external_id for record in records] == ["id-4", "id-3", "id-2"]
    assert all(
        earlier.collected_at >= later.collected_at for earlier, later in zip(records, records[1:])
    )
    assert len(store.query_by_entity("Example Co")) == 5


def test_query_all_combines_filters(store: ComplaintStore, make_record) -> None:
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    store.upsert_batch(
        [
            make_record(external_id="1", status="Respondida", collected_at=base),
            make_record(external_id="2", status="Não respondida", collected_at=base + timedelta(days=1)),
            make_record(external_id="3", status="Respondida", collected_at=base + timedelta(days=2)),
            make_record(entity="Other", external_id="4", status="Respondida", collected_at=base),
        ]
    )
    answered = store.query_all(ComplaintFilters(entity="Example Co", status="Respondida"))
    assert [record.external_id for record in answered] == ["3", "1"]

    windowed = store.query_all(
        ComplaintFilters(since=base + timedelta(hours=12), until=base + timedelta(days=1, hours=1))
    )
    assert [record.external_id for record in windowed] == ["2"]

    limited = store.query_all(ComplaintFilters(limit=2))
    assert len(limited) == 2
    assert len(store.query_all()) == 4

    with pytest.raises(InvalidArgument):
        store.query_all(ComplaintFilters(limit=-1))


def test_purge_older_than(store: ComplaintStore, make_record) -> None:
    now = utc_now()
    store.upsert_batch(
        [
            make_record(external_id="old", collected_at=now - timedelta(days=40)),
            make_record(external_id="fresh", collected_at=now - timedelta(days=2)),
        ]
    )
    assert store.purge_older_than(30) == 1
    assert [record.external_id for record in store.query_all()] == ["fresh"]
    with pytest.raises(InvalidArgument):
        store.purge_older_than(-1)


def test_stats(store: ComplaintStore, make_record) -> None:
    store.upsert_batch(
        [
            make_record(external_id="1", status="Respondida"),
            make_record(external_id="2", status="Resolvido"),
            make_record(entity="Other", external_id="3"),
        ]
    )
    overall = store.stats()
    assert overall["total"] == 3
    assert overall["distinct_entities"] == 2
    entity_stats = store.stats("Example Co")
    assert entity_stats["total"] == 2
    assert entity_stats["distinct_statuses"] == 2
    assert "distinct_entities" not in entity_stats


def test_storage_failure_keeps_earlier_inserts(
    store: ComplaintStore, sqlite_manager, db_path, make_record
) -> None:
    real = store._conn
    store._conn = FlakyConnection(real, fail_on=2)  # type: ignore[assignment]
    batch = [make_record(external_id=f"id-{index}") for index in range(3)]
    with pytest.raises(StorageUnavailable):
        store.upsert_batch(batch)
    store._conn = real
    stored = ComplaintStore(sqlite_manager, db_path).query_by_entity("Example Co")
    assert [record.external_id for record in stored] == ["id-0"]
