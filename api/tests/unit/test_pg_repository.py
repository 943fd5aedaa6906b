from __future__ import annotations

from datetime import datetime, timezone

import pytest

pytest.importorskip("psycopg")

import psycopg

from app.infrastructure.external.airtable_revisions.types import (
    ParsedRevisionEntry,
    RawRevisionRecord,
    TargetDescriptor,
)
from app.infrastructure.external.airtable_sync.pg_repository import (
    PostgresRevisionStore,
    PostgresSyncRepository,
    normalize_psycopg_dsn,
)
from app.infrastructure.external.airtable_sync.table_registry import TICKETS
from app.shared.exceptions.revision_sync import RevisionPersistenceError


class _DummyCursor:
    def __init__(self, rows=None, fail_with: Exception | None = None) -> None:
        self.executed_sql: str | None = None
        self.executed_params = None
        self.executemany_values = None
        self.rowcount = 1
        self._rows = rows or []
        self._fail_with = fail_with

    def execute(self, sql: str, params=None) -> None:
        self.executed_sql = sql
        self.executed_params = params

    def executemany(self, sql: str, values) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self.executed_sql = sql
        self.executemany_values = values

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _DummyConn:
    def __init__(self, cursor: _DummyCursor | None = None) -> None:
        self._cursor = cursor or _DummyCursor()
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return self._cursor

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


TARGET = TargetDescriptor(record_id="rec1", base_id="app1", table_id="tbl1", table_name="Tickets")
NOW = datetime(2025, 12, 16, 10, 15, 0, tzinfo=timezone.utc)


def test_upsert_generates_on_conflict_with_composite_key() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")
    conn = _DummyConn()

    repo.upsert_raw_revision(
        conn,
        RawRevisionRecord(
            record_id="rec1",
            base_id="app1",
            table_id="tbl1",
            table_name="Tickets",
            raw_payload={"data": {}},
            updated_at=NOW,
        ),
    )

    sql = conn._cursor.executed_sql or ""
    assert 'INSERT INTO "raw_revision_history"' in sql
    assert 'ON CONFLICT ("record_id", "base_id", "table_id")' in sql
    assert '"revision_data" = EXCLUDED."revision_data"' in sql
    # La clave no se actualiza
    assert '"record_id" = EXCLUDED' not in sql


def test_upsert_rejects_rows_without_key_columns() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")

    with pytest.raises(ValueError, match="clave"):
        repo.upsert_rows(_DummyConn(), target_table="tickets", rows=[{"title": "x"}])


def test_upsert_empty_rows_is_noop() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")
    conn = _DummyConn()

    assert repo.upsert_rows(conn, target_table="tickets", rows=[]) == 0
    assert conn._cursor.executed_sql is None


def test_parsed_revisions_are_stored_as_full_set() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")
    conn = _DummyConn()
    entry = ParsedRevisionEntry(
        uuid="act1", issue_id="rec1", column_type="Status",
        old_value="Open", new_value="Closed", created_date=NOW, authored_by="usrA",
    )

    repo.replace_parsed_revisions(conn, TARGET, [entry, entry])

    values = conn._cursor.executemany_values
    assert len(values) == 1
    # revision_data viaja como Jsonb con la lista completa
    revision_data = [v for v in values[0] if hasattr(v, "obj")][0]
    assert [item["uuid"] for item in revision_data.obj] == ["act1", "act1"]


def test_list_record_ids_orders_by_declared_column() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")
    cursor = _DummyCursor(rows=[{"record_id": "recA"}, {"record_id": None}, {"record_id": "recB"}])

    ids = repo.list_record_ids(_DummyConn(cursor), table_type=TICKETS, base_id="app1", table_id="tbl1", limit=5)

    assert ids == ["recA", "recB"]
    assert 'ORDER BY "ticket_id" ASC NULLS LAST' in cursor.executed_sql
    assert cursor.executed_params == ("app1", "tbl1", 5)


def test_get_parsed_revisions_none_when_missing() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")

    assert repo.get_parsed_revisions(_DummyConn(_DummyCursor(rows=[])), "rec1") is None


def test_store_commits_each_write() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")
    conn = _DummyConn()
    store = PostgresRevisionStore(repo, conn)

    store.upsert_raw(RawRevisionRecord.for_target(TARGET, {"data": {}}))
    store.replace_parsed(TARGET, [])

    assert conn.commits == 2
    assert conn.rollbacks == 0


def test_store_wraps_database_errors() -> None:
    repo = PostgresSyncRepository("postgresql://dummy")
    conn = _DummyConn(_DummyCursor(fail_with=psycopg.errors.UniqueViolation("dup")))
    store = PostgresRevisionStore(repo, conn)

    with pytest.raises(RevisionPersistenceError) as exc_info:
        store.upsert_raw(RawRevisionRecord.for_target(TARGET, {"data": {}}))

    assert exc_info.value.record_id == "rec1"
    assert conn.rollbacks == 1
    assert conn.commits == 0


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("postgresql+psycopg://u:p@h:5432/db", "postgresql://u:p@h:5432/db"),
        ("postgresql+asyncpg://u:p@h/db", "postgresql://u:p@h/db"),
        ("postgres://u:p@h/db", "postgres://u:p@h/db"),
        ("host=h dbname=db", "host=h dbname=db"),
    ],
)
def test_normalize_psycopg_dsn(raw: str, expected: str) -> None:
    assert normalize_psycopg_dsn(raw) == expected


class _ParsedTableCursor(_DummyCursor):
    """Guarda el ultimo revision_data escrito y lo devuelve en el SELECT."""

    def __init__(self) -> None:
        super().__init__()
        self.stored = None

    def executemany(self, sql: str, values) -> None:
        super().executemany(sql, values)
        if '"parsed_revision_history"' in sql:
            self.stored = [v.obj for v in values[0] if hasattr(v, "obj")][0]

    def fetchone(self):
        if self.stored is None:
            return None
        return {"revision_data": self.stored}


def test_store_has_no_entries_for_unknown_record() -> None:
    store = PostgresRevisionStore(PostgresSyncRepository("postgresql://dummy"), _DummyConn(_ParsedTableCursor()))

    assert store.has_entries("recNada") is False
    assert store.get_entries("recNada") == []


def test_store_reads_back_replaced_set() -> None:
    cursor = _ParsedTableCursor()
    store = PostgresRevisionStore(PostgresSyncRepository("postgresql://dummy"), _DummyConn(cursor))
    entries = [
        ParsedRevisionEntry(
            uuid="act1", issue_id="rec1", column_type="Status",
            old_value="Open", new_value="Closed", created_date=NOW, authored_by="usrA",
        ),
        ParsedRevisionEntry(
            uuid="act2", issue_id="rec1", column_type="Assignee",
            old_value="Ana", new_value="", created_date=None, authored_by=None,
        ),
    ]

    store.replace_parsed(TARGET, entries)

    assert store.has_entries("rec1") is True
    assert store.get_entries("rec1") == entries
    assert cursor.executed_params == ("rec1",)
