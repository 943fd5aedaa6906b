"""
Tests del cliente REST de Airtable: paginacion por offset y backoff.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List
from unittest.mock import MagicMock

import pytest

from app.infrastructure.external.airtable_sync.airtable_client import (
    AirtableApiError,
    AirtableClient,
    AirtableCredentials,
)
from app.infrastructure.external.airtable_sync.sync_service import map_airtable_record_to_row
from app.infrastructure.external.airtable_sync.table_registry import TICKETS, USERS
from app.infrastructure.external.airtable_sync.types import AirtableRecord, AirtableTable


def _resp(status_code: int, body=None, headers=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body or {}
    resp.headers = headers or {}
    resp.text = str(body)
    return resp


def _client(responses: List[MagicMock], sleeps: List[float]) -> tuple[AirtableClient, MagicMock]:
    session = MagicMock()
    session.request.side_effect = responses
    client = AirtableClient(
        AirtableCredentials(token="pat123"),
        session=session,
        max_retries=3,
        min_backoff_s=1.0,
        sleep=sleeps.append,
    )
    return client, session


class TestListing:
    def test_list_bases_follows_offset(self) -> None:
        sleeps: List[float] = []
        client, session = _client(
            [
                _resp(200, {"bases": [{"id": "app1", "name": "Soporte"}], "offset": "o1"}),
                _resp(200, {"bases": [{"id": "app2", "name": "Ventas"}]}),
            ],
            sleeps,
        )

        bases = client.list_bases()

        assert [b.base_id for b in bases] == ["app1", "app2"]
        second_call = session.request.call_args_list[1]
        assert second_call.kwargs["params"] == [("offset", "o1")]
        assert second_call.kwargs["headers"]["Authorization"] == "Bearer pat123"

    def test_list_tables_keeps_fields(self) -> None:
        client, _ = _client(
            [_resp(200, {"tables": [{"id": "tbl1", "name": "Tickets", "fields": [{"name": "Title"}]}]})],
            [],
        )

        tables = client.list_tables("app1")

        assert tables == [AirtableTable(table_id="tbl1", base_id="app1", name="Tickets", fields=[{"name": "Title"}])]

    def test_iter_records_pages(self) -> None:
        client, session = _client(
            [
                _resp(200, {"records": [{"id": "rec1", "fields": {"Title": "a"}, "createdTime": "2024-01-01T00:00:00.000Z"}], "offset": "p2"}),
                _resp(200, {"records": [{"id": "rec2", "fields": {}}]}),
            ],
            [],
        )

        records = list(client.iter_records(base_id="app1", table_id="tbl1", page_size=1))

        assert [r.record_id for r in records] == ["rec1", "rec2"]
        assert records[0].created_time == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert records[1].created_time is None
        assert ("offset", "p2") in session.request.call_args_list[1].kwargs["params"]

    def test_record_without_id_fails(self) -> None:
        client, _ = _client([_resp(200, {"records": [{"fields": {}}]})], [])

        with pytest.raises(AirtableApiError):
            list(client.iter_records(base_id="app1", table_id="tbl1"))


class TestBackoff:
    def test_retries_429_respecting_retry_after(self) -> None:
        sleeps: List[float] = []
        client, _ = _client(
            [_resp(429, headers={"Retry-After": "2"}), _resp(200, {"bases": []})],
            sleeps,
        )

        assert client.list_bases() == []
        assert sleeps == [2.0]

    def test_retries_5xx_with_exponential_backoff(self) -> None:
        sleeps: List[float] = []
        client, _ = _client([_resp(503), _resp(502), _resp(200, {"bases": []})], sleeps)

        client.list_bases()

        assert sleeps == [pytest.approx(1.15), pytest.approx(2.3)]

    def test_gives_up_after_max_retries(self) -> None:
        sleeps: List[float] = []
        client, _ = _client([_resp(500)] * 4, sleeps)

        with pytest.raises(AirtableApiError, match="500"):
            client.list_bases()

        assert len(sleeps) == 3

    def test_4xx_fails_immediately(self) -> None:
        sleeps: List[float] = []
        client, _ = _client([_resp(401, {"error": "AUTHENTICATION_REQUIRED"})], sleeps)

        with pytest.raises(AirtableApiError, match="401"):
            client.list_bases()

        assert sleeps == []


class TestRowMapping:
    TABLE = AirtableTable(table_id="tbl1", base_id="app1", name="Tickets", fields=[])
    SYNCED_AT = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_ticket_row(self) -> None:
        record = AirtableRecord(
            record_id="rec1",
            fields={"Ticket ID": 42, "Title": "Caida", "Assigned To": "usr1"},
            created_time=None,
        )

        row = map_airtable_record_to_row(record, config=TICKETS, table=self.TABLE, synced_at=self.SYNCED_AT)

        assert row["airtable_record_id"] == "rec1"
        assert row["base_id"] == "app1"
        assert row["table_id"] == "tbl1"
        assert row["ticket_id"] == "42"
        assert row["title"] == "Caida"
        assert row["description"] is None
        assert row["assigned_to"] == ["usr1"]

    def test_missing_list_field_becomes_empty_list(self) -> None:
        record = AirtableRecord(record_id="recU", fields={"Email": "a@b.c"}, created_time=None)

        row = map_airtable_record_to_row(record, config=USERS, table=self.TABLE, synced_at=self.SYNCED_AT)

        assert row["email"] == "a@b.c"
        assert row["tickets"] == []
