"""
Tests del catalogo (repositorio async + casos de uso) sobre SQLite en memoria.
"""
from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from app.application.use_cases.airtable_use_cases import AirtableUseCases
from app.infrastructure.database.models import (
    AirtableBaseModel,
    AirtableTableModel,
    ParsedRevisionHistoryModel,
    SystemUserModel,
    TicketModel,
)
from app.infrastructure.external.airtable_sync.oauth_client import AirtableOAuthError, OAuthTokens
from app.infrastructure.external.airtable_sync.types import utc_now
from app.shared.exceptions.auth import AirtableNotConnectedException
from app.shared.exceptions.domain import UnsupportedTableTypeException


async def _seed_catalog(db_session) -> None:
    db_session.add_all([
        AirtableBaseModel(airtable_id="app2", name="Ventas", catalog_position=1),
        AirtableBaseModel(airtable_id="app1", name="Soporte", catalog_position=0),
        AirtableTableModel(airtable_id="tblT", base_id="app1", name="Tickets", fields=[{"name": "Title"}], catalog_position=0),
        AirtableTableModel(airtable_id="tblN", base_id="app1", name="Notas", fields=[], catalog_position=1),
        TicketModel(airtable_record_id="recB", base_id="app1", table_id="tblT", ticket_id="2", title="B"),
        TicketModel(airtable_record_id="recA", base_id="app1", table_id="tblT", ticket_id="1", title="A"),
        TicketModel(airtable_record_id="recZ", base_id="app1", table_id="tblT", ticket_id=None, title="Z"),
        ParsedRevisionHistoryModel(record_id="recB", base_id="app1", table_id="tblT", table_name="Tickets", revision_data=[]),
    ])
    await db_session.commit()


class TestCatalogQueries:
    @pytest.mark.asyncio
    async def test_bases_in_catalog_order(self, db_session) -> None:
        await _seed_catalog(db_session)

        bases = await AirtableUseCases(db_session, oauth_client=MagicMock()).list_bases()

        assert [b.id for b in bases] == ["app1", "app2"]

    @pytest.mark.asyncio
    async def test_tables_flag_supported_types(self, db_session) -> None:
        await _seed_catalog(db_session)

        tables = await AirtableUseCases(db_session, oauth_client=MagicMock()).list_tables("app1")

        assert [(t.name, t.supported, t.fields_count) for t in tables] == [
            ("Tickets", True, 1),
            ("Notas", False, 0),
        ]

    @pytest.mark.asyncio
    async def test_records_sorted_with_history_flag(self, db_session) -> None:
        await _seed_catalog(db_session)

        page = await AirtableUseCases(db_session, oauth_client=MagicMock()).list_records("Tickets", page=1, page_size=10)

        assert page.total == 3
        assert [r["airtable_record_id"] for r in page.items] == ["recA", "recB", "recZ"]
        assert [r["has_revision_history"] for r in page.items] == [False, True, False]

    @pytest.mark.asyncio
    async def test_records_pagination(self, db_session) -> None:
        await _seed_catalog(db_session)

        page = await AirtableUseCases(db_session, oauth_client=MagicMock()).list_records("Tickets", page=2, page_size=2)

        assert page.total == 3
        assert [r["airtable_record_id"] for r in page.items] == ["recZ"]

    @pytest.mark.asyncio
    async def test_unsupported_table(self, db_session) -> None:
        with pytest.raises(UnsupportedTableTypeException):
            await AirtableUseCases(db_session, oauth_client=MagicMock()).list_records("Notas")


class TestAccessTokenResolution:
    @pytest.mark.asyncio
    async def test_valid_oauth_token_is_used(self, db_session) -> None:
        user = SystemUserModel(access_token="at-ok", token_expires_at=utc_now() + timedelta(hours=1))
        oauth = MagicMock()

        token = await AirtableUseCases(db_session, oauth_client=oauth)._resolve_access_token(user)

        assert token == "at-ok"
        oauth.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_expiring_token_is_refreshed(self, db_session) -> None:
        user = SystemUserModel(
            airtable_user_id="usr1",
            access_token="at-old",
            refresh_token="rt",
            token_expires_at=utc_now() + timedelta(minutes=1),
        )
        db_session.add(user)
        await db_session.commit()
        oauth = MagicMock()
        oauth.refresh.return_value = OAuthTokens(
            access_token="at-new", refresh_token="rt2", expires_at=utc_now() + timedelta(hours=1)
        )

        token = await AirtableUseCases(db_session, oauth_client=oauth)._resolve_access_token(user)

        assert token == "at-new"
        oauth.refresh.assert_called_once_with("rt")
        assert user.refresh_token == "rt2"

    @pytest.mark.asyncio
    async def test_failed_refresh_asks_to_reconnect(self, db_session) -> None:
        user = SystemUserModel(
            access_token="at-old",
            refresh_token="rt",
            token_expires_at=utc_now() - timedelta(minutes=1),
        )
        oauth = MagicMock()
        oauth.refresh.side_effect = AirtableOAuthError("invalid_grant", 400)

        with pytest.raises(AirtableNotConnectedException):
            await AirtableUseCases(db_session, oauth_client=oauth)._resolve_access_token(user)

    @pytest.mark.asyncio
    async def test_falls_back_to_personal_token(self, db_session) -> None:
        user = SystemUserModel()

        with patch("app.application.use_cases.airtable_use_cases.settings") as settings:
            settings.AIRTABLE_TOKEN = "pat-env"
            token = await AirtableUseCases(db_session, oauth_client=MagicMock())._resolve_access_token(user)

        assert token == "pat-env"

    @pytest.mark.asyncio
    async def test_no_token_at_all(self, db_session) -> None:
        with patch("app.application.use_cases.airtable_use_cases.settings") as settings:
            settings.AIRTABLE_TOKEN = ""
            with pytest.raises(AirtableNotConnectedException):
                await AirtableUseCases(db_session, oauth_client=MagicMock())._resolve_access_token(SystemUserModel())
