"""
Tests del enumerador de targets (orden de catalogo, limite global, tablas sin tipo).
"""
from __future__ import annotations

from typing import Dict, List

import pytest

from app.infrastructure.external.airtable_revisions.ports import CatalogProvider
from app.infrastructure.external.airtable_revisions.target_enumerator import TargetEnumerator
from app.infrastructure.external.airtable_sync.table_registry import TICKETS, USERS, get_table_type
from app.infrastructure.external.airtable_sync.types import AirtableBase, AirtableTable
from app.shared.exceptions.revision_sync import NoBasesFoundError


class FakeCatalog(CatalogProvider):
    def __init__(
        self,
        bases: List[AirtableBase],
        tables: Dict[str, List[AirtableTable]],
        records: Dict[str, List[str]],
    ) -> None:
        self._bases = bases
        self._tables = tables
        self._records = records
        self.record_calls: List[tuple] = []

    def list_bases(self) -> List[AirtableBase]:
        return list(self._bases)

    def list_tables(self, base_id: str) -> List[AirtableTable]:
        return list(self._tables.get(base_id, []))

    def list_record_ids(self, table_type, *, base_id, table_id, limit) -> List[str]:
        self.record_calls.append((table_type.table_name, base_id, table_id, limit))
        return self._records.get(table_id, [])[:limit]


def _table(table_id: str, base_id: str, name: str) -> AirtableTable:
    return AirtableTable(table_id=table_id, base_id=base_id, name=name, fields=[])


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(
        bases=[AirtableBase("app1", "Soporte"), AirtableBase("app2", "Ventas")],
        tables={
            "app1": [
                _table("tblT1", "app1", "Tickets"),
                _table("tblX1", "app1", "Notas"),
                _table("tblU1", "app1", "Users"),
            ],
            "app2": [_table("tblT2", "app2", "Tickets")],
        },
        records={
            "tblT1": ["recT1", "recT2"],
            "tblU1": ["recU1"],
            "tblT2": ["recT3", "recT4"],
        },
    )


class TestTargetEnumerator:
    def test_catalog_order_and_skips_unknown_tables(self, catalog: FakeCatalog) -> None:
        targets = TargetEnumerator(catalog).enumerate(limit=100)

        assert [t.record_id for t in targets] == ["recT1", "recT2", "recU1", "recT3", "recT4"]
        assert [t.table_name for t in targets] == ["Tickets", "Tickets", "Users", "Tickets", "Tickets"]
        assert targets[0].base_id == "app1"
        assert targets[0].table_id == "tblT1"
        assert targets[-1].base_id == "app2"
        # "Notas" no tiene tipo registrado: nunca se consultan sus registros
        assert all(call[2] != "tblX1" for call in catalog.record_calls)

    def test_limit_is_global_and_cuts_early(self, catalog: FakeCatalog) -> None:
        targets = TargetEnumerator(catalog).enumerate(limit=3)

        assert [t.record_id for t in targets] == ["recT1", "recT2", "recU1"]
        # La segunda base no se llega a consultar
        assert all(call[1] == "app1" for call in catalog.record_calls)

    def test_remaining_limit_is_passed_to_catalog(self, catalog: FakeCatalog) -> None:
        TargetEnumerator(catalog).enumerate(limit=2)

        assert catalog.record_calls == [("Tickets", "app1", "tblT1", 2)]

    def test_no_bases_raises(self) -> None:
        empty = FakeCatalog(bases=[], tables={}, records={})

        with pytest.raises(NoBasesFoundError) as exc_info:
            TargetEnumerator(empty).enumerate(limit=10)

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "NO_BASES_FOUND"

    def test_bases_without_supported_tables_give_empty_list(self) -> None:
        only_notes = FakeCatalog(
            bases=[AirtableBase("app1", "Soporte")],
            tables={"app1": [_table("tblX1", "app1", "Notas")]},
            records={},
        )

        assert TargetEnumerator(only_notes).enumerate(limit=10) == []

    def test_custom_lookup(self, catalog: FakeCatalog) -> None:
        only_users = {"Users": USERS}

        targets = TargetEnumerator(catalog, table_type_lookup=only_users.get).enumerate(limit=10)

        assert [t.record_id for t in targets] == ["recU1"]


def test_registry_declares_sort_columns() -> None:
    assert get_table_type("Tickets") is TICKETS
    assert TICKETS.sort_column == "ticket_id"
    assert USERS.sort_column == "email"
    assert get_table_type("Notas") is None
