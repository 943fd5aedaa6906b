"""
Contratos que el motor de historial consume.
El enumerador lee del catalogo; el coordinador escribe en el store.
"""
from abc import ABC, abstractmethod
from typing import List

from app.infrastructure.external.airtable_sync.table_registry import TableTypeConfig
from app.infrastructure.external.airtable_sync.types import AirtableBase, AirtableTable
from app.infrastructure.external.airtable_revisions.types import (
    ParsedRevisionEntry,
    RawRevisionRecord,
    TargetDescriptor,
)


class CatalogProvider(ABC):
    """
    Catalogo local de bases/tablas/registros ya sincronizado desde la API.
    """

    @abstractmethod
    def list_bases(self) -> List[AirtableBase]:
        """Bases en orden estable de catalogo."""
        pass

    @abstractmethod
    def list_tables(self, base_id: str) -> List[AirtableTable]:
        """Tablas de una base en orden estable de catalogo."""
        pass

    @abstractmethod
    def list_record_ids(
        self,
        table_type: TableTypeConfig,
        *,
        base_id: str,
        table_id: str,
        limit: int,
    ) -> List[str]:
        """
        IDs de registros de la tabla, ascendentes por `table_type.sort_column`.

        Args:
            table_type: Tipo de tabla registrado (define tabla y columna de orden)
            base_id: Base a la que pertenecen los registros
            table_id: Tabla a la que pertenecen los registros
            limit: Maximo de IDs a retornar
        """
        pass


class RevisionStore(ABC):
    """
    Persistencia idempotente del historial, clave (record_id, base_id, table_id).
    """

    @abstractmethod
    def upsert_raw(self, record: RawRevisionRecord) -> None:
        """Inserta o reemplaza el payload crudo del registro."""
        pass

    @abstractmethod
    def replace_parsed(self, target: TargetDescriptor, entries: List[ParsedRevisionEntry]) -> None:
        """Reemplaza por completo el set parseado del registro."""
        pass

    @abstractmethod
    def has_entries(self, record_id: str) -> bool:
        pass

    @abstractmethod
    def get_entries(self, record_id: str) -> List[ParsedRevisionEntry]:
        pass
