"""
Repositorio de lectura del catalogo Airtable (bases, tablas y registros tipados).
"""
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import (
    AirtableBaseModel,
    AirtableTableModel,
    AirtableUserModel,
    TicketModel,
)
from app.infrastructure.database.session import Base
from app.infrastructure.external.airtable_sync.table_registry import TableTypeConfig


# Tabla Postgres destino -> modelo ORM
RECORD_MODELS: Dict[str, Type[Base]] = {
    TicketModel.__tablename__: TicketModel,
    AirtableUserModel.__tablename__: AirtableUserModel,
}


def _row_to_dict(row: Base) -> Dict[str, Any]:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


class CatalogRepository:
    """Consultas del catalogo sincronizado, en orden estable."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_bases(self) -> List[AirtableBaseModel]:
        result = await self.session.execute(
            select(AirtableBaseModel).order_by(
                AirtableBaseModel.catalog_position, AirtableBaseModel.airtable_id
            )
        )
        return list(result.scalars().all())

    async def list_tables(self, base_id: str) -> List[AirtableTableModel]:
        result = await self.session.execute(
            select(AirtableTableModel)
            .where(AirtableTableModel.base_id == base_id)
            .order_by(AirtableTableModel.catalog_position, AirtableTableModel.airtable_id)
        )
        return list(result.scalars().all())

    async def list_records(
        self,
        table_type: TableTypeConfig,
        *,
        base_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Registros tipados de un tipo de tabla, ascendentes por su columna de orden.

        Args:
            table_type: Tipo registrado (define modelo y columna de orden)
            base_id: Filtra por base (opcional)
            skip: Offset de paginacion
            limit: Tamanio de pagina

        Returns:
            Tuple: (filas como dict, total sin paginar)
        """
        model = RECORD_MODELS[table_type.target_table]
        sort_col = getattr(model, table_type.sort_column)
        id_col = getattr(model, table_type.record_id_column)

        filters = []
        if base_id:
            filters.append(model.base_id == base_id)

        total = await self.session.scalar(select(func.count()).select_from(model).where(*filters))
        result = await self.session.execute(
            select(model)
            .where(*filters)
            .order_by(sort_col.asc().nulls_last(), id_col.asc())
            .offset(skip)
            .limit(limit)
        )
        rows = [_row_to_dict(r) for r in result.scalars().all()]
        return rows, int(total or 0)
