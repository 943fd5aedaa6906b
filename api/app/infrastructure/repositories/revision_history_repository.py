"""
Repositorio de lectura del historial de revisiones (API).
"""
from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import ParsedRevisionHistoryModel
from app.infrastructure.external.airtable_revisions.types import ParsedRevisionEntry


class RevisionHistoryRepository:
    """
    Lee el set parseado de cambios por record_id.
    La escritura la hace el pipeline de sync (PostgresRevisionStore).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def has_entries(self, record_id: str) -> bool:
        """Indica si el registro tiene un set parseado guardado."""
        result = await self.session.execute(
            select(ParsedRevisionHistoryModel.id)
            .where(ParsedRevisionHistoryModel.record_id == record_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_by_record_id(self, record_id: str) -> Optional[ParsedRevisionHistoryModel]:
        result = await self.session.execute(
            select(ParsedRevisionHistoryModel)
            .where(ParsedRevisionHistoryModel.record_id == record_id)
            .order_by(ParsedRevisionHistoryModel.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_entries(self, record_id: str) -> List[ParsedRevisionEntry]:
        """
        Retorna las entradas parseadas del registro.

        Returns:
            Lista de entradas (vacia si el registro nunca se parseo)
        """
        row = await self.get_by_record_id(record_id)
        if row is None:
            return []
        return [ParsedRevisionEntry.from_dict(item) for item in row.revision_data or []]

    async def record_ids_with_history(self, record_ids: Iterable[str]) -> Set[str]:
        """Subconjunto de record_ids que tienen historial parseado."""
        ids = [r for r in record_ids if r]
        if not ids:
            return set()
        result = await self.session.execute(
            select(ParsedRevisionHistoryModel.record_id).where(
                ParsedRevisionHistoryModel.record_id.in_(ids)
            )
        )
        return set(result.scalars().all())
