"""
Casos de uso del catalogo Airtable: sync via API publica y consultas.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dto.airtable_dto import (
    AirtableBaseDTO,
    AirtableRecordsPageDTO,
    AirtableTableDTO,
    CatalogSyncResponseDTO,
)
from app.core.config import settings
from app.infrastructure.database.models import SystemUserModel
from app.infrastructure.driver.selenium_executor import run_sync_job
from app.infrastructure.external.airtable_sync.airtable_client import AirtableApiError
from app.infrastructure.external.airtable_sync.oauth_client import AirtableOAuthClient, AirtableOAuthError
from app.infrastructure.external.airtable_sync.sync_service import build_from_env
from app.infrastructure.external.airtable_sync.table_registry import get_table_type, supported_table_names
from app.infrastructure.external.airtable_sync.types import utc_now
from app.infrastructure.repositories.catalog_repository import CatalogRepository
from app.infrastructure.repositories.revision_history_repository import RevisionHistoryRepository
from app.infrastructure.repositories.system_user_repository import SystemUserRepository
from app.shared.exceptions.auth import AirtableNotConnectedException
from app.shared.exceptions.base import AppException
from app.shared.exceptions.domain import UnsupportedTableTypeException


# Margen para refrescar el token OAuth antes de que expire
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)


def build_oauth_client() -> AirtableOAuthClient:
    return AirtableOAuthClient(
        client_id=settings.AIRTABLE_CLIENT_ID,
        client_secret=settings.AIRTABLE_CLIENT_SECRET,
        redirect_uri=settings.AIRTABLE_REDIRECT_URI,
        scopes=settings.AIRTABLE_OAUTH_SCOPES,
    )


class AirtableUseCases:
    """
    Casos de uso del catalogo.

    El sync corre en el thread de sync (bloqueante: requests + psycopg); las
    consultas usan la sesion async de SQLAlchemy.
    """

    def __init__(self, db: AsyncSession, oauth_client: Optional[AirtableOAuthClient] = None):
        self.db = db
        self._oauth = oauth_client or build_oauth_client()

    async def sync_catalog(self, user: SystemUserModel) -> CatalogSyncResponseDTO:
        """
        Sincroniza bases, tablas y registros tipados con el token del operador.

        Raises:
            AirtableNotConnectedException: Sin token OAuth ni AIRTABLE_TOKEN
            AppException: Airtable respondio con error (502)
        """
        token = await self._resolve_access_token(user)
        service, _, _ = build_from_env(access_token=token, dsn=settings.effective_database_url)

        logger.info(f"Sync de catalogo solicitado por operador {user.id}")
        try:
            result = await run_sync_job(service.run_once)
        except AirtableApiError as e:
            raise AppException(
                message=f"Error de Airtable durante el sync: {e}",
                status_code=502,
                error_code="AIRTABLE_API_ERROR",
            ) from e

        if result.skipped:
            message = "Ya hay un sync de catalogo en curso"
        else:
            message = "Sync de catalogo completado"
        return CatalogSyncResponseDTO(
            success=not result.skipped,
            message=message,
            bases=result.bases,
            tables=result.tables,
            upserted_rows=result.upserted_rows,
            skipped=result.skipped,
        )

    async def _resolve_access_token(self, user: SystemUserModel) -> str:
        """
        Token OAuth del operador (refrescado si esta por expirar) o AIRTABLE_TOKEN.
        """
        if user.access_token:
            expires_at = user.token_expires_at
            if expires_at is not None and expires_at.tzinfo is None:
                # SQLite devuelve datetimes naive
                expires_at = expires_at.replace(tzinfo=utc_now().tzinfo)
            if expires_at is None or expires_at - TOKEN_REFRESH_MARGIN > utc_now():
                return user.access_token
            if user.refresh_token:
                return await self._refresh_token(user)

        if settings.AIRTABLE_TOKEN:
            return settings.AIRTABLE_TOKEN

        raise AirtableNotConnectedException(
            "Conecta Airtable via OAuth o configura AIRTABLE_TOKEN para sincronizar"
        )

    async def _refresh_token(self, user: SystemUserModel) -> str:
        try:
            tokens = await asyncio.to_thread(self._oauth.refresh, user.refresh_token)
        except AirtableOAuthError as e:
            logger.warning(f"No se pudo refrescar el token OAuth del operador {user.id}: {e}")
            raise AirtableNotConnectedException("El token de Airtable expiro; vuelve a conectar la cuenta") from e

        await SystemUserRepository(self.db).update_tokens(user, tokens)
        await self.db.commit()
        logger.info(f"Token OAuth refrescado para operador {user.id}")
        return tokens.access_token

    async def list_bases(self) -> list[AirtableBaseDTO]:
        bases = await CatalogRepository(self.db).list_bases()
        return [AirtableBaseDTO(id=b.airtable_id, name=b.name) for b in bases]

    async def list_tables(self, base_id: str) -> list[AirtableTableDTO]:
        tables = await CatalogRepository(self.db).list_tables(base_id)
        return [
            AirtableTableDTO(
                id=t.airtable_id,
                base_id=t.base_id,
                name=t.name,
                fields_count=len(t.fields or []),
                supported=get_table_type(t.name) is not None,
            )
            for t in tables
        ]

    async def list_records(
        self,
        table_name: str,
        *,
        page: int = 1,
        page_size: int = 50,
        base_id: Optional[str] = None,
    ) -> AirtableRecordsPageDTO:
        """
        Pagina de registros de un tipo de tabla, cada uno marcado con
        `has_revision_history`.

        Raises:
            UnsupportedTableTypeException: Si la tabla no esta en el registro de tipos
        """
        table_type = get_table_type(table_name)
        if table_type is None:
            raise UnsupportedTableTypeException(table_name, supported_table_names())

        rows, total = await CatalogRepository(self.db).list_records(
            table_type,
            base_id=base_id,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        record_ids = [r[table_type.record_id_column] for r in rows]
        with_history = await RevisionHistoryRepository(self.db).record_ids_with_history(record_ids)
        for row in rows:
            row["has_revision_history"] = row[table_type.record_id_column] in with_history

        return AirtableRecordsPageDTO(
            table_name=table_name,
            page=page,
            page_size=page_size,
            total=total,
            items=rows,
        )
