"""
Endpoints del catalogo Airtable (sync via API publica y consultas).
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies.auth_deps import get_current_operator
from app.api.v1.dependencies.use_case_deps import get_airtable_use_cases
from app.application.dto.airtable_dto import (
    AirtableBaseDTO,
    AirtableRecordsPageDTO,
    AirtableTableDTO,
    CatalogSyncResponseDTO,
)
from app.application.use_cases.airtable_use_cases import AirtableUseCases
from app.infrastructure.database.models import SystemUserModel


router = APIRouter(prefix="/airtable", tags=["Airtable"])


@router.post(
    "/sync",
    response_model=CatalogSyncResponseDTO,
    summary="Sincronizar bases, tablas y registros desde la API de Airtable"
)
async def sync_catalog(
    operator: SystemUserModel = Depends(get_current_operator),
    use_cases: AirtableUseCases = Depends(get_airtable_use_cases),
) -> CatalogSyncResponseDTO:
    return await use_cases.sync_catalog(operator)


@router.get(
    "/bases",
    response_model=List[AirtableBaseDTO],
    summary="Listar bases sincronizadas",
    dependencies=[Depends(get_current_operator)],
)
async def list_bases(
    use_cases: AirtableUseCases = Depends(get_airtable_use_cases),
) -> List[AirtableBaseDTO]:
    return await use_cases.list_bases()


@router.get(
    "/tables/{base_id}",
    response_model=List[AirtableTableDTO],
    summary="Listar tablas de una base",
    dependencies=[Depends(get_current_operator)],
)
async def list_tables(
    base_id: str,
    use_cases: AirtableUseCases = Depends(get_airtable_use_cases),
) -> List[AirtableTableDTO]:
    return await use_cases.list_tables(base_id)


@router.get(
    "/records/{table_name}",
    response_model=AirtableRecordsPageDTO,
    summary="Listar registros de un tipo de tabla (paginado)",
    dependencies=[Depends(get_current_operator)],
)
async def list_records(
    table_name: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    base_id: Optional[str] = Query(None, description="Filtrar por base"),
    use_cases: AirtableUseCases = Depends(get_airtable_use_cases),
) -> AirtableRecordsPageDTO:
    """
    Registros ordenados por la columna del tipo (Tickets: ticket_id, Users: email).
    Cada item trae `has_revision_history`.
    """
    return await use_cases.list_records(table_name, page=page, page_size=page_size, base_id=base_id)
