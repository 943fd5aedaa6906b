"""
Endpoints del historial de revisiones de Airtable.

La corrida hace login web en Airtable (Selenium) y recorre registros de forma
secuencial con una pausa fija entre requests: puede tardar minutos, por eso
se ejecuta como job y se consulta por polling.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.v1.dependencies.auth_deps import get_current_operator
from app.api.v1.dependencies.use_case_deps import get_revision_history_use_cases
from app.application.dto.revision_dto import (
    RevisionHistoryResponseDTO,
    RevisionSyncJobResponseDTO,
    RevisionSyncJobStatusDTO,
    RevisionSyncRequestDTO,
)
from app.application.use_cases.revision_history_use_cases import RevisionHistoryUseCases


router = APIRouter(
    prefix="/revision-history",
    tags=["Revision History"],
    dependencies=[Depends(get_current_operator)],
)


@router.post(
    "/sync",
    response_model=RevisionSyncJobResponseDTO,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Iniciar sincronizacion del historial de revisiones"
)
async def start_revision_history_sync(
    dto: RevisionSyncRequestDTO,
    use_cases: RevisionHistoryUseCases = Depends(get_revision_history_use_cases),
) -> RevisionSyncJobResponseDTO:
    """
    Inicia un job que hace login en Airtable, recorre los registros del
    catalogo local y guarda el historial crudo y parseado de cada uno.
    """
    return await use_cases.start_sync(dto)


@router.get(
    "/sync/{job_id}",
    response_model=RevisionSyncJobStatusDTO,
    summary="Obtener estado de un job de historial (polling)"
)
async def get_revision_sync_job_status(
    job_id: str,
    use_cases: RevisionHistoryUseCases = Depends(get_revision_history_use_cases),
) -> RevisionSyncJobStatusDTO:
    return await use_cases.get_job_status(job_id)


@router.get(
    "/{record_id}",
    response_model=RevisionHistoryResponseDTO,
    summary="Historial parseado de un registro"
)
async def get_revision_history(
    record_id: str,
    use_cases: RevisionHistoryUseCases = Depends(get_revision_history_use_cases),
) -> RevisionHistoryResponseDTO:
    """
    Retorna el set de cambios parseados del registro (404 si nunca se sincronizo).
    """
    return await use_cases.get_history(record_id)
