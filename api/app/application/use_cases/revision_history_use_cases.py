"""
Casos de uso del historial de revisiones de Airtable.

Patron asincrono:
- El endpoint inicia el job en background y retorna inmediatamente un job_id.
- El frontend hace polling al endpoint de status hasta que el job termine.
- La corrida (login Selenium + requests secuenciales) se ejecuta en el thread
  dedicado de sync: como maximo una corrida a la vez por proceso.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Set

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dto.revision_dto import (
    RevisionEntryDTO,
    RevisionHistoryResponseDTO,
    RevisionSyncJobResponseDTO,
    RevisionSyncJobStatusDTO,
    RevisionSyncRequestDTO,
)
from app.core.config import settings
from app.infrastructure.driver.selenium_executor import run_sync_job
from app.infrastructure.external.airtable_revisions.sync_service import run_revision_sync
from app.infrastructure.external.airtable_revisions.types import LoginCredentials, SyncRunResult
from app.infrastructure.repositories.revision_history_repository import RevisionHistoryRepository
from app.shared.exceptions.domain import RevisionHistoryNotFoundException, SyncJobNotFoundException
from app.shared.exceptions.revision_sync import FatalSetupError


RevisionRunner = Callable[..., SyncRunResult]


@dataclass
class _JobState:
    """Estado interno de un job de historial."""

    job_id: str
    status: str  # running, completed, failed
    message: str
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


class RevisionHistoryUseCases:
    """
    Orquestador de jobs de historial y lectura del historial parseado.

    Los jobs se guardan en memoria (dict): alcanza para polling simple desde
    el frontend sin infraestructura extra.
    """

    _jobs: Dict[str, _JobState] = {}
    _jobs_lock = asyncio.Lock()
    _tasks: Set[asyncio.Task] = set()

    def __init__(self, db: Optional[AsyncSession] = None, *, runner: RevisionRunner = run_revision_sync):
        self._db = db
        self._runner = runner

    async def start_sync(self, dto: RevisionSyncRequestDTO) -> RevisionSyncJobResponseDTO:
        """
        Inicia un job de sincronizacion en background.

        Args:
            dto: Credenciales del operador y limite opcional

        Returns:
            RevisionSyncJobResponseDTO: Respuesta inmediata con job_id para polling
        """
        job_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        job = _JobState(
            job_id=job_id,
            status="running",
            message="Sincronizacion de historial encolada",
            created_at=now,
            updated_at=now,
        )

        async with self._jobs_lock:
            self._prune_finished_jobs(now)
            self._jobs[job_id] = job

        credentials = LoginCredentials(email=dto.email, password=dto.password, mfa_code=dto.mfa_code)
        task = asyncio.create_task(self._run_job(job_id=job_id, credentials=credentials, cap=dto.limit))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info(f"[revision-sync-job:{job_id}] Job iniciado (limite={dto.limit or settings.REVISION_SYNC_LIMIT})")
        return RevisionSyncJobResponseDTO(
            job_id=job_id,
            status=job.status,
            message=job.message,
            created_at=job.created_at,
        )

    async def get_job_status(self, job_id: str) -> RevisionSyncJobStatusDTO:
        """
        Obtiene el estado actual de un job (para polling).

        Raises:
            SyncJobNotFoundException: Si el job no existe
        """
        async with self._jobs_lock:
            job = self._jobs.get(job_id)

        if job is None:
            raise SyncJobNotFoundException(job_id)

        return RevisionSyncJobStatusDTO(
            job_id=job.job_id,
            status=job.status,
            message=job.message,
            created_at=job.created_at,
            updated_at=job.updated_at,
            completed_at=job.completed_at,
            error=job.error,
            error_code=job.error_code,
            result=job.result,
        )

    async def get_history(self, record_id: str) -> RevisionHistoryResponseDTO:
        """
        Set parseado de cambios del registro.

        Raises:
            RevisionHistoryNotFoundException: Si el registro nunca se parseo
        """
        repo = RevisionHistoryRepository(self._db)
        if not await repo.has_entries(record_id):
            raise RevisionHistoryNotFoundException(record_id)
        entries = await repo.get_entries(record_id)

        return RevisionHistoryResponseDTO(
            record_id=record_id,
            count=len(entries),
            entries=[RevisionEntryDTO.from_entry(e) for e in entries],
        )

    def _prune_finished_jobs(self, now: datetime) -> None:
        """Descarta jobs terminados hace mas de REVISION_JOB_RETENTION_MINUTES. Llamar con el lock tomado."""
        cutoff = now - timedelta(minutes=settings.REVISION_JOB_RETENTION_MINUTES)
        expired = [
            job_id for job_id, job in self._jobs.items()
            if job.completed_at is not None and job.completed_at < cutoff
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.debug(f"Jobs de historial descartados: {len(expired)}")

    async def _update_job(self, job_id: str, **changes: Any) -> None:
        """Actualiza campos del job de forma thread-safe."""
        async with self._jobs_lock:
            job = self._jobs.get(job_id)
            if job is None:
                return
            for k, v in changes.items():
                setattr(job, k, v)
            job.updated_at = datetime.now(timezone.utc)

    async def _run_job(self, *, job_id: str, credentials: LoginCredentials, cap: Optional[int]) -> None:
        """Ejecuta la corrida en el thread de sync y vuelca el resultado en el job."""
        try:
            result = await run_sync_job(
                self._runner,
                credentials,
                dsn=settings.effective_database_url,
                cap=cap,
                default_limit=settings.REVISION_SYNC_LIMIT,
                request_delay_s=settings.REVISION_REQUEST_DELAY_S,
                fetch_timeout_s=settings.REVISION_FETCH_TIMEOUT_S,
                page_size=settings.REVISION_ACTIVITY_PAGE_SIZE,
                time_zone=settings.AIRTABLE_TIME_ZONE,
                locale=settings.AIRTABLE_LOCALE,
            )
        except FatalSetupError as e:
            logger.error(f"[revision-sync-job:{job_id}] Corrida abortada: {e.message}")
            await self._update_job(
                job_id,
                status="failed",
                message="Corrida abortada",
                error=e.message,
                error_code=e.error_code,
                completed_at=datetime.now(timezone.utc),
            )
            return
        except Exception as e:
            logger.exception(f"[revision-sync-job:{job_id}] Error inesperado: {e}")
            await self._update_job(
                job_id,
                status="failed",
                message="Error inesperado en job",
                error=str(e),
                completed_at=datetime.now(timezone.utc),
            )
            return

        await self._update_job(
            job_id,
            status="completed",
            message=(
                f"Procesados {result.processed_count} registros "
                f"({result.success_count} ok, {result.failure_count} fallidos)"
            ),
            result=result.to_dict(),
            completed_at=datetime.now(timezone.utc),
        )
