"""
DTOs para la sincronizacion del historial de revisiones de Airtable.

El login web necesita las credenciales del operador (email/password y un
codigo OTP opcional); nunca se persisten ni se loguean.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.infrastructure.external.airtable_revisions.types import ParsedRevisionEntry


class RevisionSyncRequestDTO(BaseModel):
    """Request para iniciar una corrida de historial."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, max_length=255, description="Email de la cuenta de Airtable")
    password: str = Field(..., min_length=1, repr=False, description="Password de la cuenta de Airtable")
    mfa_code: Optional[str] = Field(
        None,
        alias="mfaCode",
        repr=False,
        description="Codigo OTP si la cuenta tiene MFA",
    )
    limit: Optional[int] = Field(
        None,
        ge=1,
        le=10000,
        description="Maximo de registros a procesar (default: REVISION_SYNC_LIMIT)",
    )


class RevisionSyncJobResponseDTO(BaseModel):
    """Respuesta inmediata al iniciar un job."""

    job_id: str
    status: str
    message: str
    created_at: datetime


class RevisionSyncJobStatusDTO(BaseModel):
    """Estado actual del job (polling). `result` se completa al terminar."""

    job_id: str
    status: str
    message: str
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


class RevisionEntryDTO(BaseModel):
    uuid: str
    issue_id: str
    column_type: str
    old_value: str
    new_value: str
    created_date: Optional[datetime] = None
    authored_by: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: ParsedRevisionEntry) -> "RevisionEntryDTO":
        return cls(
            uuid=entry.uuid,
            issue_id=entry.issue_id,
            column_type=entry.column_type,
            old_value=entry.old_value,
            new_value=entry.new_value,
            created_date=entry.created_date,
            authored_by=entry.authored_by,
        )


class RevisionHistoryResponseDTO(BaseModel):
    """Set parseado de cambios de un registro."""

    record_id: str
    count: int
    entries: List[RevisionEntryDTO]
