"""
Tipos del motor de historial de revisiones.

Libres de I/O: se comparten entre enumerador, fetcher, parser, coordinador y
repositorios.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from app.infrastructure.external.airtable_sync.types import parse_airtable_datetime, utc_now


@dataclass(frozen=True)
class LoginCredentials:
    """Credenciales del operador para el login web de Airtable."""

    email: str
    password: str = field(repr=False)
    mfa_code: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class TargetDescriptor:
    """Un registro de Airtable cuyo historial se quiere recuperar."""

    record_id: str
    base_id: str
    table_id: str
    table_name: str

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.record_id, self.base_id, self.table_id)


@dataclass
class SessionCredential:
    """
    Prueba de sesion a nivel transporte (cookies + headers derivados).

    Es opaca para el resto del sistema: solo el fetcher la convierte en
    headers. `is_valid` lo cambia exclusivamente el SessionManager; al
    re-autenticar se reemplaza la instancia completa.
    """

    cookies: dict[str, str] = field(repr=False)
    headers: dict[str, str]
    created_at: datetime = field(default_factory=utc_now)
    is_valid: bool = True

    def cookie_header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())

    def to_dict(self) -> dict[str, Any]:
        return {
            "cookies": dict(self.cookies),
            "headers": dict(self.headers),
            "created_at": self.created_at.isoformat(),
            "is_valid": self.is_valid,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionCredential":
        return cls(
            cookies=dict(data.get("cookies") or {}),
            headers=dict(data.get("headers") or {}),
            created_at=parse_airtable_datetime(data.get("created_at")) or utc_now(),
            is_valid=bool(data.get("is_valid", True)),
        )


@dataclass(frozen=True)
class DiffContext:
    """Metadatos de la actividad que acompañan a un fragmento de diff."""

    activity_id: str
    target_id: str
    created_time: Optional[str]
    author_id: Optional[str]


@dataclass(frozen=True)
class ParsedRevisionEntry:
    uuid: str
    issue_id: str
    column_type: str
    old_value: str
    new_value: str
    created_date: Optional[datetime]
    authored_by: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "issueId": self.issue_id,
            "columnType": self.column_type,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "createdDate": self.created_date.isoformat() if self.created_date else None,
            "authoredBy": self.authored_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedRevisionEntry":
        return cls(
            uuid=str(data.get("uuid") or ""),
            issue_id=str(data.get("issueId") or ""),
            column_type=data.get("columnType") or "",
            old_value=data.get("oldValue") or "",
            new_value=data.get("newValue") or "",
            created_date=parse_airtable_datetime(data.get("createdDate")),
            authored_by=data.get("authoredBy"),
        )


@dataclass(frozen=True)
class RawRevisionRecord:
    record_id: str
    base_id: str
    table_id: str
    table_name: str
    raw_payload: dict[str, Any]
    updated_at: datetime

    @classmethod
    def for_target(cls, target: TargetDescriptor, payload: dict[str, Any]) -> "RawRevisionRecord":
        return cls(
            record_id=target.record_id,
            base_id=target.base_id,
            table_id=target.table_id,
            table_name=target.table_name,
            raw_payload=payload,
            updated_at=utc_now(),
        )


@dataclass(frozen=True)
class TargetOutcome:
    record_id: str
    table_name: str
    success: bool
    error: Optional[str] = None
    changes_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "recordId": self.record_id,
            "tableName": self.table_name,
            "success": self.success,
        }
        if self.success:
            data["changesCount"] = self.changes_count
        else:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class SyncRunResult:
    outcomes: list[TargetOutcome]

    @property
    def processed_count(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "processedRecords": self.processed_count,
            "successfulRecords": self.success_count,
            "failedRecords": self.failure_count,
            "results": [o.to_dict() for o in self.outcomes],
        }
