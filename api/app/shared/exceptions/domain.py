"""
Excepciones relacionadas con la lógica de dominio.
"""
from typing import Any

from app.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""
    
    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class EntityNotFoundException(DomainException):
    """Excepción cuando no se encuentra una entidad."""
    
    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(
            message=f"{entity_name} con ID {entity_id} no encontrado",
            error_code="ENTITY_NOT_FOUND",
            details={"entity": entity_name, "id": str(entity_id)}
        )
        self.status_code = 404


class UnsupportedTableTypeException(DomainException):
    """Excepcion cuando el nombre de tabla no esta en el registro de tipos."""
    
    def __init__(self, table_name: str, supported: list[str]):
        super().__init__(
            message=f"La tabla '{table_name}' no esta soportada",
            error_code="UNSUPPORTED_TABLE_TYPE",
            details={
                "table_provided": table_name,
                "supported_tables": supported
            }
        )
        self.status_code = 404


class RevisionHistoryNotFoundException(DomainException):
    """Excepcion cuando un registro no tiene historial de revisiones parseado."""
    
    def __init__(self, record_id: str):
        super().__init__(
            message=f"No hay historial de revisiones para el registro '{record_id}'",
            error_code="REVISION_HISTORY_NOT_FOUND",
            details={"record_id": record_id}
        )
        self.status_code = 404


class SyncJobNotFoundException(DomainException):
    """Excepcion cuando no se encuentra un job de sincronizacion."""
    
    def __init__(self, job_id: str):
        super().__init__(
            message=f"Job con ID '{job_id}' no encontrado",
            error_code="SYNC_JOB_NOT_FOUND",
            details={"job_id": job_id}
        )
        self.status_code = 404
