"""
Excepciones del motor de sincronizacion de historial de revisiones.

Taxonomia:
- FatalSetupError: aborta la corrida completa (catalogo vacio, login inicial
  fallido, re-login fallido). Se propaga al caller con la causa encadenada.
- SessionInvalidError: el endpoint de actividades respondio 401/403. No se
  reporta como fallo; dispara un unico ciclo de re-login + reintento.
- TargetFetchError: cualquier otro fallo al obtener un registro. Se registra
  en el outcome del target y la corrida continua.
- AuthTimeoutError: el login interactivo no completo dentro de su limite.
- RevisionPersistenceError: fallo de escritura de un registro; cuenta como
  fallo de ese target.
"""
from typing import Optional

from app.shared.exceptions.base import AppException


class FatalSetupError(AppException):
    """Error de preparacion que impide (o detiene) una corrida."""

    def __init__(self, message: str, error_code: str = "REVISION_SYNC_SETUP_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=502,
            error_code=error_code,
            details=details
        )


class NoBasesFoundError(FatalSetupError):
    """El catalogo local no contiene bases de Airtable."""

    def __init__(self):
        super().__init__(
            message="No se encontraron bases en el catalogo local. Ejecuta primero la sincronizacion de Airtable.",
            error_code="NO_BASES_FOUND"
        )
        self.status_code = 409


class ReauthenticationError(FatalSetupError):
    """Fallo el re-login tras invalidarse la sesion."""

    def __init__(self, record_id: str):
        super().__init__(
            message=f"No se pudo re-autenticar la sesion de Airtable (registro {record_id})",
            error_code="REAUTHENTICATION_FAILED",
            details={"record_id": record_id}
        )


class AuthenticationError(RuntimeError):
    """Fallo del login interactivo en Airtable."""


class AuthTimeoutError(AuthenticationError):
    """Un paso del login no aparecio dentro de su timeout."""

    def __init__(self, step: str, timeout_s: float):
        self.step = step
        self.timeout_s = timeout_s
        super().__init__(f"Timeout ({timeout_s}s) esperando '{step}' durante el login de Airtable")


class SessionInvalidError(RuntimeError):
    """La sesion fue rechazada por Airtable (401/403)."""

    def __init__(self, record_id: str, status_code: int):
        self.record_id = record_id
        self.status_code = status_code
        super().__init__(f"Sesion invalida ({status_code}) al consultar el registro {record_id}")


class TargetFetchError(RuntimeError):
    """Fallo al obtener el historial de un registro concreto."""

    def __init__(self, record_id: str, reason: str, status_code: Optional[int] = None):
        self.record_id = record_id
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Error obteniendo historial del registro {record_id}: {reason}")


class RevisionPersistenceError(RuntimeError):
    """No se pudo guardar el historial de un registro (se reporta como fallo del target)."""

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Error guardando historial del registro {record_id}: {reason}")
