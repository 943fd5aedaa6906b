"""
Excepción base para todas las excepciones personalizadas de la aplicación.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepción base de la aplicación.

    Se serializa igual en la respuesta HTTP, en el error de un job de
    historial y en la salida --json del CLI: {error, message, details}.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: Mensaje de error descriptivo
            status_code: Código de estado HTTP
            error_code: Código de error personalizado
            details: Detalles adicionales del error
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }
