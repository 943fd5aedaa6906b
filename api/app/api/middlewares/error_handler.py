"""
Middleware para manejo centralizado de errores no controlados.

Las AppException se resuelven en el exception handler de main.py; aca solo
llegan errores inesperados (bugs, caidas de la base, etc.).
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convierte excepciones no manejadas en un 500 con el formato de error de la API."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            # Escapar llaves para evitar error de formato en loguru
            error_msg = str(exc).replace("{", "{{").replace("}", "}}")
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path}: {error_msg}"
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "Ha ocurrido un error interno del servidor",
                    "details": {"path": request.url.path},
                }
            )
