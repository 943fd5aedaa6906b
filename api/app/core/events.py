"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI
from loguru import logger

from app.core.config import settings
from app.infrastructure.database.session import init_db, close_db
from app.infrastructure.driver.driver_manager import DriverManager
from app.infrastructure.driver.selenium_executor import shutdown_sync_executor


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Validar configuracion critica
            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            await init_db()
            logger.info("Base de datos inicializada")

            # Configurar logging adicional
            app.state.log_sink_id = logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicacion iniciada correctamente")

            # Mostrar URLs disponibles
            _print_available_urls()

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.AIRTABLE_CLIENT_ID:
        warnings.append("AIRTABLE_CLIENT_ID no configurado - el login OAuth no funcionara")
    if not settings.AIRTABLE_TOKEN:
        warnings.append("AIRTABLE_TOKEN no configurado - el sync de catalogo requiere un operador conectado via OAuth")
    if settings.SECRET_KEY == "change-this-secret-key-in-production" and not settings.is_development:
        warnings.append("SECRET_KEY por defecto en un entorno que no es de desarrollo")

    # Mostrar advertencias
    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def _print_available_urls() -> None:
    """Imprime las URLs disponibles de la aplicacion."""
    # Determinar la URL base de acceso
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    # Mostrar las URLs disponibles
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  ReDoc:       {base_url}/redoc</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        # Cerrar navegadores de un login en curso
        closed_sessions = DriverManager.close_all_sessions()
        logger.info(f"Sesiones de driver cerradas: {closed_sessions}")

        # No esperar a que termine un job de sync en curso
        shutdown_sync_executor(wait=False)

        # Cerrar conexiones de base de datos
        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

        sink_id = getattr(app.state, "log_sink_id", None)
        if sink_id is not None:
            logger.remove(sink_id)
            app.state.log_sink_id = None

    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Ciclo de vida de la aplicacion para `FastAPI(lifespan=...)`.

    El cierre (navegadores, thread de sync, engine) corre tambien si el
    servidor termina con error.
    """
    await startup_handler(app)()
    try:
        yield
    finally:
        await shutdown_handler(app)()
