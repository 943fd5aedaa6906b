"""
Punto de entrada de la API de sincronizacion Airtable.
Configura la aplicación, middlewares, rutas y eventos.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings, get_cors_origins
from app.core.events import lifespan
from app.api.v1.router import api_router
from app.api.middlewares.error_handler import ErrorHandlerMiddleware
from app.infrastructure.driver.driver_manager import DriverManager
from app.infrastructure.driver.selenium_executor import get_executor_stats
from app.shared.exceptions.base import AppException


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicacion FastAPI.
    
    Returns:
        FastAPI: Instancia configurada
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Sincronizacion de catalogo Airtable -> Postgres e historial de revisiones por registro",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Configurar CORS
    cors_origins = get_cors_origins(settings.CORS_ORIGINS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    # Incluir routers de la API
    application.include_router(api_router, prefix="/api")

    # Manejador global de excepciones personalizadas
    @application.exception_handler(AppException)
    async def app_exception_handler(request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check():
        """Estado de la aplicacion, del thread de sync y de los browsers abiertos."""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "sync_executor": get_executor_stats(),
            "active_browser_sessions": DriverManager.active_count(),
        }

    return application


# Instancia usada por uvicorn (main:app)
app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger
    
    # Determinar la URL base de acceso
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST
    
    base_url = f"http://{access_host}:{settings.PORT}"
    
    # Mostrar las URLs disponibles
    logger.info("=" * 70)
    logger.info("URLS DISPONIBLES:")
    logger.info("=" * 70)
    logger.info(f"  Swagger UI:  {base_url}/docs")
    logger.info(f"  ReDoc:       {base_url}/redoc")
    logger.info(f"  OpenAPI:     {base_url}/openapi.json")
    logger.info(f"  Health:      {base_url}/health")
    logger.info("=" * 70)
    
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

