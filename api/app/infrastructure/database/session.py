"""
Gestión de sesiones de base de datos.

La API usa SQLAlchemy async sobre psycopg (v3); los scripts de sync y el
historial de revisiones abren conexiones psycopg directas contra la misma
DATABASE_URL, por eso aqui se acepta cualquier variante del esquema.
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from loguru import logger

from app.core.config import settings


# Base para modelos de SQLAlchemy
Base = declarative_base()

# Esquemas de Postgres que SQLAlchemy resolveria a un driver distinto de psycopg
_POSTGRES_SCHEMES = ("postgres", "postgresql", "postgresql+asyncpg", "postgresql+psycopg2")


def to_sqlalchemy_url(url: str) -> str:
    """
    Fuerza el dialecto postgresql+psycopg para URLs de Postgres.

    Ejemplos:
    - postgres://u:p@host/db           -> postgresql+psycopg://u:p@host/db
    - postgresql+asyncpg://u:p@host/db -> postgresql+psycopg://u:p@host/db

    Otras URLs (ej: sqlite+aiosqlite) se retornan tal cual.
    """
    if "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    if scheme in _POSTGRES_SCHEMES:
        return f"postgresql+psycopg://{rest}"
    return url


def _create_engine_args(url: str) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite no lo soporta.
    """
    args = {
        "echo": settings.DEBUG,
        "future": True,
    }

    if url.startswith("postgresql"):
        args.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


DATABASE_URL = to_sqlalchemy_url(settings.effective_database_url)

# Engine de base de datos
engine = create_async_engine(DATABASE_URL, **_create_engine_args(DATABASE_URL))

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Generador de sesiones de base de datos para usar como dependencia en FastAPI.

    Hace commit al terminar el request y rollback si el endpoint lanza.

    Yields:
        AsyncSession: Sesión de base de datos
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Crea las tablas del catalogo, del historial y de operadores si no existen."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug(f"Tablas registradas: {', '.join(sorted(Base.metadata.tables))}")


async def close_db() -> None:
    """Cierra las conexiones de la base de datos."""
    await engine.dispose()
