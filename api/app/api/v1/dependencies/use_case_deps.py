"""
Dependencias para inyeccion de casos de uso.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.use_cases.airtable_use_cases import AirtableUseCases
from app.application.use_cases.auth_use_cases import AuthUseCases
from app.application.use_cases.revision_history_use_cases import RevisionHistoryUseCases
from app.infrastructure.database.session import get_db


async def get_revision_history_use_cases(
    db: AsyncSession = Depends(get_db)
) -> RevisionHistoryUseCases:
    """
    Dependencia para obtener los casos de uso del historial de revisiones.

    Args:
        db: Sesion de base de datos

    Returns:
        RevisionHistoryUseCases: Instancia de casos de uso del historial
    """
    return RevisionHistoryUseCases(db)


async def get_airtable_use_cases(
    db: AsyncSession = Depends(get_db)
) -> AirtableUseCases:
    """
    Dependencia para obtener los casos de uso del catalogo Airtable.

    Args:
        db: Sesion de base de datos

    Returns:
        AirtableUseCases: Instancia de casos de uso del catalogo
    """
    return AirtableUseCases(db)


async def get_auth_use_cases(
    db: AsyncSession = Depends(get_db)
) -> AuthUseCases:
    """Dependencia para obtener los casos de uso de autenticacion."""
    return AuthUseCases(db)
