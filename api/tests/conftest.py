"""
Configuración de fixtures para pytest.
"""
from typing import AsyncGenerator, List

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.infrastructure.database.session import Base
from app.infrastructure.external.airtable_revisions.types import TargetDescriptor


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fixture que proporciona una sesión de base de datos para tests.
    Crea una base de datos en memoria para cada test.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def make_target():
    """Construye TargetDescriptor con valores por defecto."""
    def _make(record_id: str, base_id: str = "app1", table_id: str = "tblTickets", table_name: str = "Tickets"):
        return TargetDescriptor(record_id=record_id, base_id=base_id, table_id=table_id, table_name=table_name)
    return _make


@pytest.fixture
def activity_payload():
    """
    Payload estilo readRowActivitiesAndComments.

    Recibe tuplas (activity_id, diffRowHtml | None, createdTime, userId).
    """
    def _build(activities: List[tuple]) -> dict:
        return {
            "msg": "SUCCESS",
            "data": {
                "rowActivityInfoById": {
                    activity_id: {
                        "diffRowHtml": html,
                        "createdTime": created,
                        "originatingUserId": user,
                    }
                    for activity_id, html, created, user in activities
                },
                "orderedActivityAndCommentIds": [a[0] for a in activities],
            },
        }
    return _build
