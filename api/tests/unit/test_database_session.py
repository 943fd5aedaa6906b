import pytest

from app.infrastructure.database.session import Base, to_sqlalchemy_url


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("postgres://u:p@db:5432/x", "postgresql+psycopg://u:p@db:5432/x"),
        ("postgresql://u:p@db:5432/x", "postgresql+psycopg://u:p@db:5432/x"),
        ("postgresql+asyncpg://u:p@db/x", "postgresql+psycopg://u:p@db/x"),
        ("postgresql+psycopg://u:p@db/x", "postgresql+psycopg://u:p@db/x"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ("host=db dbname=x", "host=db dbname=x"),
    ],
)
def test_to_sqlalchemy_url(raw: str, expected: str) -> None:
    assert to_sqlalchemy_url(raw) == expected


def test_metadata_registers_all_tables() -> None:
    import app.infrastructure.database  # noqa: F401

    assert {
        "airtable_bases",
        "airtable_tables",
        "tickets",
        "airtable_users",
        "raw_revision_history",
        "parsed_revision_history",
        "system_users",
    } <= set(Base.metadata.tables)
