"""
Modelos de base de datos (ORM).

Las tablas de catalogo e historial las escribe el pipeline de sync (psycopg);
la API las lee via estos modelos. Los nombres y columnas coinciden con el DDL
de PostgresSyncRepository.
"""
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.infrastructure.database.session import Base


# JSONB en Postgres, JSON generico en SQLite (tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")
# BIGSERIAL en Postgres; SQLite solo autoincrementa INTEGER PRIMARY KEY
BigIntPk = BigInteger().with_variant(Integer(), "sqlite")


class AirtableBaseModel(Base):
    """Base de Airtable (catalogo)."""

    __tablename__ = "airtable_bases"

    airtable_id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    catalog_position = Column(Integer, nullable=False, default=0)
    synced_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AirtableBase(id={self.airtable_id}, name={self.name})>"


class AirtableTableModel(Base):
    """Tabla de una base de Airtable, con su schema de fields."""

    __tablename__ = "airtable_tables"

    airtable_id = Column(Text, primary_key=True)
    base_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    fields = Column(JSONType, nullable=True)
    catalog_position = Column(Integer, nullable=False, default=0)
    synced_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AirtableTable(id={self.airtable_id}, base={self.base_id}, name={self.name})>"


class TicketModel(Base):
    """Registro de la tabla 'Tickets'."""

    __tablename__ = "tickets"

    airtable_record_id = Column(Text, primary_key=True)
    base_id = Column(Text, nullable=False)
    table_id = Column(Text, nullable=False)
    ticket_id = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=True)
    assigned_to = Column(JSONType, nullable=True)
    created_time = Column(DateTime(timezone=True), nullable=True)
    synced_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Ticket(id={self.airtable_record_id}, ticket_id={self.ticket_id})>"


class AirtableUserModel(Base):
    """Registro de la tabla 'Users' de Airtable (no confundir con SystemUserModel)."""

    __tablename__ = "airtable_users"

    airtable_record_id = Column(Text, primary_key=True)
    base_id = Column(Text, nullable=False)
    table_id = Column(Text, nullable=False)
    name = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    tickets = Column(JSONType, nullable=True)
    created_time = Column(DateTime(timezone=True), nullable=True)
    synced_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AirtableUser(id={self.airtable_record_id}, email={self.email})>"


class RawRevisionHistoryModel(Base):
    """
    Payload crudo de readRowActivitiesAndComments por registro.
    Unico por (record_id, base_id, table_id).
    """

    __tablename__ = "raw_revision_history"
    __table_args__ = (
        UniqueConstraint("record_id", "base_id", "table_id", name="uq_raw_revision_history_key"),
    )

    id = Column(BigIntPk, primary_key=True, autoincrement=True)
    record_id = Column(Text, nullable=False, index=True)
    base_id = Column(Text, nullable=False)
    table_id = Column(Text, nullable=False)
    table_name = Column(Text, nullable=False)
    revision_data = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<RawRevisionHistory(record_id={self.record_id}, table={self.table_name})>"


class ParsedRevisionHistoryModel(Base):
    """
    Set parseado de cambios por registro (lista de entradas en revision_data).
    Se reemplaza completo en cada sync exitoso.
    """

    __tablename__ = "parsed_revision_history"
    __table_args__ = (
        UniqueConstraint("record_id", "base_id", "table_id", name="uq_parsed_revision_history_key"),
    )

    id = Column(BigIntPk, primary_key=True, autoincrement=True)
    record_id = Column(Text, nullable=False, index=True)
    base_id = Column(Text, nullable=False)
    table_id = Column(Text, nullable=False)
    table_name = Column(Text, nullable=False)
    revision_data = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ParsedRevisionHistory(record_id={self.record_id}, table={self.table_name})>"


class SystemUserModel(Base):
    """
    Operador del sistema, identificado por su usuario de Airtable (OAuth).
    Guarda los tokens OAuth usados para la sincronizacion via API.
    """

    __tablename__ = "system_users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    airtable_user_id = Column(String(64), nullable=True, unique=True, index=True)
    airtable_email = Column(String(255), nullable=True)
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def has_airtable_oauth(self) -> bool:
        return bool(self.access_token)

    def __repr__(self):
        return f"<SystemUser(id={self.id}, airtable_user_id={self.airtable_user_id})>"
