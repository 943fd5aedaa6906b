"""
Registro de tipos de tabla Airtable -> tabla Postgres.

Cada nombre de tabla Airtable soportado declara:
- la tabla Postgres destino (upsert del sync de catalogo)
- el campo de orden con el que se enumeran sus registros para el historial
- los mapeos de fields -> columnas

Agregar un tipo nuevo es registrar otra entrada; no hay branching por nombre
en el resto del codigo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .types import FieldMapping


@dataclass(frozen=True)
class TableTypeConfig:
    """
    Config de un tipo de tabla Airtable.

    - table_name: nombre de la tabla en Airtable (clave del registro)
    - target_table: tabla Postgres con los registros tipados
    - sort_column: columna por la que se ordenan ascendentemente los registros
    - field_mappings: mapeos field Airtable -> columna Postgres
    """

    table_name: str
    target_table: str
    sort_column: str
    field_mappings: list[FieldMapping]
    record_id_column: str = "airtable_record_id"


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


TICKETS = TableTypeConfig(
    table_name="Tickets",
    target_table="tickets",
    sort_column="ticket_id",
    field_mappings=[
        FieldMapping(airtable_field="Ticket ID", pg_column="ticket_id", transform=lambda v: str(v) if v is not None else None),
        FieldMapping(airtable_field="Title", pg_column="title"),
        FieldMapping(airtable_field="Description", pg_column="description"),
        FieldMapping(airtable_field="Status", pg_column="status"),
        FieldMapping(airtable_field="Assigned To", pg_column="assigned_to", transform=_as_list),
    ],
)

USERS = TableTypeConfig(
    table_name="Users",
    target_table="airtable_users",
    sort_column="email",
    field_mappings=[
        FieldMapping(airtable_field="Name", pg_column="name"),
        FieldMapping(airtable_field="Email", pg_column="email"),
        FieldMapping(airtable_field="Tickets", pg_column="tickets", transform=_as_list),
    ],
)


_REGISTRY: dict[str, TableTypeConfig] = {
    TICKETS.table_name: TICKETS,
    USERS.table_name: USERS,
}


def get_table_type(table_name: str) -> Optional[TableTypeConfig]:
    """Retorna la config del tipo de tabla o None si no esta soportado."""
    return _REGISTRY.get(table_name)


def supported_table_names() -> list[str]:
    return list(_REGISTRY.keys())
