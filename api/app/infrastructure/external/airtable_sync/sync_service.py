"""
Servicio de sincronización del catalogo Airtable -> Postgres.

Diseño (resumen):
- Lista bases y tablas via metadata API y las guarda en orden de catalogo
- Para cada tabla cuyo nombre esta en el registro de tipos, trae todos sus
  registros y los mapea a columnas tipadas (sin JSON blobs salvo listas)
- UPSERT por airtable_record_id

Estrategia de idempotencia:
- UPSERT en todas las tablas: re-ejecutar reescribe los mismos valores.
- Advisory lock para no correr dos syncs de catalogo a la vez.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from loguru import logger

from .airtable_client import AirtableClient, AirtableCredentials
from .pg_repository import PostgresSyncRepository, normalize_psycopg_dsn
from .table_registry import TableTypeConfig, get_table_type
from .types import AirtableRecord, AirtableTable, ensure_utc, utc_now


CATALOG_SYNC_LOCK_KEY = 7_310_001


class SyncConfigError(RuntimeError):
    """Error de configuración del pipeline."""


def _env_required(name: str) -> str:
    val = os.getenv(name)
    if not val:
        raise SyncConfigError(f"Falta variable de entorno obligatoria: {name}")
    return val


def map_airtable_record_to_row(
    record: AirtableRecord,
    *,
    config: TableTypeConfig,
    table: AirtableTable,
    synced_at: datetime,
) -> dict[str, Any]:
    """
    Mapea un AirtableRecord a un dict listo para UPSERT.

    Reglas:
    - Se guardan columnas técnicas: airtable_record_id, base_id, table_id, created_time, synced_at
    - Cada FieldMapping decide cómo mapear y transformar el valor
    """
    row: dict[str, Any] = {
        config.record_id_column: record.record_id,
        "base_id": table.base_id,
        "table_id": table.table_id,
        "created_time": record.created_time,
        "synced_at": ensure_utc(synced_at),
    }

    for m in config.field_mappings:
        if m.airtable_field not in record.fields:
            if m.required:
                raise SyncConfigError(
                    f"Record {record.record_id} no contiene field requerido '{m.airtable_field}'"
                )
            row[m.pg_column] = m.transform(None) if m.transform else None
            continue

        raw = record.fields.get(m.airtable_field)
        row[m.pg_column] = m.transform(raw) if m.transform else raw

    return row


@dataclass(frozen=True)
class SyncResult:
    bases: int
    tables: int
    upserted_rows: int
    skipped: bool = False


class AirtableCatalogSync:
    """
    Orquestador del sync de catalogo (bases, tablas, registros tipados).
    """

    def __init__(
        self,
        *,
        pg_repo: PostgresSyncRepository,
        airtable: AirtableClient,
        table_type_lookup: Callable[[str], Optional[TableTypeConfig]] = get_table_type,
        upsert_batch_size: int = 200,
    ) -> None:
        self._pg = pg_repo
        self._airtable = airtable
        self._lookup = table_type_lookup
        self._upsert_batch_size = upsert_batch_size

    def run_once(self, *, pg_lock_key: int = CATALOG_SYNC_LOCK_KEY) -> SyncResult:
        """
        Ejecuta una corrida completa del catalogo en una transaccion.
        """
        with self._pg.connect() as conn:
            self._pg.ensure_catalog_tables(conn)

            if not self._pg.try_advisory_lock(conn, pg_lock_key):
                logger.warning("Sync de catalogo ya está corriendo (advisory lock ocupado). Saliendo.")
                return SyncResult(bases=0, tables=0, upserted_rows=0, skipped=True)

            try:
                result = self._sync_catalog(conn)
                conn.commit()
                return result
            except Exception:
                conn.rollback()
                raise

    def _sync_catalog(self, conn) -> SyncResult:
        synced_at = utc_now()
        bases = self._airtable.list_bases()
        logger.info(f"Sync de catalogo: {len(bases)} bases encontradas")

        self._pg.upsert_rows(
            conn,
            target_table="airtable_bases",
            rows=[
                {"airtable_id": b.base_id, "name": b.name, "catalog_position": i, "synced_at": synced_at}
                for i, b in enumerate(bases)
            ],
            conflict_columns=("airtable_id",),
        )

        total_tables = 0
        total_upserted = 0
        for base in bases:
            tables = self._airtable.list_tables(base.base_id)
            total_tables += len(tables)
            self._pg.upsert_rows(
                conn,
                target_table="airtable_tables",
                rows=[
                    {
                        "airtable_id": t.table_id,
                        "base_id": t.base_id,
                        "name": t.name,
                        "fields": t.fields,
                        "catalog_position": i,
                        "synced_at": synced_at,
                    }
                    for i, t in enumerate(tables)
                ],
                conflict_columns=("airtable_id",),
            )

            for table in tables:
                config = self._lookup(table.name)
                if config is None:
                    logger.debug(f"Tabla '{table.name}' sin tipo registrado; solo se guarda su metadata")
                    continue
                total_upserted += self._sync_table_records(conn, config=config, table=table, synced_at=synced_at)

        logger.info(
            f"Sync de catalogo completado. bases={len(bases)}, tablas={total_tables}, upserts={total_upserted}"
        )
        return SyncResult(bases=len(bases), tables=total_tables, upserted_rows=total_upserted)

    def _sync_table_records(
        self,
        conn,
        *,
        config: TableTypeConfig,
        table: AirtableTable,
        synced_at: datetime,
    ) -> int:
        logger.info(
            f"Sync registros: Airtable '{table.name}' ({table.base_id}/{table.table_id}) -> "
            f'Postgres "{config.target_table}"'
        )
        upserted = 0
        batch: list[dict[str, Any]] = []
        for record in self._airtable.iter_records(base_id=table.base_id, table_id=table.table_id):
            batch.append(map_airtable_record_to_row(record, config=config, table=table, synced_at=synced_at))

            if len(batch) >= self._upsert_batch_size:
                upserted += self._pg.upsert_rows(conn, target_table=config.target_table, rows=batch)
                batch.clear()

        if batch:
            upserted += self._pg.upsert_rows(conn, target_table=config.target_table, rows=batch)
            batch.clear()

        return upserted


def build_from_env(
    *,
    pg_dsn_env: str = "DATABASE_URL",
    access_token: Optional[str] = None,
    dsn: Optional[str] = None,
) -> tuple[AirtableCatalogSync, PostgresSyncRepository, AirtableClient]:
    """
    Constructor “oficial” del pipeline leyendo variables de entorno.

    Token: el access_token recibido (OAuth del operador) o AIRTABLE_TOKEN.
    DSN: el recibido (settings de la API) o la variable pg_dsn_env.
    """
    token = access_token or _env_required("AIRTABLE_TOKEN")

    pg_dsn_raw = dsn or _env_required(pg_dsn_env)
    pg_dsn = normalize_psycopg_dsn(pg_dsn_raw)
    if "postgres" not in pg_dsn:
        # Requisito: destino es Postgres. Evitamos errores silenciosos en SQLite.
        raise SyncConfigError(
            f"{pg_dsn_env} debe apuntar a Postgres. Valor actual: {pg_dsn_raw}"
        )

    airtable = AirtableClient(AirtableCredentials(token=token))
    pg_repo = PostgresSyncRepository(pg_dsn)
    service = AirtableCatalogSync(pg_repo=pg_repo, airtable=airtable)
    return service, pg_repo, airtable
