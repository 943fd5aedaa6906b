"""
CLI: catalogo Airtable -> Postgres (bases, tablas y registros tipados).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) o antes de una corrida de historial.
  - El endpoint POST /api/v1/airtable/sync hace lo mismo con el token OAuth del operador.

Variables de entorno requeridas:
  - AIRTABLE_TOKEN (personal access token con schema.bases:read y data.records:read)
  - DATABASE_URL (debe ser postgresql://... o postgres://...)

Ejecución:
  python scripts/airtable_to_postgres_sync.py
  python scripts/airtable_to_postgres_sync.py --schema-only
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `app/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde api/.env o desde la raiz del repo
_REPO_ROOT = _API_ROOT.parent
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_REPO_ROOT / ".env", override=False)

from app.infrastructure.external.airtable_sync.airtable_client import AirtableApiError
from app.infrastructure.external.airtable_sync.sync_service import SyncConfigError, build_from_env
from app.infrastructure.external.airtable_sync.table_registry import get_table_type, supported_table_names


def _describe_schema() -> str:
    lines = ["airtable_bases", "airtable_tables"]
    for name in supported_table_names():
        lines.append(f"{get_table_type(name).target_table}  <- Airtable '{name}'")
    return "\n".join(lines)


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync del catalogo Airtable a Postgres")
    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Solo imprime las tablas destino y su origen en Airtable (no ejecuta sync).",
    )
    args = parser.parse_args()

    if args.schema_only:
        print(_describe_schema())
        return 0

    try:
        service, _, _ = build_from_env(pg_dsn_env="DATABASE_URL")
    except SyncConfigError as e:
        logger.error(str(e))
        return 2

    logger.info("Iniciando sync de catalogo Airtable -> Postgres...")
    try:
        result = service.run_once()
    except AirtableApiError as e:
        logger.error(f"Airtable respondio con error: {e}")
        return 1

    if result.skipped:
        logger.warning("Otro sync de catalogo tiene el lock; no se hizo nada")
        return 0

    logger.success(
        f"Sync OK: bases={result.bases}, tablas={result.tables}, upserted_rows={result.upserted_rows}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
