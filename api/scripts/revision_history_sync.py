"""
CLI: historial de revisiones de Airtable -> Postgres.

Hace login web en Airtable (Selenium), recorre los registros del catalogo ya
sincronizado y guarda el historial crudo y parseado de cada uno.

Variables de entorno:
  - DATABASE_URL (Postgres)
  - AIRTABLE_EMAIL / AIRTABLE_PASSWORD (opcionales; si faltan se piden por consola)
  - REVISION_SYNC_LIMIT, REVISION_REQUEST_DELAY_S (opcionales)

Ejecución:
  python scripts/revision_history_sync.py
  python scripts/revision_history_sync.py --limit 20 --mfa-code 123456
  python scripts/revision_history_sync.py --json
"""

from __future__ import annotations

import argparse
import getpass
import json
import os
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

_REPO_ROOT = _API_ROOT.parent
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_REPO_ROOT / ".env", override=False)

from app.core.config import settings
from app.infrastructure.driver.driver_manager import DriverManager
from app.infrastructure.external.airtable_revisions.sync_service import run_revision_sync
from app.infrastructure.external.airtable_revisions.types import LoginCredentials
from app.shared.exceptions.revision_sync import FatalSetupError


def _read_credentials(args: argparse.Namespace) -> LoginCredentials:
    email = args.email or os.getenv("AIRTABLE_EMAIL") or input("Email de Airtable: ").strip()
    password = os.getenv("AIRTABLE_PASSWORD") or getpass.getpass("Password de Airtable: ")
    return LoginCredentials(email=email, password=password, mfa_code=args.mfa_code)


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync del historial de revisiones de Airtable")
    parser.add_argument("--email", help="Email de la cuenta de Airtable")
    parser.add_argument("--mfa-code", dest="mfa_code", help="Codigo MFA si la cuenta lo pide")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Maximo de registros a procesar (default {settings.REVISION_SYNC_LIMIT})",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.REVISION_REQUEST_DELAY_S,
        help="Segundos de pausa entre requests de historial",
    )
    parser.add_argument("--json", action="store_true", help="Imprime el resultado como JSON")
    args = parser.parse_args()

    if args.limit is not None and args.limit < 1:
        parser.error("--limit debe ser >= 1")

    DriverManager.install_signal_handlers()
    credentials = _read_credentials(args)

    try:
        result = run_revision_sync(
            credentials,
            dsn=settings.effective_database_url,
            cap=args.limit,
            default_limit=settings.REVISION_SYNC_LIMIT,
            request_delay_s=args.delay,
            fetch_timeout_s=settings.REVISION_FETCH_TIMEOUT_S,
            page_size=settings.REVISION_ACTIVITY_PAGE_SIZE,
            time_zone=settings.AIRTABLE_TIME_ZONE,
            locale=settings.AIRTABLE_LOCALE,
        )
    except FatalSetupError as e:
        logger.error(f"Corrida abortada: {e.message}")
        if args.json:
            print(json.dumps(e.to_dict(), indent=2, ensure_ascii=False))
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        for outcome in result.outcomes:
            if outcome.success:
                logger.info(f"{outcome.record_id}: {outcome.changes_count} cambios")
            else:
                logger.warning(f"{outcome.record_id}: {outcome.error}")

    return 0 if result.failure_count == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
