"""
Coordinador de una corrida de sincronizacion de historial de revisiones.

Flujo:
1. Enumerar targets (catalogo vacio -> fatal)
2. Login una sola vez (fallo -> fatal)
3. Por cada target, en orden: fetch -> (401/403: re-login + 1 reintento) ->
   upsert raw -> parsear diffs -> reemplazar set parseado -> outcome
4. Resultado agregado

Los fallos por target nunca cortan la corrida. Procesamiento estrictamente
secuencial, con una pausa fija despues de cada request.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

from loguru import logger
from selenium.common.exceptions import WebDriverException

from app.infrastructure.external.airtable_sync.pg_repository import (
    PostgresCatalogProvider,
    PostgresRevisionStore,
    PostgresSyncRepository,
    normalize_psycopg_dsn,
)
from app.infrastructure.external.airtable_sync.table_registry import TableTypeConfig, get_table_type
from app.shared.exceptions.revision_sync import (
    AuthenticationError,
    FatalSetupError,
    ReauthenticationError,
    RevisionPersistenceError,
    SessionInvalidError,
    TargetFetchError,
)

from .diff_parser import parse_payload
from .ports import CatalogProvider, RevisionStore
from .revision_fetcher import RevisionFetcher
from .session_manager import AirtableSessionManager
from .target_enumerator import TargetEnumerator
from .types import (
    LoginCredentials,
    ParsedRevisionEntry,
    RawRevisionRecord,
    SessionCredential,
    SyncRunResult,
    TargetDescriptor,
    TargetOutcome,
)


PayloadParser = Callable[[dict[str, Any], str], List[ParsedRevisionEntry]]

# Errores del login que se consideran fallo de preparacion
LOGIN_ERRORS = (AuthenticationError, WebDriverException)


class RevisionHistorySync:
    """
    Orquesta enumerador, sesion, fetcher, parser y store en una corrida.
    """

    def __init__(
        self,
        *,
        catalog: CatalogProvider,
        store: RevisionStore,
        session_manager: AirtableSessionManager,
        fetcher: RevisionFetcher,
        parser: PayloadParser = parse_payload,
        table_type_lookup: Callable[[str], Optional[TableTypeConfig]] = get_table_type,
        default_limit: int = 200,
        request_delay_s: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._enumerator = TargetEnumerator(catalog, table_type_lookup=table_type_lookup)
        self._store = store
        self._sessions = session_manager
        self._fetcher = fetcher
        self._parser = parser
        self._default_limit = default_limit
        self._request_delay_s = request_delay_s
        self._sleep = sleep
        self._credential: Optional[SessionCredential] = None

    def run(self, credentials: LoginCredentials, cap: Optional[int] = None) -> SyncRunResult:
        """
        Ejecuta una corrida completa.

        Args:
            credentials: Email/password (y OTP opcional) del operador
            cap: Maximo de registros a procesar (default: limite configurado)

        Returns:
            SyncRunResult: Outcomes en el mismo orden de enumeracion

        Raises:
            FatalSetupError: Catalogo vacio, login inicial fallido o re-login fallido
        """
        limit = cap if cap is not None else self._default_limit
        targets = self._enumerator.enumerate(limit)

        try:
            self._credential = self._login(credentials)
        except LOGIN_ERRORS as e:
            raise FatalSetupError(
                f"Login inicial en Airtable fallido: {e}",
                error_code="AUTHENTICATION_FAILED",
            ) from e

        logger.info(f"Iniciando sync de historial para {len(targets)} registros")
        outcomes: List[TargetOutcome] = []
        for position, target in enumerate(targets, start=1):
            outcome = self._process_target(target, credentials)
            outcomes.append(outcome)
            if outcome.success:
                logger.info(
                    f"[{position}/{len(targets)}] {target.record_id} ({target.table_name}): "
                    f"{outcome.changes_count} cambios"
                )
            else:
                logger.warning(
                    f"[{position}/{len(targets)}] {target.record_id} ({target.table_name}) fallo: {outcome.error}"
                )

        result = SyncRunResult(outcomes=outcomes)
        logger.success(
            f"Sync de historial completado. procesados={result.processed_count}, "
            f"ok={result.success_count}, fallidos={result.failure_count}"
        )
        return result

    def _login(self, credentials: LoginCredentials) -> SessionCredential:
        return self._sessions.authenticate(credentials.email, credentials.password, credentials.mfa_code)

    def _process_target(self, target: TargetDescriptor, credentials: LoginCredentials) -> TargetOutcome:
        try:
            payload = self._fetch_with_reauth(target, credentials)
        except (TargetFetchError, SessionInvalidError) as e:
            return TargetOutcome(
                record_id=target.record_id,
                table_name=target.table_name,
                success=False,
                error=str(e),
            )

        try:
            self._store.upsert_raw(RawRevisionRecord.for_target(target, payload))
            entries = self._parser(payload, target.record_id)
            if entries:
                self._store.replace_parsed(target, entries)
        except RevisionPersistenceError as e:
            return TargetOutcome(
                record_id=target.record_id,
                table_name=target.table_name,
                success=False,
                error=str(e),
            )

        return TargetOutcome(
            record_id=target.record_id,
            table_name=target.table_name,
            success=True,
            changes_count=len(entries),
        )

    def _fetch_with_reauth(self, target: TargetDescriptor, credentials: LoginCredentials) -> dict[str, Any]:
        """
        Un fetch; ante sesion invalida, un re-login y un unico reintento.
        Un segundo SessionInvalidError se propaga y se registra como fallo del target.
        """
        try:
            with self._politeness_delay():
                return self._fetcher.fetch(target, self._credential)
        except SessionInvalidError as e:
            logger.warning(f"{e}; re-autenticando y reintentando una vez")

        self._sessions.invalidate()
        try:
            self._credential = self._login(credentials)
        except LOGIN_ERRORS as e:
            raise ReauthenticationError(target.record_id) from e

        with self._politeness_delay():
            return self._fetcher.fetch(target, self._credential)

    @contextmanager
    def _politeness_delay(self) -> Iterator[None]:
        # Pausa fija despues de cada intento, exitoso o no
        try:
            yield
        finally:
            if self._request_delay_s > 0:
                self._sleep(self._request_delay_s)


def build_revision_sync(
    *,
    dsn: str,
    default_limit: int = 200,
    request_delay_s: float = 3.0,
    fetch_timeout_s: float = 10.0,
    page_size: int = 10,
    time_zone: str = "UTC",
    locale: str = "en",
) -> tuple[PostgresSyncRepository, Callable[[Any], RevisionHistorySync]]:
    """
    Arma las dependencias Postgres/HTTP/Selenium de una corrida.

    Returns:
        tuple: (repositorio, factory que recibe una conexion abierta y
        devuelve el coordinador listo para `run`)
    """
    repo = PostgresSyncRepository(normalize_psycopg_dsn(dsn))
    fetcher = RevisionFetcher(
        timeout_s=fetch_timeout_s,
        page_size=page_size,
        time_zone=time_zone,
        locale=locale,
    )

    def factory(conn) -> RevisionHistorySync:
        return RevisionHistorySync(
            catalog=PostgresCatalogProvider(repo, conn),
            store=PostgresRevisionStore(repo, conn),
            session_manager=AirtableSessionManager(),
            fetcher=fetcher,
            default_limit=default_limit,
            request_delay_s=request_delay_s,
        )

    return repo, factory


def run_revision_sync(
    credentials: LoginCredentials,
    *,
    dsn: str,
    cap: Optional[int] = None,
    **options: Any,
) -> SyncRunResult:
    """
    Ejecuta una corrida completa contra Postgres (usado por la API y el script CLI).

    `options` se pasan a build_revision_sync (limite por defecto, delay, timeouts).
    """
    repo, factory = build_revision_sync(dsn=dsn, **options)
    with repo.connect() as conn:
        repo.ensure_revision_tables(conn)
        conn.commit()
        return factory(conn).run(credentials, cap=cap)
