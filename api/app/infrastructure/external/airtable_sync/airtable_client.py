"""
Cliente mínimo de Airtable REST API (sin SDKs externos).

Requisitos cubiertos:
- requests
- metadata: bases y tablas (/v0/meta)
- paginación por offset de registros
- rate-limit/backoff (429, 5xx)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import requests

from .types import AirtableBase, AirtableRecord, AirtableTable, parse_airtable_datetime


@dataclass(frozen=True)
class AirtableCredentials:
    # Personal access token o access token OAuth
    token: str = field(repr=False)


class AirtableApiError(RuntimeError):
    """Error de integración con Airtable."""


class AirtableClient:
    """
    Cliente HTTP de Airtable. Expone listas de bases/tablas y un generator de AirtableRecord.

    Importante:
    - No hace cast de tipos de campos: eso se decide en el registro de tablas.
    """

    def __init__(
        self,
        credentials: AirtableCredentials,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = "https://api.airtable.com/v0",
        timeout_s: int = 30,
        max_retries: int = 6,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        sleep=time.sleep,
    ) -> None:
        self._creds = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._session = session or requests.Session()
        self._sleep = sleep

    def list_bases(self) -> list[AirtableBase]:
        """Lista las bases accesibles con el token (pagina por offset)."""
        url = f"{self._base_url}/meta/bases"
        bases: list[AirtableBase] = []
        offset: Optional[str] = None

        while True:
            query: list[tuple[str, Any]] = [("offset", offset)] if offset else []
            payload = self._request_json("GET", url, query=query)
            for raw in payload.get("bases") or []:
                if not raw.get("id"):
                    raise AirtableApiError("Airtable devolvió una base sin 'id'")
                bases.append(AirtableBase(base_id=raw["id"], name=raw.get("name") or ""))

            offset = payload.get("offset")
            if not offset:
                return bases

    def list_tables(self, base_id: str) -> list[AirtableTable]:
        """Lista las tablas (con su schema de fields) de una base."""
        url = f"{self._base_url}/meta/bases/{base_id}/tables"
        payload = self._request_json("GET", url, query=[])

        tables: list[AirtableTable] = []
        for raw in payload.get("tables") or []:
            if not raw.get("id"):
                raise AirtableApiError(f"Airtable devolvió una tabla sin 'id' en la base {base_id}")
            tables.append(
                AirtableTable(
                    table_id=raw["id"],
                    base_id=base_id,
                    name=raw.get("name") or "",
                    fields=raw.get("fields") or [],
                )
            )
        return tables

    def iter_records(
        self,
        *,
        base_id: str,
        table_id: str,
        fields: Optional[list[str]] = None,
        page_size: int = 100,
    ) -> Iterable[AirtableRecord]:
        """
        Itera todos los registros de una tabla.

        - Maneja paginación por 'offset'
        - fields[] se repite en querystring (requests lo serializa con lista de tuplas)
        """
        url = f"{self._base_url}/{base_id}/{table_id}"
        offset: Optional[str] = None

        while True:
            query: list[tuple[str, Any]] = [("pageSize", page_size)]
            if offset:
                query.append(("offset", offset))
            if fields:
                for f in fields:
                    query.append(("fields[]", f))

            payload = self._request_json("GET", url, query=query)

            for rec in payload.get("records") or []:
                rec_id = rec.get("id")
                if not rec_id:
                    # Caso raro; preferimos fallar temprano y visible.
                    raise AirtableApiError("Airtable devolvió un record sin 'id'")

                yield AirtableRecord(
                    record_id=rec_id,
                    fields=rec.get("fields") or {},
                    created_time=parse_airtable_datetime(rec.get("createdTime")),
                )

            offset = payload.get("offset")
            if not offset:
                break

    def _request_json(
        self, method: str, url: str, *, query: list[tuple[str, Any]]
    ) -> dict[str, Any]:
        """
        Request HTTP con backoff para 429/5xx.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial con jitter simple.
        - 5xx: exponencial con jitter.
        - 4xx (no 429): error inmediato (config/auth mal).
        """
        headers = {
            "Authorization": f"Bearer {self._creds.token}",
            "Content-Type": "application/json",
        }

        for attempt in range(self._max_retries + 1):
            resp = self._session.request(
                method=method,
                url=url,
                params=query,
                headers=headers,
                timeout=self._timeout_s,
            )

            if 200 <= resp.status_code < 300:
                return resp.json()

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise AirtableApiError(
                        f"Airtable error {resp.status_code} tras {attempt} reintentos: {resp.text}"
                    )

                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        sleep_s = float(retry_after)
                    except ValueError:
                        sleep_s = self._min_backoff_s
                else:
                    # Exponencial simple + jitter proporcional
                    base = min(self._max_backoff_s, self._min_backoff_s * (2**attempt))
                    sleep_s = base + (0.15 * base)

                self._sleep(sleep_s)
                continue

            # Errores no recuperables
            raise AirtableApiError(
                f"Airtable request falló {resp.status_code}: {resp.text}"
            )

        raise AirtableApiError(f"Airtable request sin respuesta valida: {url}")
