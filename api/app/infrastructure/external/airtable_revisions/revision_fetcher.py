"""
Fetcher del historial de actividad de un registro (endpoint interno web de Airtable).

Una llamada = un GET autenticado con la sesion del navegador. No reintenta:
la politica de reintentos (re-login en 401/403) vive en el coordinador.
"""

from __future__ import annotations

import json
import secrets
import string
from typing import Any, Optional

import requests
from loguru import logger

from app.shared.exceptions.revision_sync import SessionInvalidError, TargetFetchError

from .types import SessionCredential, TargetDescriptor


ACTIVITY_PATH = "/v0.3/row/{record_id}/readRowActivitiesAndComments"
SESSION_REJECTED_STATUSES = (401, 403)

_ALNUM = string.ascii_letters + string.digits


def _random_alnum(length: int) -> str:
    return "".join(secrets.choice(_ALNUM) for _ in range(length))


def new_page_load_id() -> str:
    return f"pgl{_random_alnum(14)}"


def new_traceparent() -> str:
    # W3C: version-trace_id(32 hex)-span_id(16 hex)-flags
    return f"00-{secrets.token_hex(16)}-{secrets.token_hex(8)}-01"


class RevisionFetcher:
    """
    Cliente del endpoint readRowActivitiesAndComments.

    Clasificacion del resultado:
    - 2xx con cuerpo JSON objeto -> payload
    - 401/403 -> SessionInvalidError
    - cualquier otra cosa -> TargetFetchError
    """

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = "https://airtable.com",
        timeout_s: float = 10.0,
        page_size: int = 10,
        time_zone: str = "UTC",
        locale: str = "en",
    ) -> None:
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._page_size = page_size
        self._time_zone = time_zone
        self._locale = locale

    def build_query(self) -> dict[str, str]:
        return {
            "stringifiedObjectParams": json.dumps(
                {
                    "limit": self._page_size,
                    "offsetV2": None,
                    "shouldReturnDeserializedActivityItems": True,
                    "shouldIncludeRowActivityOrCommentUserObjById": True,
                },
                separators=(",", ":"),
            ),
            "requestId": f"req{_random_alnum(14)}",
            "secretSocketId": f"soc{_random_alnum(14)}",
        }

    def build_headers(self, target: TargetDescriptor, credential: SessionCredential) -> dict[str, str]:
        """Headers que imitan al cliente web. Trace/span/page-load se regeneran en cada llamada."""
        headers = dict(credential.headers)
        headers.update(
            {
                "accept": "application/json, text/javascript, */*; q=0.01",
                "cookie": credential.cookie_header(),
                "x-airtable-application-id": target.base_id,
                "x-airtable-inter-service-client": "webClient",
                "x-airtable-page-load-id": new_page_load_id(),
                "x-requested-with": "XMLHttpRequest",
                "x-time-zone": self._time_zone,
                "x-user-locale": self._locale,
                "traceparent": new_traceparent(),
                "tracestate": "",
            }
        )
        return headers

    def fetch(self, target: TargetDescriptor, credential: SessionCredential) -> dict[str, Any]:
        """
        Obtiene el payload de actividades de un registro.

        Raises:
            SessionInvalidError: Airtable rechazo la sesion (401/403)
            TargetFetchError: Error de red, timeout, status inesperado o cuerpo invalido
        """
        url = self._base_url + ACTIVITY_PATH.format(record_id=target.record_id)
        try:
            resp = self._session.get(
                url,
                params=self.build_query(),
                headers=self.build_headers(target, credential),
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise TargetFetchError(target.record_id, f"error de red: {e}") from e

        if resp.status_code in SESSION_REJECTED_STATUSES:
            raise SessionInvalidError(target.record_id, resp.status_code)

        if not 200 <= resp.status_code < 300:
            raise TargetFetchError(
                target.record_id,
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise TargetFetchError(target.record_id, "respuesta no es JSON", status_code=resp.status_code) from e

        if not isinstance(payload, dict):
            raise TargetFetchError(
                target.record_id,
                f"JSON inesperado ({type(payload).__name__})",
                status_code=resp.status_code,
            )

        logger.debug(f"Historial obtenido para {target.record_id} ({target.table_name})")
        return payload
