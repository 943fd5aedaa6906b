"""
Cliente OAuth 2.0 (authorization code + PKCE) de Airtable.

Cubre:
- generacion de code_verifier / code_challenge (S256)
- URL de autorizacion
- intercambio de code por tokens y refresh
- whoami para identificar al usuario de Airtable
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional
from urllib.parse import urlencode

import requests

from .types import utc_now

AIRTABLE_AUTH_URL = "https://airtable.com/oauth2/v1/authorize"
AIRTABLE_TOKEN_URL = "https://airtable.com/oauth2/v1/token"
AIRTABLE_WHOAMI_URL = "https://api.airtable.com/v0/meta/whoami"


class AirtableOAuthError(RuntimeError):
    """Error en el intercambio OAuth con Airtable."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class PkcePair:
    code_verifier: str = field(repr=False)
    code_challenge: str


@dataclass(frozen=True)
class OAuthTokens:
    access_token: str = field(repr=False)
    refresh_token: Optional[str] = field(repr=False)
    expires_at: datetime


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_pkce() -> PkcePair:
    """Genera un par PKCE: verifier aleatorio y challenge SHA-256 en base64url."""
    verifier = _b64url(secrets.token_bytes(32))
    challenge = _b64url(hashlib.sha256(verifier.encode("ascii")).digest())
    return PkcePair(code_verifier=verifier, code_challenge=challenge)


def generate_state() -> str:
    return secrets.token_hex(16)


class AirtableOAuthClient:
    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: str,
        session: Optional[requests.Session] = None,
        timeout_s: int = 30,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scopes = scopes
        self._session = session or requests.Session()
        self._timeout_s = timeout_s

    def is_configured(self) -> bool:
        return bool(self._client_id and self._redirect_uri)

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        query = urlencode(
            {
                "client_id": self._client_id,
                "redirect_uri": self._redirect_uri,
                "scope": self._scopes,
                "response_type": "code",
                "state": state,
                "code_challenge": code_challenge,
                "code_challenge_method": "S256",
            }
        )
        return f"{AIRTABLE_AUTH_URL}?{query}"

    def exchange_code(self, *, code: str, code_verifier: str) -> OAuthTokens:
        """Intercambia el authorization code por access/refresh token."""
        return self._token_request(
            {
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self._redirect_uri,
                "code_verifier": code_verifier,
            }
        )

    def refresh(self, refresh_token: str) -> OAuthTokens:
        """Obtiene un access token nuevo a partir del refresh token."""
        return self._token_request(
            {
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )

    def whoami(self, access_token: str) -> dict[str, Any]:
        resp = self._session.get(
            AIRTABLE_WHOAMI_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=self._timeout_s,
        )
        if resp.status_code != 200:
            raise AirtableOAuthError(f"whoami falló {resp.status_code}: {resp.text}", resp.status_code)
        return resp.json()

    def _token_request(self, body: dict[str, str]) -> OAuthTokens:
        """
        POST form-urlencoded al endpoint de tokens.

        Con client_secret se autentica via Basic; sin secret (cliente publico)
        el client_id viaja en el body.
        """
        auth = None
        if self._client_secret:
            auth = (self._client_id, self._client_secret)
        else:
            body = {**body, "client_id": self._client_id}

        resp = self._session.post(
            AIRTABLE_TOKEN_URL,
            data=body,
            auth=auth,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self._timeout_s,
        )
        if resp.status_code != 200:
            raise AirtableOAuthError(
                f"Airtable token request falló {resp.status_code}: {resp.text}", resp.status_code
            )

        payload = resp.json()
        expires_in = int(payload.get("expires_in") or 0)
        return OAuthTokens(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=utc_now() + timedelta(seconds=expires_in),
        )
