"""
Casos de uso para autenticacion de operadores.

Flujo:
- /auth/airtable/auth-url genera state + PKCE y guarda state -> code_verifier
  en un ExpiringStore (uso unico, TTL de 10 minutos).
- /auth/airtable/callback consume el state, intercambia el code por tokens,
  identifica al usuario (whoami), guarda tokens y emite un JWT propio.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dto.auth_dto import AuthUrlResponseDTO, CurrentUserDTO, TokenResponseDTO
from app.application.use_cases.airtable_use_cases import build_oauth_client
from app.core.config import settings
from app.core.security import security_service
from app.infrastructure.database.models import SystemUserModel
from app.infrastructure.external.airtable_sync.oauth_client import (
    AirtableOAuthClient,
    AirtableOAuthError,
    generate_pkce,
    generate_state,
)
from app.infrastructure.repositories.system_user_repository import SystemUserRepository
from app.shared.exceptions.auth import InvalidOAuthStateException, OAuthNotConfiguredException
from app.shared.exceptions.base import AppException
from app.shared.exceptions.domain import EntityNotFoundException
from app.shared.utils.expiring_store import ExpiringStore


# state -> code_verifier, compartido por el proceso
pkce_store: ExpiringStore[str] = ExpiringStore(ttl_seconds=settings.OAUTH_STATE_TTL_SECONDS)


def to_current_user_dto(user: SystemUserModel) -> CurrentUserDTO:
    return CurrentUserDTO(
        id=user.id,
        name=user.name,
        airtable_user_id=user.airtable_user_id,
        has_airtable_oauth=user.has_airtable_oauth,
    )


class AuthUseCases:
    def __init__(
        self,
        db: AsyncSession,
        oauth_client: Optional[AirtableOAuthClient] = None,
        store: Optional[ExpiringStore[str]] = None,
    ) -> None:
        self.db = db
        self._oauth = oauth_client or build_oauth_client()
        self._store = store if store is not None else pkce_store

    def build_auth_url(self) -> AuthUrlResponseDTO:
        """
        Raises:
            OAuthNotConfiguredException: Si falta client_id o redirect_uri
        """
        if not self._oauth.is_configured():
            raise OAuthNotConfiguredException()

        state = generate_state()
        pkce = generate_pkce()
        self._store.put(state, pkce.code_verifier)
        return AuthUrlResponseDTO(
            auth_url=self._oauth.build_authorization_url(state=state, code_challenge=pkce.code_challenge),
            state=state,
        )

    async def handle_callback(self, code: str, state: str) -> TokenResponseDTO:
        """
        Completa el flujo OAuth y emite el JWT del operador.

        Raises:
            InvalidOAuthStateException: State desconocido, ya usado o expirado
            AppException: Airtable rechazo el intercambio (502)
        """
        code_verifier = self._store.pop(state)
        if code_verifier is None:
            raise InvalidOAuthStateException()

        try:
            # Llamadas HTTP cortas: no se encolan detras de un job de sync
            tokens = await asyncio.to_thread(self._oauth.exchange_code, code=code, code_verifier=code_verifier)
            who = await asyncio.to_thread(self._oauth.whoami, tokens.access_token)
        except AirtableOAuthError as e:
            raise AppException(
                message=f"Error en OAuth de Airtable: {e}",
                status_code=502,
                error_code="AIRTABLE_OAUTH_ERROR",
            ) from e

        airtable_user_id = who.get("id")
        if not airtable_user_id:
            raise AppException(
                message="Airtable no devolvio el id del usuario",
                status_code=502,
                error_code="AIRTABLE_OAUTH_ERROR",
            )

        repo = SystemUserRepository(self.db)
        user = await repo.upsert_oauth_user(
            airtable_user_id=airtable_user_id,
            email=who.get("email"),
            tokens=tokens,
        )
        await self.db.commit()

        token = security_service.create_access_token({"sub": str(user.id)})
        logger.info(f"Operador {user.id} autenticado via OAuth de Airtable")
        return TokenResponseDTO(access_token=token, user=to_current_user_dto(user))

    async def disconnect(self, user: SystemUserModel) -> None:
        repo = SystemUserRepository(self.db)
        if not await repo.clear_oauth(user.id):
            raise EntityNotFoundException("SystemUser", user.id)
        await self.db.commit()
