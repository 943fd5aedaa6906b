"""
Repositorio de operadores del sistema (usuarios conectados via OAuth de Airtable).
"""
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import SystemUserModel
from app.infrastructure.external.airtable_sync.oauth_client import OAuthTokens


class SystemUserRepository:
    """
    Gestiona la tabla system_users.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[SystemUserModel]:
        return await self.session.get(SystemUserModel, user_id)

    async def get_by_airtable_user_id(self, airtable_user_id: str) -> Optional[SystemUserModel]:
        result = await self.session.execute(
            select(SystemUserModel).where(SystemUserModel.airtable_user_id == airtable_user_id)
        )
        return result.scalar_one_or_none()

    async def upsert_oauth_user(
        self,
        *,
        airtable_user_id: str,
        email: Optional[str],
        tokens: OAuthTokens,
    ) -> SystemUserModel:
        """
        Crea o actualiza el operador asociado al usuario de Airtable y guarda sus tokens.
        """
        user = await self.get_by_airtable_user_id(airtable_user_id)
        if user is None:
            user = SystemUserModel(
                name=email or f"Airtable User {airtable_user_id}",
                airtable_user_id=airtable_user_id,
            )
            self.session.add(user)
            logger.info(f"Nuevo operador registrado via OAuth: {airtable_user_id}")

        user.airtable_email = email
        self._apply_tokens(user, tokens)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update_tokens(self, user: SystemUserModel, tokens: OAuthTokens) -> SystemUserModel:
        self._apply_tokens(user, tokens)
        await self.session.flush()
        return user

    async def clear_oauth(self, user_id: int) -> bool:
        """
        Borra los tokens OAuth del operador.

        Returns:
            bool: False si el operador no existe
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return False
        user.access_token = None
        user.refresh_token = None
        user.token_expires_at = None
        await self.session.flush()
        logger.info(f"Airtable desconectado para operador {user_id}")
        return True

    @staticmethod
    def _apply_tokens(user: SystemUserModel, tokens: OAuthTokens) -> None:
        user.access_token = tokens.access_token
        if tokens.refresh_token:
            user.refresh_token = tokens.refresh_token
        user.token_expires_at = tokens.expires_at
