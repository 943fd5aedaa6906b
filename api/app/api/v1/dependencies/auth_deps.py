"""
Dependencia de autenticacion: JWT Bearer emitido en el callback OAuth.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import security_service
from app.infrastructure.database.models import SystemUserModel
from app.infrastructure.database.session import get_db
from app.infrastructure.repositories.system_user_repository import SystemUserRepository
from app.shared.exceptions.auth import UnauthorizedException


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_operator(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> SystemUserModel:
    """
    Resuelve el operador del token `Authorization: Bearer <jwt>`.

    Raises:
        UnauthorizedException: Sin token, token invalido o operador inexistente
        TokenExpiredException: Si el token expiro
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Falta el token de acceso")

    payload = security_service.decode_access_token(credentials.credentials)
    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise UnauthorizedException("Token sin operador valido")

    user = await SystemUserRepository(db).get_by_id(int(subject))
    if user is None:
        raise UnauthorizedException("Operador no encontrado")
    return user
