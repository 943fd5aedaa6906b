"""
Utilidades de seguridad: emision y validacion de tokens JWT de operadores.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.shared.exceptions.auth import InvalidCredentialsException, TokenExpiredException


class SecurityService:
    """Servicio para operaciones de seguridad."""

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Crea un token JWT de acceso.

        Args:
            data: Datos a incluir en el token (ej: {"sub": "<id operador>"})
            expires_delta: Tiempo de expiración personalizado

        Returns:
            str: Token JWT codificado
        """
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
            )

        to_encode.update({"exp": expire})
        encoded_jwt = jwt.encode(
            to_encode,
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM
        )

        return encoded_jwt

    @staticmethod
    def decode_access_token(token: str) -> Dict[str, Any]:
        """
        Decodifica y valida un token JWT.

        Args:
            token: Token JWT a decodificar

        Returns:
            Dict[str, Any]: Datos del token decodificado

        Raises:
            InvalidCredentialsException: Si el token es inválido
            TokenExpiredException: Si el token ha expirado
        """
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
            return payload
        except ExpiredSignatureError:
            raise TokenExpiredException()
        except JWTError:
            raise InvalidCredentialsException()


# Instancia global del servicio de seguridad
security_service = SecurityService()
