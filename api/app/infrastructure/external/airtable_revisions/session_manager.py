"""
Session Manager: duenio unico de la sesion web de Airtable durante una corrida.

Maquina de estados:
    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED
    AUTHENTICATED -> INVALID -> AUTHENTICATING
    AUTHENTICATING -(fallo)-> UNAUTHENTICATED

El navegador existe solo mientras dura `authenticate`; se cierra siempre en
el `finally` aunque el login falle.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from loguru import logger

from app.infrastructure.driver.driver_manager import DriverManager, DriverSession
from app.shared.exceptions.revision_sync import AuthenticationError

from .types import SessionCredential


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    INVALID = "invalid"


class AirtableSessionManager:
    """
    Obtiene y reemplaza la credencial de sesion via login con Selenium.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], DriverSession] = DriverManager.create_session,
        release_session: Callable[[str], bool] = DriverManager.close_session,
    ) -> None:
        self._session_factory = session_factory
        self._release_session = release_session
        self._state = SessionState.UNAUTHENTICATED
        self._credential: Optional[SessionCredential] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def credential(self) -> Optional[SessionCredential]:
        return self._credential

    def authenticate(self, email: str, password: str, mfa_code: Optional[str] = None) -> SessionCredential:
        """
        Login interactivo y construccion de una credencial nueva.

        Args:
            email: Email del operador
            password: Password del operador (nunca se loguea)
            mfa_code: Codigo OTP opcional

        Returns:
            SessionCredential: Credencial valida (reemplaza a la anterior)

        Raises:
            AuthTimeoutError: Campo password o navegacion post-login fuera de tiempo
            AuthenticationError: El navegador no devolvio cookies
            WebDriverException: Errores del driver
        """
        previous_state = self._state
        self._state = SessionState.AUTHENTICATING
        logger.info(f"Autenticando en Airtable como {email} (estado previo: {previous_state.value})")

        session: Optional[DriverSession] = None
        try:
            session = self._session_factory()
            session.auth_service.login(email, password, mfa_code)
            cookies, user_agent = session.auth_service.extract_session()
            if not cookies:
                raise AuthenticationError("El navegador no devolvio cookies tras el login")
        except Exception:
            self._state = SessionState.UNAUTHENTICATED
            self._credential = None
            logger.error("Login en Airtable fallido")
            raise
        finally:
            if session is not None:
                self._release_session(session.session_id)

        credential = SessionCredential(cookies=cookies, headers={"user-agent": user_agent})
        self._credential = credential
        self._state = SessionState.AUTHENTICATED
        logger.success(f"Sesion de Airtable establecida ({len(cookies)} cookies)")
        return credential

    def invalidate(self) -> None:
        """Marca la credencial actual como invalida (Airtable respondio 401/403)."""
        if self._credential is not None:
            self._credential.is_valid = False
        self._state = SessionState.INVALID
        logger.warning("Sesion de Airtable invalidada; se requiere re-login")
