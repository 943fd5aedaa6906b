"""
Driver Manager - Gestion centralizada del WebDriver de Selenium.
Maneja el ciclo de vida del ChromeDriver usado para el login web de Airtable.

El navegador solo vive durante el login: se crea, se extraen cookies y se
cierra. Las sesiones abiertas se registran aca para poder cerrarlas ante
SIGINT/SIGTERM, atexit o el shutdown de FastAPI.

Configuracion de headless:
- SELENIUM_HEADLESS=true: Modo headless (produccion, sin GUI)
- SELENIUM_HEADLESS=false: Modo con GUI (desarrollo, para debugging)
"""
import atexit
import signal
import threading
import uuid
from datetime import datetime
from typing import Dict, Optional

from loguru import logger
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.support.ui import WebDriverWait

from app.core.config import settings
from app.infrastructure.driver.services.auth_service import AuthService


class DriverSession:
    """
    Representa una sesion activa de un driver de Selenium.
    Contiene el driver, el servicio de login y metadatos de la sesion.
    """

    def __init__(self, session_id: str, driver: webdriver.Chrome, wait: WebDriverWait):
        """
        Args:
            session_id: Identificador unico de la sesion
            driver: Instancia del WebDriver de Chrome
            wait: Instancia de WebDriverWait configurada
        """
        self.session_id = session_id
        self.driver = driver
        self.wait = wait
        self.created_at = datetime.now()
        self.is_active = True

        self.auth_service = AuthService(
            driver,
            wait,
            field_timeout_s=settings.LOGIN_FIELD_TIMEOUT_S,
            mfa_timeout_s=settings.LOGIN_MFA_TIMEOUT_S,
            navigation_timeout_s=settings.LOGIN_NAVIGATION_TIMEOUT_S,
        )

    def close(self) -> None:
        """Cierra el driver y marca la sesion como inactiva."""
        if self.driver and self.is_active:
            try:
                self.driver.quit()
                logger.info(f"Driver cerrado para sesion {self.session_id}")
            except WebDriverException as e:
                logger.error(f"Error al cerrar driver: {e}")
        self.is_active = False


class DriverManager:
    """
    Gestor centralizado de drivers de Selenium.
    Permite crear, cerrar y limpiar sesiones de driver.
    """

    # Almacenamiento de sesiones activas (en memoria)
    _sessions: Dict[str, DriverSession] = {}
    _lock = threading.Lock()
    _hooks_installed = False

    @classmethod
    def create_session(cls, session_id: Optional[str] = None) -> DriverSession:
        """
        Crea una nueva sesion de driver (navegador sin navegar todavia).

        Args:
            session_id: ID de sesion opcional. Si no se provee, se genera uno nuevo.

        Returns:
            DriverSession: La sesion creada con el driver activo
        """
        if not session_id:
            session_id = str(uuid.uuid4())

        driver, wait = cls._create_driver()
        session = DriverSession(session_id=session_id, driver=driver, wait=wait)

        with cls._lock:
            cls._sessions[session_id] = session
        logger.info(f"Sesion de driver creada: {session_id}")
        return session

    @classmethod
    def _create_driver(cls) -> tuple[webdriver.Chrome, WebDriverWait]:
        """
        Crea e inicializa un nuevo WebDriver de Chrome.

        El modo headless se controla via settings.SELENIUM_HEADLESS.

        Returns:
            tuple: (WebDriver, WebDriverWait)
        """
        opts = Options()

        if settings.SELENIUM_HEADLESS:
            opts.add_argument("--headless=new")
            logger.info("Chrome iniciando en modo headless")
        else:
            logger.info("Chrome iniciando con GUI (desarrollo)")

        opts.add_argument("--no-sandbox")
        opts.add_argument("--disable-dev-shm-usage")
        opts.add_argument("--disable-gpu")
        opts.add_argument("--window-size=1920,1080")
        opts.add_argument("--disable-extensions")
        opts.add_argument("--disable-infobars")

        driver = webdriver.Chrome(options=opts)
        wait = WebDriverWait(driver, 10)
        return driver, wait

    @classmethod
    def close_session(cls, session_id: str) -> bool:
        """
        Cierra una sesion y libera sus recursos.

        Returns:
            bool: True si se cerro correctamente, False si no existia
        """
        with cls._lock:
            session = cls._sessions.pop(session_id, None)
        if session:
            session.close()
            return True
        return False

    @classmethod
    def close_all_sessions(cls) -> int:
        """
        Cierra todas las sesiones activas.
        Util para limpieza al cerrar la aplicacion.

        Returns:
            int: Numero de sesiones cerradas
        """
        count = 0
        for session_id in list(cls._sessions.keys()):
            if cls.close_session(session_id):
                count += 1
        if count:
            logger.info(f"Se cerraron {count} sesiones de driver")
        return count

    @classmethod
    def active_count(cls) -> int:
        return len(cls._sessions)

    @classmethod
    def install_signal_handlers(cls) -> None:
        """
        Cierra los navegadores abiertos ante SIGINT/SIGTERM y luego delega en
        el handler previo. Solo para procesos CLI: uvicorn maneja sus propias
        senales y cierra via el evento de shutdown.
        """
        if cls._hooks_installed:
            return

        def _make_handler(previous):
            def _handler(signum, frame):
                logger.warning(f"Senal {signum} recibida; cerrando navegadores abiertos")
                cls.close_all_sessions()
                if callable(previous):
                    previous(signum, frame)
                else:
                    raise SystemExit(128 + signum)
            return _handler

        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, _make_handler(signal.getsignal(sig)))
        cls._hooks_installed = True


# Registrar cleanup al terminar el proceso
atexit.register(DriverManager.close_all_sessions)
