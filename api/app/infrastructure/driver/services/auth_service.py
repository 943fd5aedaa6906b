"""
Servicio de autenticacion para Airtable.
Maneja el login web (email -> password -> OTP opcional) y la extraccion de
la sesion del navegador.
"""
from typing import Optional

from loguru import logger
from selenium import webdriver
from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from app.shared.exceptions.revision_sync import AuthTimeoutError


AIRTABLE_LOGIN_URL = "https://airtable.com/login"
LOGIN_PATH_MARKER = "/login"

EMAIL_INPUT = (By.CSS_SELECTOR, 'input[type="email"]')
PASSWORD_INPUT = (By.CSS_SELECTOR, 'input[type="password"]')
OTP_INPUT = (By.CSS_SELECTOR, 'input[name="otp"]')
SUBMIT_BUTTON = (By.CSS_SELECTOR, 'button[type="submit"]')


class AuthService:
    """
    Servicio de autenticacion para Airtable.
    Cada espera esta acotada; las que son obligatorias lanzan AuthTimeoutError.
    """

    def __init__(
        self,
        driver: webdriver.Chrome,
        wait: WebDriverWait,
        *,
        field_timeout_s: float = 5,
        mfa_timeout_s: float = 3,
        navigation_timeout_s: float = 30,
    ):
        """
        Args:
            driver: Instancia del WebDriver de Chrome
            wait: WebDriverWait por defecto (botones de submit)
            field_timeout_s: Limite para que aparezcan los campos email y password
            mfa_timeout_s: Limite para detectar el campo OTP (opcional)
            navigation_timeout_s: Limite para salir de la pantalla de login
        """
        self._driver = driver
        self._wait = wait
        self._field_timeout_s = field_timeout_s
        self._mfa_timeout_s = mfa_timeout_s
        self._navigation_timeout_s = navigation_timeout_s

    def _submit(self) -> None:
        self._wait.until(EC.element_to_be_clickable(SUBMIT_BUTTON)).click()

    def submit_email(self, email: str) -> None:
        try:
            field = WebDriverWait(self._driver, self._field_timeout_s).until(
                EC.element_to_be_clickable(EMAIL_INPUT)
            )
        except TimeoutException as e:
            raise AuthTimeoutError("email_field", self._field_timeout_s) from e
        field.click()
        field.send_keys(email)
        self._submit()

    def submit_password(self, password: str) -> None:
        try:
            field = WebDriverWait(self._driver, self._field_timeout_s).until(
                EC.visibility_of_element_located(PASSWORD_INPUT)
            )
        except TimeoutException as e:
            raise AuthTimeoutError("password_field", self._field_timeout_s) from e
        field.click()
        field.send_keys(password)
        self._submit()

    def submit_mfa_code(self, mfa_code: Optional[str]) -> bool:
        """
        Completa el OTP si el campo aparece y hay codigo.

        Returns:
            bool: True si se envio un codigo
        """
        try:
            field = WebDriverWait(self._driver, self._mfa_timeout_s).until(
                EC.visibility_of_element_located(OTP_INPUT)
            )
        except TimeoutException:
            logger.info("Sin campo OTP en el login (MFA no requerido)")
            return False

        if not mfa_code:
            logger.warning("Airtable pidio OTP pero no se recibio codigo MFA; se continua sin enviarlo")
            return False

        field.send_keys(mfa_code)
        self._submit()
        logger.info("Codigo MFA enviado")
        return True

    def wait_until_logged_in(self) -> None:
        try:
            WebDriverWait(self._driver, self._navigation_timeout_s).until(
                lambda d: LOGIN_PATH_MARKER not in d.current_url
            )
        except TimeoutException as e:
            raise AuthTimeoutError("post_login_navigation", self._navigation_timeout_s) from e

    def login(self, email: str, password: str, mfa_code: Optional[str] = None) -> None:
        """
        Realiza el flujo completo de login en Airtable.

        Raises:
            AuthTimeoutError: Si un paso obligatorio no aparece a tiempo
        """
        self._driver.get(AIRTABLE_LOGIN_URL)
        logger.info(f"Navegador abierto en: {AIRTABLE_LOGIN_URL}")

        self.submit_email(email)
        self.submit_password(password)
        self.submit_mfa_code(mfa_code)
        self.wait_until_logged_in()
        logger.info("Login realizado en Airtable")

    def extract_session(self) -> tuple[dict[str, str], str]:
        """
        Returns:
            tuple: (cookies nombre->valor, user agent del navegador)
        """
        cookies = {
            c["name"]: c["value"]
            for c in self._driver.get_cookies()
            if c.get("name") and c.get("value") is not None
        }
        user_agent = self._driver.execute_script("return navigator.userAgent;")
        return cookies, str(user_agent or "")
