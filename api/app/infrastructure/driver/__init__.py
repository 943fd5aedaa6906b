"""
Modulo de gestion del driver de Selenium.
Proporciona las clases y funciones para manejar el WebDriver.
"""
from app.infrastructure.driver.driver_manager import DriverManager, DriverSession
from app.infrastructure.driver.services import AuthService


__all__ = [
    "DriverManager",
    "DriverSession",
    "AuthService",
]
