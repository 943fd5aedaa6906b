"""
Servicios de Selenium para interaccion con Airtable.
"""
from app.infrastructure.driver.services.auth_service import AuthService


__all__ = ["AuthService"]
