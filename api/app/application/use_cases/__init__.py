"""
Casos de uso de la aplicacion.
"""
from .airtable_use_cases import AirtableUseCases
from .auth_use_cases import AuthUseCases
from .revision_history_use_cases import RevisionHistoryUseCases

__all__ = ["AirtableUseCases", "AuthUseCases", "RevisionHistoryUseCases"]
