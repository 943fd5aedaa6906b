"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .airtable_dto import (
    AirtableBaseDTO,
    AirtableRecordsPageDTO,
    AirtableTableDTO,
    CatalogSyncResponseDTO,
)
from .auth_dto import (
    AuthUrlResponseDTO,
    CurrentUserDTO,
    MessageResponseDTO,
    OAuthCallbackDTO,
    TokenResponseDTO,
)
from .revision_dto import (
    RevisionEntryDTO,
    RevisionHistoryResponseDTO,
    RevisionSyncJobResponseDTO,
    RevisionSyncJobStatusDTO,
    RevisionSyncRequestDTO,
)

__all__ = [
    "AirtableBaseDTO",
    "AirtableRecordsPageDTO",
    "AirtableTableDTO",
    "CatalogSyncResponseDTO",
    "AuthUrlResponseDTO",
    "CurrentUserDTO",
    "MessageResponseDTO",
    "OAuthCallbackDTO",
    "TokenResponseDTO",
    "RevisionEntryDTO",
    "RevisionHistoryResponseDTO",
    "RevisionSyncJobResponseDTO",
    "RevisionSyncJobStatusDTO",
    "RevisionSyncRequestDTO",
]
