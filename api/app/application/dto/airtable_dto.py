"""
DTOs del catalogo Airtable sincronizado via API.
"""
from typing import Any, Dict, List
from pydantic import BaseModel, Field


class CatalogSyncResponseDTO(BaseModel):
    """Resultado de una corrida del sync de catalogo."""

    success: bool
    message: str
    bases: int = 0
    tables: int = 0
    upserted_rows: int = 0
    skipped: bool = False


class AirtableBaseDTO(BaseModel):
    id: str
    name: str


class AirtableTableDTO(BaseModel):
    id: str
    base_id: str
    name: str
    fields_count: int = 0
    supported: bool = Field(False, description="Si la tabla tiene tipo registrado (se sincronizan sus registros)")


class AirtableRecordsPageDTO(BaseModel):
    """Pagina de registros tipados, ordenada por la columna del tipo de tabla."""

    table_name: str
    page: int
    page_size: int
    total: int
    items: List[Dict[str, Any]]
