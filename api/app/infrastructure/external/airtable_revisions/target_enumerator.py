"""
Enumerador de targets: convierte el catalogo local en una lista acotada y
deterministica de registros cuyo historial se va a recuperar.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from loguru import logger

from app.infrastructure.external.airtable_sync.table_registry import TableTypeConfig, get_table_type
from app.shared.exceptions.revision_sync import NoBasesFoundError

from .ports import CatalogProvider
from .types import TargetDescriptor


class TargetEnumerator:
    """
    Recorre bases -> tablas -> registros en orden de catalogo.

    - Tablas sin tipo registrado se omiten (no es error).
    - Registros de cada tabla ascendentes por la columna de orden del tipo.
    - Se corta apenas se juntan `limit` targets: las primeras bases tienen
      prioridad, no se balancea entre tablas.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        *,
        table_type_lookup: Callable[[str], Optional[TableTypeConfig]] = get_table_type,
    ) -> None:
        self._catalog = catalog
        self._lookup = table_type_lookup

    def enumerate(self, limit: int) -> List[TargetDescriptor]:
        """
        Args:
            limit: Maximo global de targets

        Raises:
            NoBasesFoundError: Si el catalogo no tiene bases
        """
        bases = self._catalog.list_bases()
        if not bases:
            raise NoBasesFoundError()

        targets: List[TargetDescriptor] = []
        for base in bases:
            if len(targets) >= limit:
                break
            for table in self._catalog.list_tables(base.base_id):
                remaining = limit - len(targets)
                if remaining <= 0:
                    break

                table_type = self._lookup(table.name)
                if table_type is None:
                    logger.debug(f"Sin tipo registrado para la tabla '{table.name}'; se omite")
                    continue

                record_ids = self._catalog.list_record_ids(
                    table_type,
                    base_id=base.base_id,
                    table_id=table.table_id,
                    limit=remaining,
                )
                targets.extend(
                    TargetDescriptor(
                        record_id=record_id,
                        base_id=base.base_id,
                        table_id=table.table_id,
                        table_name=table.name,
                    )
                    for record_id in record_ids[:remaining]
                    if record_id
                )

        logger.info(f"Targets enumerados para historial de revisiones: {len(targets)} (limite {limit})")
        return targets
