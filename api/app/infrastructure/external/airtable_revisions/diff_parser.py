"""
Parser de fragmentos HTML de diff (diffRowHtml) del historial de Airtable.

El markup no esta documentado y cambia segun el tipo de campo:
- texto plano: el valor viejo tachado (.strikethrough) y el nuevo en verde
- registros vinculados: .foreignRecord.removed / .foreignRecord.added
- single/multi select: pildoras con estilos inline (line-through / greenLight1)

Cada valor se resuelve con una lista ordenada de niveles (selector CSS +
extractor). Gana el primer nivel que produce texto no vacio; si ninguno
matchea el valor queda en "". parse_diff nunca lanza excepciones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from app.infrastructure.external.airtable_sync.types import parse_airtable_datetime

from .types import DiffContext, ParsedRevisionEntry


GREEN_HIGHLIGHT_TOKEN = "greenLight1"


@dataclass(frozen=True)
class ExtractionTier:
    """Un nivel del fallback: selector que encuentra candidatos + extractor de texto."""

    name: str
    selector: str
    extract: Callable[[List[Tag]], str]


def _joined_text(matches: List[Tag]) -> str:
    return "".join(m.get_text() for m in matches).strip()


def _titled_text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return _joined_text(element.select("div[title]"))


def _titled_text_of_previous_sibling(matches: List[Tag]) -> str:
    # True: solo elementos, sin nodos de texto intermedios
    return _titled_text(matches[0].find_previous_sibling(True))


def _titled_text_of_first(matches: List[Tag]) -> str:
    return _titled_text(matches[0])


COLUMN_TYPE_SELECTOR = ".historicalCellContainer > div"

OLD_VALUE_TIERS: List[ExtractionTier] = [
    ExtractionTier("strikethrough", ".strikethrough", _joined_text),
    ExtractionTier("removed_linked_record", ".foreignRecord.removed", _joined_text),
    ExtractionTier("line_through_style", 'span[style*="text-decoration:line-through"]', _joined_text),
]

NEW_VALUE_TIERS: List[ExtractionTier] = [
    ExtractionTier("success_background", ".colors-background-success", _joined_text),
    ExtractionTier("added_linked_record", ".foreignRecord.added", _joined_text),
    ExtractionTier(
        "sibling_before_green_marker",
        f'div[style*="background-color:var(--palette-green-{GREEN_HIGHLIGHT_TOKEN})"]',
        _titled_text_of_previous_sibling,
    ),
    ExtractionTier("green_highlight_style", f'[style*="{GREEN_HIGHLIGHT_TOKEN}"]', _titled_text_of_first),
]


def first_non_empty(soup: BeautifulSoup, tiers: List[ExtractionTier]) -> str:
    """Evalua los niveles en orden y retorna el primer texto no vacio, o ""."""
    for tier in tiers:
        matches = soup.select(tier.selector)
        if not matches:
            continue
        value = tier.extract(matches)
        if value:
            return value
    return ""


def _column_type(soup: BeautifulSoup) -> str:
    first = soup.select_one(COLUMN_TYPE_SELECTOR)
    return first.get_text().strip() if first is not None else ""


def parse_diff(fragment: Any, context: DiffContext) -> ParsedRevisionEntry:
    """
    Convierte un fragmento de diff + metadatos de la actividad en una entrada.

    Campos no resueltos quedan como string vacio (entrada de baja confianza,
    pero se persiste igual).
    """
    soup = BeautifulSoup(fragment if isinstance(fragment, str) else "", "html.parser")
    return ParsedRevisionEntry(
        uuid=context.activity_id,
        issue_id=context.target_id,
        column_type=_column_type(soup),
        old_value=first_non_empty(soup, OLD_VALUE_TIERS),
        new_value=first_non_empty(soup, NEW_VALUE_TIERS),
        created_date=parse_airtable_datetime(context.created_time),
        authored_by=context.author_id,
    )


def activities_from_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Extrae el mapa activity_id -> actividad del payload de readRowActivitiesAndComments."""
    data = payload.get("data")
    if not isinstance(data, dict):
        return {}
    activities = data.get("rowActivityInfoById")
    return activities if isinstance(activities, dict) else {}


def parse_payload(payload: dict[str, Any], record_id: str) -> List[ParsedRevisionEntry]:
    """Parsea cada actividad que trae diffRowHtml, en el orden del payload."""
    entries: List[ParsedRevisionEntry] = []
    for activity_id, activity in activities_from_payload(payload).items():
        if not isinstance(activity, dict) or not activity.get("diffRowHtml"):
            continue
        entries.append(
            parse_diff(
                activity["diffRowHtml"],
                DiffContext(
                    activity_id=activity_id,
                    target_id=record_id,
                    created_time=activity.get("createdTime"),
                    author_id=activity.get("originatingUserId"),
                ),
            )
        )
    return entries
