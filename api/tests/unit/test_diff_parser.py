"""
Tests del parser de diffs del historial de revisiones.
"""
from __future__ import annotations

from datetime import datetime, timezone

from bs4 import BeautifulSoup

from app.infrastructure.external.airtable_revisions.diff_parser import (
    NEW_VALUE_TIERS,
    OLD_VALUE_TIERS,
    first_non_empty,
    parse_diff,
    parse_payload,
)
from app.infrastructure.external.airtable_revisions.types import DiffContext


CONTEXT = DiffContext(
    activity_id="act1",
    target_id="recT1",
    created_time="2024-03-01T12:30:00.000Z",
    author_id="usrA",
)

TEXT_CHANGE_HTML = """
<div class="historicalCellContainer">
  <div>Status</div>
  <div class="historicalCellValue">
    <span class="strikethrough">Open</span>
    <span class="colors-background-success">Closed</span>
  </div>
</div>
"""

LINKED_RECORD_HTML = """
<div class="historicalCellContainer">
  <div>Assignee</div>
  <div>
    <div class="foreignRecord removed">Ana</div>
    <div class="foreignRecord added">Beto</div>
  </div>
</div>
"""

SELECT_PILL_HTML = """
<div class="historicalCellContainer">
  <div>Priority</div>
  <div>
    <span style="text-decoration:line-through">Low</span>
    <div class="pill"><div title="High">High</div></div>
    <div style="background-color:var(--palette-green-greenLight1)"></div>
  </div>
</div>
"""

GREEN_ONLY_HTML = """
<div class="historicalCellContainer">
  <div>Tags</div>
  <div style="border-color:var(--palette-green-greenLight1)">
    <div title="urgent">urgent</div>
  </div>
</div>
"""


class TestParseDiff:
    def test_plain_text_change(self) -> None:
        entry = parse_diff(TEXT_CHANGE_HTML, CONTEXT)

        assert entry.column_type == "Status"
        assert entry.old_value == "Open"
        assert entry.new_value == "Closed"
        assert entry.uuid == "act1"
        assert entry.issue_id == "recT1"
        assert entry.authored_by == "usrA"
        assert entry.created_date == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    def test_linked_record_change(self) -> None:
        entry = parse_diff(LINKED_RECORD_HTML, CONTEXT)

        assert entry.column_type == "Assignee"
        assert entry.old_value == "Ana"
        assert entry.new_value == "Beto"

    def test_removed_linked_record_without_new_value(self) -> None:
        html = (
            '<div class="historicalCellContainer"><div>Assignee</div>'
            '<div class="foreignRecord removed">Ana</div></div>'
        )
        entry = parse_diff(html, CONTEXT)

        assert entry.column_type == "Assignee"
        assert entry.old_value == "Ana"
        assert entry.new_value == ""

    def test_select_pill_uses_sibling_before_green_marker(self) -> None:
        entry = parse_diff(SELECT_PILL_HTML, CONTEXT)

        assert entry.column_type == "Priority"
        assert entry.old_value == "Low"
        assert entry.new_value == "High"

    def test_green_highlight_fallback(self) -> None:
        entry = parse_diff(GREEN_ONLY_HTML, CONTEXT)

        assert entry.column_type == "Tags"
        assert entry.old_value == ""
        assert entry.new_value == "urgent"

    def test_unknown_markup_yields_empty_values(self) -> None:
        entry = parse_diff("<p>algo</p>", CONTEXT)

        assert entry.column_type == ""
        assert entry.old_value == ""
        assert entry.new_value == ""
        assert entry.uuid == "act1"

    def test_empty_and_non_string_fragments_do_not_raise(self) -> None:
        for fragment in ("", None, 123):
            entry = parse_diff(fragment, CONTEXT)
            assert entry.column_type == ""
            assert entry.old_value == ""
            assert entry.new_value == ""

    def test_invalid_created_time_becomes_none(self) -> None:
        ctx = DiffContext(activity_id="a", target_id="r", created_time="no-es-fecha", author_id=None)

        entry = parse_diff(TEXT_CHANGE_HTML, ctx)

        assert entry.created_date is None
        assert entry.authored_by is None

    def test_multiple_strikethrough_nodes_are_concatenated(self) -> None:
        html = '<span class="strikethrough">A</span><span class="strikethrough">B</span>'

        entry = parse_diff(html, CONTEXT)

        assert entry.old_value == "AB"


class TestTierPrecedence:
    def test_first_tier_with_text_wins(self) -> None:
        html = (
            '<span class="strikethrough">viejo</span>'
            '<span style="text-decoration:line-through">otro</span>'
        )
        soup = BeautifulSoup(html, "html.parser")

        assert first_non_empty(soup, OLD_VALUE_TIERS) == "viejo"

    def test_empty_match_falls_through_to_next_tier(self) -> None:
        html = (
            '<span class="colors-background-success">   </span>'
            '<div class="foreignRecord added">Beto</div>'
        )
        soup = BeautifulSoup(html, "html.parser")

        assert first_non_empty(soup, NEW_VALUE_TIERS) == "Beto"

    def test_no_tier_matches(self) -> None:
        soup = BeautifulSoup("<div>nada</div>", "html.parser")

        assert first_non_empty(soup, OLD_VALUE_TIERS) == ""
        assert first_non_empty(soup, NEW_VALUE_TIERS) == ""


class TestParsePayload:
    def test_only_activities_with_diff_are_parsed_in_order(self, activity_payload) -> None:
        payload = activity_payload([
            ("act1", TEXT_CHANGE_HTML, "2024-03-01T12:30:00.000Z", "usrA"),
            ("act2", None, "2024-03-02T12:30:00.000Z", "usrB"),
            ("act3", LINKED_RECORD_HTML, "2024-03-03T12:30:00.000Z", "usrC"),
        ])

        entries = parse_payload(payload, "recT1")

        assert [e.uuid for e in entries] == ["act1", "act3"]
        assert all(e.issue_id == "recT1" for e in entries)
        assert entries[1].authored_by == "usrC"

    def test_payload_without_data_returns_empty(self) -> None:
        assert parse_payload({}, "recT1") == []
        assert parse_payload({"data": None}, "recT1") == []
        assert parse_payload({"data": {"rowActivityInfoById": []}}, "recT1") == []

    def test_entry_to_dict_uses_camel_case(self, activity_payload) -> None:
        payload = activity_payload([("act1", TEXT_CHANGE_HTML, "2024-03-01T12:30:00.000Z", "usrA")])

        data = parse_payload(payload, "recT1")[0].to_dict()

        assert data == {
            "uuid": "act1",
            "issueId": "recT1",
            "columnType": "Status",
            "oldValue": "Open",
            "newValue": "Closed",
            "createdDate": "2024-03-01T12:30:00+00:00",
            "authoredBy": "usrA",
        }
