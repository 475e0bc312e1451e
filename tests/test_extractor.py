"""Tests for message extraction — the four ordered strategies.

Timestamps that default to "now" are pinned by patching
``smsdesk.scraper.timestamps._now`` wherever exact equality is asserted.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from smsdesk.scraper.extractor import (
    _from_generic_tables,
    _from_labeled_rows,
    extract_messages,
)
from smsdesk.scraper.templates import (
    DEFAULT_TEMPLATES,
    KnownTemplate,
    get_templates,
    load_templates,
)

_FIXED_NOW = datetime(2024, 6, 1, 8, 0, 0, tzinfo=timezone.utc)
_FIXED_NOW_ISO = "2024-06-01T08:00:00.000Z"

_COMDIRECT_LITERAL = DEFAULT_TEMPLATES[0].literals[0]


@pytest.fixture()
def frozen_now():
    with patch("smsdesk.scraper.timestamps._now", return_value=_FIXED_NOW):
        yield


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_LABELED_HTML = """\
<html><body>
<table>
  <thead><tr><th>From</th><th>SMS Messages</th><th>Added</th></tr></thead>
  <tbody>
    <tr>
      <td data-label="From   :">PayPal</td>
      <td data-label="Message   :">Hello

        world\t!</td>
      <td data-label="Added   :">15.03.2024 14:30</td>
    </tr>
    <tr>
      <td data-label="From   :">From</td>
      <td data-label="Message   :">Message</td>
      <td data-label="Added   :">Added</td>
    </tr>
    <tr>
      <td data-label="From   :">Telegram</td>
      <td data-label="Message   :">Telegram code: 55120</td>
      <td data-label="Added   :">2024-03-16 09:01:02</td>
    </tr>
  </tbody>
</table>
</body></html>
"""

_GENERIC_HTML = """\
<html><body>
<table>
  <tr><th>From</th><th>Message</th><th>Time</th></tr>
  <tr><td>Amazon</td><td>Your OTP is 771204</td><td>2024-03-15 10:00:00</td></tr>
  <tr><td>Uber</td><td>Uber code 4412</td></tr>
  <tr><td>WhatsApp | Your code 118-220</td></tr>
  <tr><td>just text without delimiters</td></tr>
  <tr></tr>
</table>
<table>
  <tr><td>Sender</td><td>Content</td></tr>
  <tr><td>Sender</td><td>SMS</td></tr>
  <tr><td>Bolt</td><td>Bolt code 9001</td><td>junk</td></tr>
</table>
</body></html>
"""


# ---------------------------------------------------------------------------
# Strategy 1: labeled cells
# ---------------------------------------------------------------------------

class TestLabeledRows:
    def test_extracts_labeled_rows_and_skips_headers(self) -> None:
        messages = extract_messages(_LABELED_HTML)
        assert [(m.sender, m.message) for m in messages] == [
            ("PayPal", "Hello world !"),
            ("Telegram", "Telegram code: 55120"),
        ]

    def test_collapses_message_whitespace(self) -> None:
        messages = extract_messages(_LABELED_HTML)
        assert messages[0].message == "Hello world !"

    def test_timestamps_from_added_cell(self) -> None:
        messages = extract_messages(_LABELED_HTML)
        assert messages[0].received_at == "2024-03-15T14:30:00.000Z"
        assert messages[1].received_at == "2024-03-16T09:01:02.000Z"

    def test_raw_html_is_the_row(self) -> None:
        messages = extract_messages(_LABELED_HTML)
        assert messages[0].raw_html.startswith("<tr>")
        assert 'data-label="From   :"' in messages[0].raw_html

    def test_rows_without_tbody_count(self) -> None:
        html = (
            "<table><tr>"
            '<td data-label="From   :">Steam</td>'
            '<td data-label="Message   :">Steam Guard code ABC12</td>'
            '<td data-label="Added   :">2024-01-02 03:04:05</td>'
            "</tr></table>"
        )
        soup = BeautifulSoup(html, "html.parser")
        messages = _from_labeled_rows(soup, html, DEFAULT_TEMPLATES)
        assert [(m.sender, m.message) for m in messages] == [("Steam", "Steam Guard code ABC12")]

    def test_row_with_empty_added_cell_does_not_qualify(self) -> None:
        html = (
            "<table><tbody><tr>"
            '<td data-label="From   :">Steam</td>'
            '<td data-label="Message   :">Steam Guard code ABC12</td>'
            '<td data-label="Added   :">  </td>'
            "</tr></tbody></table>"
        )
        soup = BeautifulSoup(html, "html.parser")
        assert _from_labeled_rows(soup, html, DEFAULT_TEMPLATES) == []

    def test_takes_precedence_over_generic_tables(self) -> None:
        soup = BeautifulSoup(_LABELED_HTML, "html.parser")
        strategy_one = _from_labeled_rows(soup, _LABELED_HTML, DEFAULT_TEMPLATES)
        strategy_two = _from_generic_tables(soup, _LABELED_HTML, DEFAULT_TEMPLATES)

        # Strategy 2 alone would keep the raw multi-line message text.
        assert strategy_two and strategy_two[0].message != "Hello world !"
        assert extract_messages(_LABELED_HTML) == strategy_one


# ---------------------------------------------------------------------------
# Strategy 2: generic tables
# ---------------------------------------------------------------------------

class TestGenericTables:
    def test_accumulates_across_tables(self, frozen_now) -> None:
        messages = extract_messages(_GENERIC_HTML)
        assert [(m.sender, m.message) for m in messages] == [
            ("Amazon", "Your OTP is 771204"),
            ("Uber", "Uber code 4412"),
            ("WhatsApp", "Your code 118 220"),
            ("Bolt", "Bolt code 9001"),
        ]

    def test_three_cells_use_third_as_time(self, frozen_now) -> None:
        messages = extract_messages(_GENERIC_HTML)
        assert messages[0].received_at == "2024-03-15T10:00:00.000Z"

    def test_two_cells_default_to_now(self, frozen_now) -> None:
        messages = extract_messages(_GENERIC_HTML)
        assert messages[1].received_at == _FIXED_NOW_ISO

    def test_unparseable_third_cell_defaults_to_now(self, frozen_now) -> None:
        messages = extract_messages(_GENERIC_HTML)
        assert messages[3].received_at == _FIXED_NOW_ISO

    def test_first_row_always_skipped(self) -> None:
        html = "<table><tr><td>Netflix</td><td>Code 1234</td></tr></table>"
        assert extract_messages(html) == []

    def test_single_cell_split_on_colon(self) -> None:
        html = "<table><tr><td>header</td></tr><tr><td>Lyft: Your code is 8812</td></tr></table>"
        messages = extract_messages(html)
        assert [(m.sender, m.message) for m in messages] == [("Lyft", "Your code is 8812")]


# ---------------------------------------------------------------------------
# Strategy 3: container scan
# ---------------------------------------------------------------------------

class TestContainers:
    def test_known_template_in_div(self, frozen_now) -> None:
        html = (
            "<html><body><div><span>comdirect</span>\n"
            "<p>Bitte nicht weitergeben - Ihre TAN lautet 482211</p>\n"
            "<p>vor 2 Minuten</p></div></body></html>"
        )
        messages = extract_messages(html)
        assert len(messages) == 1
        assert messages[0].sender == "comdirect"
        assert messages[0].message == "Bitte nicht weitergeben - Ihre TAN lautet 482211"
        assert messages[0].received_at == _FIXED_NOW_ISO
        assert messages[0].raw_html.startswith("<div>")

    def test_cut_at_pipe(self) -> None:
        html = "<section>comdirect Bitte nicht weitergeben: 99812 | Impressum</section>"
        messages = extract_messages(html)
        assert [m.message for m in messages] == ["Bitte nicht weitergeben: 99812"]

    def test_phrase_before_marker_is_ignored(self) -> None:
        html = "<div>Bitte nicht weitergeben - alt\ncomdirect</div>"
        assert extract_messages(html) == []

    def test_phrase_alone_is_long_enough(self) -> None:
        html = "<article>comdirect\nBitte nicht weitergeben</article>"
        messages = extract_messages(html)
        assert [m.message for m in messages] == ["Bitte nicht weitergeben"]

    def test_short_text_rejected(self) -> None:
        template = KnownTemplate(sender="ACME", marker="ACME", phrase="Code")
        html = "<div>ACME\nCode 12\n</div>"
        assert extract_messages(html, templates=(template,)) == []

    def test_custom_template(self) -> None:
        template = KnownTemplate(sender="ACME Bank", marker="ACME", phrase="Ihr Code lautet")
        html = "<div>ACME Online\nIhr Code lautet 123-456\nFooter</div>"
        messages = extract_messages(html, templates=(template,))
        assert [(m.sender, m.message) for m in messages] == [("ACME Bank", "Ihr Code lautet 123-456")]


# ---------------------------------------------------------------------------
# Strategy 4: text patterns
# ---------------------------------------------------------------------------

class TestTextPatterns:
    def test_from_message_pattern(self) -> None:
        html = "<html><body><p>From: Acme</p>\n<p>Message: Your code is 5521</p></body></html>"
        messages = extract_messages(html)
        assert len(messages) == 1
        assert messages[0].sender == "Acme"
        assert messages[0].message == "Your code is 5521"
        assert messages[0].raw_html.startswith("Pattern match: ")

    def test_from_message_pattern_on_bare_text(self) -> None:
        messages = extract_messages("From: Acme\nMessage: Your code is 5521")
        assert [(m.sender, m.message) for m in messages] == [("Acme", "Your code is 5521")]

    def test_from_message_pattern_is_case_insensitive_and_repeats(self) -> None:
        text = "from: Alpha\nmessage: first code 1\nFROM: Beta\nMESSAGE: second code 2"
        messages = extract_messages(text)
        assert [(m.sender, m.message) for m in messages] == [
            ("Alpha", "first code 1"),
            ("Beta", "second code 2"),
        ]

    def test_from_message_pattern_filters_headers(self) -> None:
        assert extract_messages("From: Sender\nMessage: Content") == []

    def test_falls_back_to_raw_html_without_text_nodes(self) -> None:
        html = "<html><body><!-- From: Acme\nMessage: Your code is 5521\n--></body></html>"
        messages = extract_messages(html)
        assert [(m.sender, m.message) for m in messages] == [("Acme", "Your code is 5521")]

    def test_known_literal_and_flexible_match_are_unioned(self) -> None:
        html = f"<html><body><p>comdirect</p><p>{_COMDIRECT_LITERAL}</p></body></html>"
        messages = extract_messages(html)
        assert [m.raw_html for m in messages][0] == "Direct text extraction"
        assert messages[0].message == _COMDIRECT_LITERAL
        assert messages[1].raw_html.startswith("Flexible pattern match: ")
        assert messages[1].message == _COMDIRECT_LITERAL
        assert all(m.sender == "comdirect" for m in messages)
        assert len(messages) == 2

    def test_flexible_match_stops_at_pipe(self) -> None:
        html = "<p>COMDIRECT Bank</p><p>bitte nicht weitergeben: 4455 | more</p>"
        messages = extract_messages(html)
        assert [m.message for m in messages] == ["bitte nicht weitergeben: 4455"]


# ---------------------------------------------------------------------------
# Whole-extractor behaviour
# ---------------------------------------------------------------------------

class TestExtractMessages:
    def test_nothing_found_returns_empty_list(self) -> None:
        assert extract_messages("<html><body><p>No messages yet.</p></body></html>") == []

    def test_empty_document(self) -> None:
        assert extract_messages("") == []

    def test_idempotent(self) -> None:
        assert extract_messages(_LABELED_HTML) == extract_messages(_LABELED_HTML)

    def test_idempotent_with_defaulted_timestamps(self, frozen_now) -> None:
        assert extract_messages(_GENERIC_HTML) == extract_messages(_GENERIC_HTML)


# ---------------------------------------------------------------------------
# Template loading
# ---------------------------------------------------------------------------

class TestTemplates:
    def test_defaults_without_file(self) -> None:
        with patch("smsdesk.scraper.templates.settings.templates_file", None):
            assert tuple(get_templates()) == DEFAULT_TEMPLATES

    def test_file_templates_are_appended(self, tmp_path) -> None:
        path = tmp_path / "templates.json"
        path.write_text(json.dumps([
            {"sender": "ACME", "marker": "ACME", "phrase": "Your ACME code", "literals": ["x"]},
        ]), encoding="utf-8")
        templates = get_templates(path)
        assert templates[: len(DEFAULT_TEMPLATES)] == DEFAULT_TEMPLATES
        assert templates[-1] == KnownTemplate("ACME", "ACME", "Your ACME code", ("x",))

    def test_malformed_file_raises(self, tmp_path) -> None:
        path = tmp_path / "templates.json"
        path.write_text(json.dumps([{"sender": "ACME"}]), encoding="utf-8")
        with pytest.raises(ValueError):
            load_templates(path)

    def test_non_list_file_raises(self, tmp_path) -> None:
        path = tmp_path / "templates.json"
        path.write_text(json.dumps({"sender": "ACME"}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_templates(path)
