"""
Tests for message template rendering
"""
import logging

from notifier_core.models import Row
from notifier_core.rendering import render_message


def test_positional_placeholder():
    row = Row.from_values(['20', '55'])
    assert render_message("Low humidity: {column1}", row).text == "Low humidity: 55"


def test_named_placeholders():
    row = Row({'city': 'Oslo', 'temperature': '31'})
    rendered = render_message("{city} is at {temperature}C", row)
    assert rendered.text == "Oslo is at 31C"
    assert rendered.missing_fields == []


def test_unresolved_placeholder_renders_empty_and_warns(caplog):
    row = Row({'a': '1'})
    with caplog.at_level(logging.WARNING, logger='notifier_core.rendering'):
        rendered = render_message("value={a} other={b}", row)

    assert rendered.text == "value=1 other="
    assert rendered.missing_fields == ['b']
    assert 'Unresolved placeholders' in caplog.text


def test_escaped_braces():
    row = Row({'a': '1'})
    assert render_message("{{literal}} {a}", row).text == "{literal} 1"


def test_row_index_placeholder():
    row = Row({'a': '1'}, index=7)
    assert render_message("row {row_index}", row, row_index=row.index).text == "row 7"
