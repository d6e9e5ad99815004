"""
Tests for expression evaluation against rows
"""
import pytest

from notifier_core.errors import EvaluationError
from notifier_core.expression import compile_condition, evaluate
from notifier_core.models import Row


def _row(**fields):
    return Row(fields)


class TestComparisonEvaluation:

    def test_numeric_match(self):
        assert evaluate(compile_condition("temperature > 30"), _row(temperature='35')) is True

    def test_numeric_no_match(self):
        assert evaluate(compile_condition("temperature > 30"), _row(temperature='25')) is False

    def test_non_numeric_relational_raises(self):
        with pytest.raises(EvaluationError):
            evaluate(compile_condition("temperature > 30"), _row(temperature='cold'))

    def test_missing_field_raises(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate(compile_condition("pressure > 1"), _row(temperature='35'))
        assert exc_info.value.field == 'pressure'

    def test_string_equality(self):
        expr = compile_condition("status == 'alarm'")
        assert evaluate(expr, _row(status='alarm')) is True
        assert evaluate(expr, _row(status='ok')) is False

    def test_field_to_field(self):
        assert evaluate(compile_condition("high > low"), _row(high='10', low='2')) is True

    def test_positional_columns(self):
        row = Row.from_values(['20', '55'])
        assert evaluate(compile_condition("column1 < 60"), row) is True


class TestBooleanEvaluation:

    def test_and(self):
        expr = compile_condition("a > 1 AND b > 1")
        assert evaluate(expr, _row(a='2', b='2')) is True
        assert evaluate(expr, _row(a='2', b='0')) is False

    def test_or(self):
        expr = compile_condition("a > 1 OR b > 1")
        assert evaluate(expr, _row(a='0', b='2')) is True
        assert evaluate(expr, _row(a='0', b='0')) is False

    def test_not(self):
        assert evaluate(compile_condition("NOT a > 1"), _row(a='0')) is True

    def test_precedence(self):
        # true OR (false AND <error>) short-circuits before the error
        expr = compile_condition("a > 1 OR b > 1 AND c > 1")
        assert evaluate(expr, _row(a='2', b='0')) is True

    def test_bare_field_truthiness(self):
        expr = compile_condition("active AND count > 0")
        assert evaluate(expr, _row(active='true', count='3')) is True
        assert evaluate(expr, _row(active='0', count='3')) is False


class TestShortCircuit:
    """Errors in branches that are never evaluated must not propagate"""

    def test_or_skips_unresolved_right_operand(self):
        expr = compile_condition("a > 1 OR undefined_field > 1")
        assert evaluate(expr, _row(a='2')) is True

    def test_and_skips_unresolved_right_operand(self):
        expr = compile_condition("a > 1 AND undefined_field > 1")
        assert evaluate(expr, _row(a='0')) is False

    def test_or_evaluates_right_when_needed(self):
        expr = compile_condition("a > 1 OR undefined_field > 1")
        with pytest.raises(EvaluationError):
            evaluate(expr, _row(a='0'))


def test_evaluation_does_not_mutate_row():
    row = _row(temperature='35')
    before = dict(row)
    evaluate(compile_condition("temperature > 30 AND temperature < 40"), row)
    assert dict(row) == before
