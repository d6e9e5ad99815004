"""
Dynamic values for loosely typed row data.

Row cells arrive as raw strings. Conditions compare them against literals,
so every operand is wrapped in a DynamicValue (Number | String | Missing)
and the coercion rules live here, in one place.
"""
import math
from dataclasses import dataclass
from typing import Optional, Union

from notifier_core.errors import EvaluationError

RELATIONAL_OPERATORS = ('<', '<=', '>', '>=')
EQUALITY_OPERATORS = ('==', '!=')
COMPARISON_OPERATORS = RELATIONAL_OPERATORS + EQUALITY_OPERATORS

TRUTHY_STRINGS = {'true', 'yes', 'y', 'on'}
BOOLEAN_STRINGS = {'true', 'false'}


@dataclass(frozen=True)
class Number:
    """Numeric value (from a numeric literal)."""
    value: float

    def __str__(self) -> str:
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)


@dataclass(frozen=True)
class String:
    """String value; row cells are always Strings until coerced."""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Missing:
    """Value of a field that the row does not have."""
    name: str = ''

    def __str__(self) -> str:
        return ''


DynamicValue = Union[Number, String, Missing]


def from_raw(raw: Optional[str], name: str = '') -> DynamicValue:
    """Wrap a raw cell value."""
    if raw is None:
        return Missing(name)
    return String(raw)


def as_number(value: DynamicValue) -> Optional[float]:
    """
    Numeric view of a value, or None when it does not parse.

    'nan' and 'inf' spellings are rejected so that text such as "Infinity"
    in a data file stays a string.
    """
    if isinstance(value, Number):
        return value.value
    if isinstance(value, String):
        text = value.value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isnan(number) or math.isinf(number):
            return None
        return number
    return None


def is_truthy(value: DynamicValue) -> bool:
    """Truthiness of a bare field reference used as a condition."""
    if isinstance(value, Missing):
        raise EvaluationError(f"Field '{value.name}' is not present in row", field=value.name)
    number = as_number(value)
    if number is not None:
        return number != 0
    return str(value).strip().lower() in TRUTHY_STRINGS


def _string_operand(value: DynamicValue) -> str:
    text = str(value)
    # true/false compare case-insensitively so TRUE == true
    if text.lower() in BOOLEAN_STRINGS:
        return text.lower()
    return text


def compare(op: str, left: DynamicValue, right: DynamicValue) -> bool:
    """
    Compare two dynamic values.

    Both sides are parsed as numbers first. If either side is not numeric,
    equality operators fall back to string comparison, while relational
    operators raise EvaluationError instead of returning False.
    """
    for operand in (left, right):
        if isinstance(operand, Missing):
            raise EvaluationError(
                f"Field '{operand.name}' is not present in row",
                field=operand.name
            )

    if op not in COMPARISON_OPERATORS:
        raise EvaluationError(f"Unknown comparison operator: {op}")

    left_num = as_number(left)
    right_num = as_number(right)

    if left_num is not None and right_num is not None:
        return _apply(op, left_num, right_num)

    if op in EQUALITY_OPERATORS:
        return _apply(op, _string_operand(left), _string_operand(right))

    raise EvaluationError(
        f"Cannot compare {str(left)!r} {op} {str(right)!r}: operands are not numeric"
    )


def _apply(op: str, left, right) -> bool:
    if op == '<':
        return left < right
    elif op == '<=':
        return left <= right
    elif op == '>':
        return left > right
    elif op == '>=':
        return left >= right
    elif op == '==':
        return left == right
    return left != right
