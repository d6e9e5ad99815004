"""
Expression evaluator.

Evaluation is a pure function of (expression, row): nothing is cached on
either object, so compiled trees can be shared across worker threads.
"""
from typing import Mapping, Optional

from notifier_core.errors import EvaluationError
from notifier_core.expression.nodes import (
    And,
    Comparison,
    Expression,
    FieldRef,
    Literal,
    Not,
    Operand,
    Or,
)
from notifier_core.values import DynamicValue, Missing, compare, from_raw, is_truthy


def _resolve(operand: Operand, row: Mapping[str, str]) -> DynamicValue:
    if isinstance(operand, Literal):
        return operand.value
    raw: Optional[str] = row.get(operand.name)
    value = from_raw(raw, operand.name)
    if isinstance(value, Missing):
        raise EvaluationError(
            f"Field '{operand.name}' is not present in row",
            field=operand.name
        )
    return value


def evaluate(expr: Expression, row: Mapping[str, str]) -> bool:
    """
    Evaluate a compiled expression against a row.

    AND/OR short-circuit left to right, so an error in a branch that is
    never reached does not propagate.

    Raises:
        EvaluationError: when a referenced field is absent or a relational
            comparison has a non-numeric operand
    """
    if isinstance(expr, Comparison):
        return compare(expr.op, _resolve(expr.left, row), _resolve(expr.right, row))
    elif isinstance(expr, And):
        return evaluate(expr.left, row) and evaluate(expr.right, row)
    elif isinstance(expr, Or):
        return evaluate(expr.left, row) or evaluate(expr.right, row)
    elif isinstance(expr, Not):
        return not evaluate(expr.operand, row)
    elif isinstance(expr, (FieldRef, Literal)):
        return is_truthy(_resolve(expr, row))
    raise EvaluationError(f"Unknown expression node: {type(expr).__name__}")
