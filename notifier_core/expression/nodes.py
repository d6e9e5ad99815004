"""
Expression tree nodes.

Nodes are frozen dataclasses: a compiled tree is read-only, can be shared
between worker threads, and two compilations of the same text compare equal.
"""
from dataclasses import dataclass
from typing import Union

from notifier_core.values import DynamicValue, String


@dataclass(frozen=True)
class FieldRef:
    """Reference to a row field, resolved at evaluation time."""
    name: str


@dataclass(frozen=True)
class Literal:
    """Constant operand (number, quoted string, or true/false)."""
    value: DynamicValue


Operand = Union[FieldRef, Literal]


@dataclass(frozen=True)
class Comparison:
    op: str
    left: Operand
    right: Operand


@dataclass(frozen=True)
class And:
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class Or:
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class Not:
    operand: 'Expression'


Expression = Union[FieldRef, Literal, Comparison, And, Or, Not]


def to_source(node: Expression) -> str:
    """Render a tree back to a normalized, fully parenthesized condition."""
    if isinstance(node, FieldRef):
        return node.name
    if isinstance(node, Literal):
        value = node.value
        if isinstance(value, String):
            escaped = value.value.replace('\\', '\\\\').replace('"', '\\"')
            return f'"{escaped}"'
        return str(value)
    if isinstance(node, Comparison):
        return f"{to_source(node.left)} {node.op} {to_source(node.right)}"
    if isinstance(node, And):
        return f"({to_source(node.left)} AND {to_source(node.right)})"
    if isinstance(node, Or):
        return f"({to_source(node.left)} OR {to_source(node.right)})"
    if isinstance(node, Not):
        return f"NOT {to_source(node.operand)}"
    raise TypeError(f"Unknown expression node: {type(node).__name__}")
