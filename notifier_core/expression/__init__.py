"""
Condition expressions: parsing, tree nodes and evaluation
"""
from .nodes import And, Comparison, Expression, FieldRef, Literal, Not, Or, to_source
from .parser import compile_condition, tokenize
from .evaluator import evaluate

__all__ = [
    'And',
    'Comparison',
    'Expression',
    'FieldRef',
    'Literal',
    'Not',
    'Or',
    'to_source',
    'compile_condition',
    'tokenize',
    'evaluate',
]
