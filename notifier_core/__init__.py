"""
Notifier Core - rule matching and notification dispatch for tabular data
"""
from notifier_core.errors import (
    NotifierError,
    ParseError,
    EvaluationError,
    UnsupportedChannelError,
    TransportError,
    ConfigLoadError,
    DataLoadError,
)
from notifier_core.models import Rule, Row, Outcome, MatchResult, RunSummary
from notifier_core.expression import compile_condition, evaluate

__all__ = [
    'NotifierError',
    'ParseError',
    'EvaluationError',
    'UnsupportedChannelError',
    'TransportError',
    'ConfigLoadError',
    'DataLoadError',
    'Rule',
    'Row',
    'Outcome',
    'MatchResult',
    'RunSummary',
    'compile_condition',
    'evaluate',
]
