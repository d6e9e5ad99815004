"""
Exception taxonomy for the notifier.

Per-pair errors (EvaluationError, UnsupportedChannelError, TransportError)
are recovered into MatchResults. Only load errors end a run.
"""
from typing import Optional


class NotifierError(Exception):
    """Base class for all notifier errors."""
    pass


class ParseError(NotifierError):
    """Raised when a condition string cannot be compiled."""

    def __init__(self, message: str, condition: str = '', position: Optional[int] = None):
        self.condition = condition
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        if condition:
            message = f"{message} in condition {condition!r}"
        super().__init__(message)


class EvaluationError(NotifierError):
    """Raised when a compiled condition cannot be evaluated against a row."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class UnsupportedChannelError(NotifierError):
    """Raised when no channel is registered under the requested name."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Unsupported notification channel: {channel!r}")


class TransportError(NotifierError):
    """Raised when a channel fails to deliver a message."""

    def __init__(self, channel: str, message: str, retry_count: int = 0):
        self.channel = channel
        self.reason = message
        self.retry_count = retry_count
        super().__init__(f"{channel}: {message}")


class ConfigLoadError(NotifierError):
    """Raised when the rule configuration cannot be loaded."""
    pass


class DataLoadError(NotifierError):
    """Raised when the data file cannot be loaded."""
    pass
