"""
Data structures for rules, rows and match outcomes
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pydantic import BaseModel, Field, PrivateAttr

from notifier_core.errors import DataLoadError
from notifier_core.expression import Expression, compile_condition
from notifier_core.values import DynamicValue, from_raw


class Rule(BaseModel):
    """Configured alert rule: when `condition` holds for a row, notify `channel`"""
    id: int = Field(..., strict=True)
    channel: str = Field(..., strict=True, min_length=1)
    condition: str = Field(..., strict=True)
    message: str = Field(..., strict=True)
    enabled: bool = True

    _compiled: Optional[Expression] = PrivateAttr(default=None)

    class Config:
        frozen = True
        extra = "ignore"

    def compile(self) -> Expression:
        """
        Compiled condition, parsed on first use and cached on the rule.

        Raises:
            ParseError: if the condition is malformed
        """
        if self._compiled is None:
            self._compiled = compile_condition(self.condition)
        return self._compiled


class Row(Mapping):
    """
    Immutable view over one line of tabular data.

    Values stay raw strings; `value()` wraps them as DynamicValues for
    comparisons.
    """

    __slots__ = ('_fields', '_index', '_aliases')

    def __init__(self, fields: Mapping[str, str], index: int = 0, aliases: Optional[Mapping[str, str]] = None):
        self._fields = dict(fields)
        self._index = index
        # Positional names (column0, ...) for header-named fields
        self._aliases = {
            alias: name for alias, name in (aliases or {}).items()
            if alias not in self._fields
        }

    @classmethod
    def from_values(
        cls,
        values: Sequence[str],
        index: int = 0,
        header: Optional[Sequence[str]] = None
    ) -> 'Row':
        """
        Name values by header, or column0, column1, ... by position.

        Header-named fields stay reachable by their positional name too.

        Raises:
            DataLoadError: if two values end up under the same name
        """
        header = list(header or [])
        fields = {}
        aliases = {}
        for position, value in enumerate(values):
            positional = f"column{position}"
            if position < len(header) and header[position]:
                name = header[position]
                aliases[positional] = name
            else:
                name = positional
            if name in fields:
                raise DataLoadError(
                    f"Row {index}: field name '{name}' at column {position} "
                    f"collides with an earlier column"
                )
            fields[name] = value
        return cls(fields, index=index, aliases=aliases)

    @property
    def index(self) -> int:
        return self._index

    def value(self, name: str) -> DynamicValue:
        return from_raw(self.get(name), name)

    def __getitem__(self, name: str) -> str:
        if name in self._fields:
            return self._fields[name]
        return self._fields[self._aliases[name]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self):
        return f"Row(index={self._index}, fields={self._fields!r})"


class Outcome(str, Enum):
    """Outcome of one matched (rule, row) pair"""
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class MatchResult:
    """Result of evaluating one rule against one row and dispatching it"""
    rule_id: int
    row_index: int
    outcome: Outcome
    detail: str = ''
    channel: Optional[str] = None
    rendered_message: Optional[str] = None
    retry_count: int = 0
    error_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rule_id': self.rule_id,
            'row_index': self.row_index,
            'outcome': self.outcome.value,
            'detail': self.detail,
            'channel': self.channel,
            'rendered_message': self.rendered_message,
            'retry_count': self.retry_count,
            'error_type': self.error_type,
        }


@dataclass
class RunSummary:
    """Per-run outcome counts plus the ordered list of results"""
    results: List[MatchResult] = field(default_factory=list)
    excluded_rules: Dict[int, str] = field(default_factory=dict)
    total_rules: int = 0
    total_rows: int = 0
    duration_seconds: float = 0.0

    def count(self, outcome: Outcome) -> int:
        return sum(1 for result in self.results if result.outcome == outcome)

    @property
    def sent(self) -> int:
        return self.count(Outcome.SENT)

    @property
    def failed(self) -> int:
        return self.count(Outcome.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(Outcome.SKIPPED)

    @property
    def exit_code(self) -> int:
        # Per-pair failures are reported, not fatal
        return 0

    def by_rule(self) -> Dict[int, Dict[str, int]]:
        """Outcome counts keyed by rule id, in first-seen order"""
        breakdown: Dict[int, Dict[str, int]] = {}
        for result in self.results:
            counts = breakdown.setdefault(
                result.rule_id,
                {outcome.value: 0 for outcome in Outcome}
            )
            counts[result.outcome.value] += 1
        return breakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_rules': self.total_rules,
            'total_rows': self.total_rows,
            'total_matches': len(self.results),
            'sent': self.sent,
            'failed': self.failed,
            'skipped': self.skipped,
            'excluded_rules': {str(k): v for k, v in self.excluded_rules.items()},
            'by_rule': {str(k): v for k, v in self.by_rule().items()},
            'duration_seconds': self.duration_seconds,
            'results': [result.to_dict() for result in self.results],
        }
