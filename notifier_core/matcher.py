"""
Rule Matcher - evaluates every rule against every row
======================================================
Order is deterministic: rules in configuration order, and within each rule
rows in file order. An EvaluationError on one pair is recorded on that match
and the scan continues.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from notifier_core.errors import EvaluationError, ParseError
from notifier_core.expression import Expression, evaluate
from notifier_core.models import Row, Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    """A (rule, row) pair whose condition held, or could not be evaluated"""
    rule_index: int
    row_index: int
    rule: Rule
    row: Row
    error: Optional[EvaluationError] = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


class RuleMatcher:
    """
    Matches rules against rows.

    Rules are compiled once up front; a rule whose condition does not parse is
    excluded from matching and reported in `excluded_rules`. With
    max_workers > 1 rules are matched in parallel; the compiled trees are
    read-only so they are shared safely, and results are merged back in rule
    order.
    """

    def __init__(self, max_workers: int = 1):
        self.max_workers = max(1, int(max_workers))
        self.excluded_rules: Dict[int, str] = {}

    def compile_rules(self, rules: Sequence[Rule]) -> List[Tuple[int, Rule, Expression]]:
        """Compile each enabled rule, excluding (and logging) those that fail"""
        compiled = []
        self.excluded_rules = {}

        for rule_index, rule in enumerate(rules):
            if not rule.enabled:
                logger.info(f"Rule {rule.id} disabled, skipping")
                continue
            try:
                compiled.append((rule_index, rule, rule.compile()))
            except ParseError as e:
                logger.error(f"Rule {rule.id} excluded: {e}")
                self.excluded_rules[rule.id] = str(e)

        return compiled

    def match(self, rules: Sequence[Rule], rows: Sequence[Row]) -> List[Match]:
        """
        Evaluate all rules against all rows.

        Args:
            rules: Rules in configuration order
            rows: Rows in file order

        Returns:
            Matches in (rule, row) order; pairs that raised EvaluationError
            are included with `error` set
        """
        compiled = self.compile_rules(rules)

        def _scan(entry: Tuple[int, Rule, Expression]) -> List[Match]:
            return self._match_rule(entry, rows)

        if self.max_workers == 1 or len(compiled) <= 1:
            per_rule = [_scan(entry) for entry in compiled]
        else:
            # map() yields in submission order regardless of completion order
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                per_rule = list(executor.map(_scan, compiled))

        matches = [match for rule_matches in per_rule for match in rule_matches]
        logger.info(
            f"Matched {len(compiled)} rules against {len(rows)} rows: "
            f"{len(matches)} candidates"
        )
        return matches

    def _match_rule(self, entry: Tuple[int, Rule, Expression], rows: Sequence[Row]) -> List[Match]:
        rule_index, rule, expr = entry
        matches: List[Match] = []

        for position, row in enumerate(rows):
            row_index = getattr(row, 'index', position)
            try:
                if evaluate(expr, row):
                    matches.append(Match(rule_index, row_index, rule, row))
            except EvaluationError as e:
                logger.warning(f"Rule {rule.id} skipped for row {row_index}: {e}")
                matches.append(Match(rule_index, row_index, rule, row, error=e))

        return matches
