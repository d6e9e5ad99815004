"""
Notification Dispatcher - Routes matched rules to their channels
================================================================
Each matched (rule, row) pair produces exactly one MatchResult and at most
one channel send. The dispatcher does not retry; retries belong to channels.

Features:
- Channel lookup through the ChannelRegistry
- Bounded pool of concurrent outbound sends
- Hard timeout per channel call
- Deterministic result order under parallel dispatch
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Dict, List, Optional, Sequence

from notifier_core.channels import ChannelRegistry, DispatchResult
from notifier_core.errors import TransportError, UnsupportedChannelError
from notifier_core.matcher import Match, RuleMatcher
from notifier_core.models import MatchResult, Outcome, Row, Rule, RunSummary
from notifier_core.rendering import render_message

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Dispatches matches to channels and collects outcomes

    Two pools are used: `max_workers` threads render and dispatch matches,
    and `max_concurrent_sends` threads perform the outbound calls. The send
    pool bounds load on rate-limited channel APIs, and waiting on it with a
    timeout keeps a hung call from stalling the run.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        max_workers: int = 4,
        max_concurrent_sends: int = 4,
        call_timeout: float = 10.0
    ):
        """
        Initialize dispatcher

        Args:
            registry: Channel registry used to resolve rule.channel
            max_workers: Parallel dispatch workers
            max_concurrent_sends: Maximum in-flight channel calls
            call_timeout: Seconds to wait for a single channel call
        """
        self.registry = registry
        self.max_workers = max(1, int(max_workers))
        self.max_concurrent_sends = max(1, int(max_concurrent_sends))
        self.call_timeout = call_timeout
        self._send_pool: Optional[ThreadPoolExecutor] = None
        self._pool_lock = threading.Lock()
        # Held from submit until the call finishes; the timeout clock starts
        # only once a send thread is free
        self._send_slots = threading.BoundedSemaphore(self.max_concurrent_sends)

        logger.info(
            f"Initialized dispatcher with {len(registry)} channels "
            f"(workers={self.max_workers}, sends={self.max_concurrent_sends}, timeout={call_timeout}s)"
        )

    def _get_send_pool(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._send_pool is None:
                self._send_pool = ThreadPoolExecutor(
                    max_workers=self.max_concurrent_sends,
                    thread_name_prefix="notifier-send"
                )
            return self._send_pool

    def close(self) -> None:
        """Release the send pool without waiting on calls that timed out"""
        with self._pool_lock:
            if self._send_pool is not None:
                self._send_pool.shutdown(wait=False)
                self._send_pool = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def dispatch(self, rule: Rule, row: Row) -> MatchResult:
        """
        Send one matched (rule, row) pair to the rule's channel

        Args:
            rule: Rule whose condition matched
            row: Row it matched against

        Returns:
            MatchResult with outcome SENT or FAILED
        """
        row_index = row.index
        rendered = render_message(rule.message, row, row_index=row_index)
        result = MatchResult(
            rule_id=rule.id,
            row_index=row_index,
            outcome=Outcome.FAILED,
            channel=rule.channel,
            rendered_message=rendered.text
        )

        try:
            channel = self.registry.get(rule.channel)
        except UnsupportedChannelError as e:
            logger.warning(f"Rule {rule.id} row {row_index}: {e}")
            result.detail = str(e)
            result.error_type = type(e).__name__
            return result

        metadata = {
            'rule_id': rule.id,
            'row_index': row_index,
            'channel': rule.channel,
            'row': dict(row),
        }
        if rendered.missing_fields:
            metadata['missing_fields'] = list(rendered.missing_fields)

        try:
            dispatch_result = self._call_with_timeout(channel, rendered.text, metadata)
        except FutureTimeoutError:
            error = TransportError(rule.channel, f"call timed out after {self.call_timeout}s")
            logger.warning(f"Rule {rule.id} row {row_index}: {error}")
            result.detail = str(error)
            result.error_type = type(error).__name__
            return result
        except TransportError as e:
            logger.warning(f"Rule {rule.id} row {row_index}: {e}")
            result.detail = str(e)
            result.error_type = type(e).__name__
            return result
        except Exception as e:
            logger.error(f"Rule {rule.id} row {row_index}: channel raised {e}", exc_info=True)
            result.detail = str(e)
            result.error_type = type(e).__name__
            return result

        result.retry_count = dispatch_result.retry_count
        if dispatch_result.success:
            result.outcome = Outcome.SENT
            result.detail = f"sent via {dispatch_result.channel}"
            logger.info(f"Rule {rule.id} row {row_index}: sent via {rule.channel}")
        else:
            result.detail = dispatch_result.error or 'send failed'
            result.error_type = TransportError.__name__
            logger.warning(f"Rule {rule.id} row {row_index}: send failed: {result.detail}")

        return result

    def _call_with_timeout(self, channel, message: str, metadata: Dict[str, Any]) -> DispatchResult:
        # Slots stay held by calls that already timed out, so the wait is bounded too
        if not self._send_slots.acquire(timeout=self.call_timeout):
            raise TransportError(
                metadata.get('channel', channel.name),
                f"no send slot free within {self.call_timeout}s"
            )
        try:
            future = self._get_send_pool().submit(channel.send, message, metadata)
        except Exception:
            self._send_slots.release()
            raise
        future.add_done_callback(lambda _: self._send_slots.release())
        return future.result(timeout=self.call_timeout)

    def dispatch_matches(self, matches: Sequence[Match]) -> List[MatchResult]:
        """
        Dispatch matches, returning results in match order

        Skipped matches (evaluation errors) become SKIPPED results without a
        send. Each worker writes only its own slot, so the result list needs
        no lock and keeps the matcher's order.

        Args:
            matches: Matches from RuleMatcher.match

        Returns:
            One MatchResult per match
        """
        slots: List[Optional[MatchResult]] = [None] * len(matches)

        def _fill(slot: int) -> None:
            match = matches[slot]
            if match.skipped:
                slots[slot] = MatchResult(
                    rule_id=match.rule.id,
                    row_index=match.row_index,
                    outcome=Outcome.SKIPPED,
                    detail=str(match.error),
                    channel=match.rule.channel,
                    error_type=type(match.error).__name__
                )
            else:
                slots[slot] = self.dispatch(match.rule, match.row)

        if self.max_workers == 1 or len(matches) <= 1:
            for slot in range(len(matches)):
                _fill(slot)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='notifier-dispatch') as executor:
                # list() re-raises anything unexpected from a worker
                list(executor.map(_fill, range(len(matches))))

        return [result for result in slots if result is not None]

    def run(
        self,
        rules: Sequence[Rule],
        rows: Sequence[Row],
        matcher: Optional[RuleMatcher] = None
    ) -> RunSummary:
        """
        Match all rules against all rows and dispatch every match

        Args:
            rules: Rules in configuration order
            rows: Rows in file order
            matcher: Optional pre-configured matcher

        Returns:
            RunSummary with ordered results and outcome counts
        """
        matcher = matcher or RuleMatcher(max_workers=self.max_workers)
        start_time = time.time()

        logger.info(f"Starting run: {len(rules)} rules x {len(rows)} rows")

        matches = matcher.match(rules, rows)
        results = self.dispatch_matches(matches)

        summary = RunSummary(
            results=results,
            excluded_rules=dict(matcher.excluded_rules),
            total_rules=len(rules),
            total_rows=len(rows),
            duration_seconds=time.time() - start_time
        )

        logger.info(
            f"Run complete: {summary.sent} sent, {summary.failed} failed, "
            f"{summary.skipped} skipped in {summary.duration_seconds:.2f}s"
        )
        return summary
