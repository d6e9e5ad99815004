"""
Base channel interface for dispatching notifications
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Tuple, Type
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import time

from notifier_core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Result of a dispatch attempt"""
    success: bool
    channel: str
    rule_id: Optional[int]
    timestamp: datetime
    error: Optional[str] = None
    retry_count: int = 0
    response: Optional[Dict[str, Any]] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Channel(ABC):
    """
    Base class for all notification channels

    Subclasses implement `format_message` and `_transmit`. `send` wraps them
    with dry-run handling, config validation and the channel's own retry
    policy; the dispatcher itself never retries.
    """

    name = 'channel'

    # Exceptions from the transport that count as a failed attempt
    transport_errors: Tuple[Type[BaseException], ...] = (TransportError,)

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize channel with configuration

        Args:
            config: Channel-specific configuration
        """
        self.config = config
        self.enabled = config.get('enabled', True)
        self.dry_run = config.get('dry_run', False)
        self.max_retries = int(config.get('max_retries', 0))
        self.retry_delays = config.get('retry_delays', [1, 2, 4])  # seconds
        self.timeout = float(config.get('timeout', 10))
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def format_message(self, message: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Format a rendered message into the channel-specific payload

        Args:
            message: Rendered notification text
            metadata: Destination metadata (rule id, row index, row fields)

        Returns:
            Formatted payload dict
        """
        pass

    @abstractmethod
    def _transmit(self, payload: Dict[str, Any], metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deliver a payload over the channel's transport

        Returns:
            Transport response details

        Raises:
            One of `transport_errors` on failure
        """
        pass

    def validate_config(self) -> bool:
        """
        Validate channel configuration

        Returns:
            True if config is valid
        """
        return self.enabled

    def send(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> DispatchResult:
        """
        Send a rendered message through this channel

        Args:
            message: Rendered notification text
            metadata: Destination metadata

        Returns:
            DispatchResult with success status and details
        """
        metadata = metadata or {}
        rule_id = metadata.get('rule_id')
        start_time = _utcnow()

        # Dry run mode
        if self.dry_run:
            self.logger.info(f"[DRY RUN] Would send to {self.name}: {message}")
            return DispatchResult(
                success=True,
                channel=self.name,
                rule_id=rule_id,
                timestamp=start_time,
                response={'dry_run': True}
            )

        # Validate config
        if not self.validate_config():
            return DispatchResult(
                success=False,
                channel=self.name,
                rule_id=rule_id,
                timestamp=start_time,
                error=f"{self.name} not configured correctly"
            )

        payload = self.format_message(message, metadata)
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self._transmit(payload, metadata)
            except self.transport_errors as e:
                last_error = e
                self.logger.warning(
                    f"Send failed on attempt {attempt + 1}/{self.max_retries + 1}: {e}"
                )
                if attempt < self.max_retries and self.retry_delays:
                    delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                    time.sleep(delay)
                continue

            if attempt > 0:
                self.logger.info(f"Retry succeeded on attempt {attempt + 1}")
            return DispatchResult(
                success=True,
                channel=self.name,
                rule_id=rule_id,
                timestamp=_utcnow(),
                retry_count=attempt,
                response=response
            )

        reason = last_error.reason if isinstance(last_error, TransportError) else str(last_error)
        error = TransportError(self.name, reason, retry_count=self.max_retries)
        self.logger.error(f"Failed to send to {self.name}: {error}")
        return DispatchResult(
            success=False,
            channel=self.name,
            rule_id=rule_id,
            timestamp=_utcnow(),
            error=str(error),
            retry_count=self.max_retries
        )

    def __repr__(self):
        return f"{self.__class__.__name__}(enabled={self.enabled})"
