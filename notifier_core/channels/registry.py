"""
Channel registry - maps channel names to channel implementations

Unknown names are a dispatch-time error, so a rule file may reference
channels that are disabled for a given run.
"""
import logging
from typing import Any, Dict, List, Optional, Type

from notifier_core.errors import UnsupportedChannelError

from .base import Channel
from .email import EmailChannel
from .slack import SlackChannel
from .webhook import WebhookChannel

logger = logging.getLogger(__name__)

BUILTIN_CHANNELS: Dict[str, Type[Channel]] = {
    'email': EmailChannel,
    'slack': SlackChannel,
    'webhook': WebhookChannel,
}


class ChannelRegistry:
    """Name -> Channel lookup, populated once at startup"""

    def __init__(self, channels: Optional[Dict[str, Channel]] = None):
        self._channels: Dict[str, Channel] = {}
        for name, channel in (channels or {}).items():
            self.register(name, channel)

    @classmethod
    def from_config(cls, channel_configs: Dict[str, Dict[str, Any]], dry_run: bool = False) -> 'ChannelRegistry':
        """
        Build a registry of the built-in channels that are enabled in config

        Args:
            channel_configs: Per-channel settings keyed by channel name
            dry_run: Force dry-run on every channel

        Returns:
            ChannelRegistry
        """
        registry = cls()

        for name, config in channel_configs.items():
            channel_cls = BUILTIN_CHANNELS.get(name.lower())
            if channel_cls is None:
                logger.warning(f"No built-in channel named '{name}', ignoring its config")
                continue
            if not config.get('enabled', False):
                logger.info(f"Channel '{name}' disabled")
                continue

            channel_config = dict(config)
            if dry_run:
                channel_config['dry_run'] = True
            registry.register(name, channel_cls(channel_config))

        logger.info(f"Initialized registry with channels: {registry.names()} (dry_run={dry_run})")
        return registry

    def register(self, name: str, channel: Channel) -> None:
        """
        Register a notification channel

        Args:
            name: Channel name as referenced by rules (case-insensitive)
            channel: Channel instance with send()
        """
        self._channels[name.lower()] = channel
        logger.debug(f"Registered channel: {name}")

    def get(self, name: str) -> Channel:
        """
        Look up a channel by name

        Raises:
            UnsupportedChannelError: if nothing is registered under `name`
        """
        try:
            return self._channels[name.lower()]
        except KeyError:
            raise UnsupportedChannelError(name) from None

    def names(self) -> List[str]:
        return list(self._channels.keys())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._channels

    def __len__(self) -> int:
        return len(self._channels)
