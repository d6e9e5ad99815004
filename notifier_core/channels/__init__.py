"""
Channel implementations for notification dispatching
"""
from .base import Channel, DispatchResult
from .slack import SlackChannel
from .email import EmailChannel
from .webhook import WebhookChannel
from .registry import ChannelRegistry, BUILTIN_CHANNELS

__all__ = [
    'Channel',
    'DispatchResult',
    'SlackChannel',
    'EmailChannel',
    'WebhookChannel',
    'ChannelRegistry',
    'BUILTIN_CHANNELS'
]
