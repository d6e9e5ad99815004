"""
Configuration for Notifier Core
"""
import os
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() == 'true'


class NotifierConfig(BaseModel):
    """Runtime settings, defaulting from environment variables"""

    dry_run: bool = Field(
        default_factory=lambda: _env_flag('NOTIFIER_DRY_RUN')
    )

    # Concurrency
    max_workers: int = Field(
        default_factory=lambda: int(os.getenv('NOTIFIER_MAX_WORKERS', '4')),
        ge=1
    )
    max_concurrent_sends: int = Field(
        default_factory=lambda: int(os.getenv('NOTIFIER_MAX_CONCURRENT_SENDS', '4')),
        ge=1
    )
    call_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv('NOTIFIER_CALL_TIMEOUT', '10')),
        gt=0
    )

    # Channel-level retries (the dispatcher never retries)
    channel_max_retries: int = Field(
        default_factory=lambda: int(os.getenv('NOTIFIER_CHANNEL_MAX_RETRIES', '0')),
        ge=0
    )

    log_level: str = Field(
        default_factory=lambda: os.getenv('NOTIFIER_LOG_LEVEL', 'INFO')
    )

    def get_channel_config(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Dict[str, Any]]:
        """
        Get per-channel configuration

        Args:
            overrides: Channel settings from the rule file; these win over
                environment values key by key

        Returns:
            Dict of channel name -> settings
        """
        channels = {
            'email': self._get_email_config(),
            'slack': self._get_slack_config(),
            'webhook': self._get_webhook_config()
        }

        for name, settings in (overrides or {}).items():
            merged = dict(channels.get(name, {}))
            merged.update(settings or {})
            channels[name] = merged

        for settings in channels.values():
            settings.setdefault('timeout', self.call_timeout_seconds)
            settings.setdefault('max_retries', self.channel_max_retries)

        return channels

    def _get_slack_config(self) -> Dict[str, Any]:
        """Get Slack channel configuration"""
        return {
            'enabled': _env_flag('SLACK_ENABLED'),
            'webhook_url': os.environ.get('SLACK_WEBHOOK_URL'),
            'channel': os.environ.get('SLACK_CHANNEL'),  # Optional override
            'username': os.environ.get('SLACK_USERNAME', 'Data Notifier'),
            'icon_emoji': os.environ.get('SLACK_ICON_EMOJI', ':bell:')
        }

    def _get_email_config(self) -> Dict[str, Any]:
        """Get email channel configuration"""
        to_emails_str = os.environ.get('EMAIL_TO_ADDRESSES', '')
        to_emails = [e.strip() for e in to_emails_str.split(',') if e.strip()]

        return {
            'enabled': _env_flag('EMAIL_ENABLED'),
            'smtp_host': os.environ.get('SMTP_HOST', 'localhost'),
            'smtp_port': int(os.environ.get('SMTP_PORT', '587')),
            'smtp_user': os.environ.get('SMTP_USER'),
            'smtp_password': os.environ.get('SMTP_PASSWORD'),
            'from_email': os.environ.get('EMAIL_FROM', 'noreply@data-notifier.local'),
            'to_emails': to_emails,
            'use_tls': _env_flag('SMTP_USE_TLS', 'true')
        }

    def _get_webhook_config(self) -> Dict[str, Any]:
        """Get webhook channel configuration"""
        return {
            'enabled': _env_flag('WEBHOOK_ENABLED'),
            'url': os.environ.get('WEBHOOK_URL'),
            'method': os.environ.get('WEBHOOK_METHOD', 'POST'),
            'headers': {}
        }
