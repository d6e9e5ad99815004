"""
Slack channel implementation
"""
import requests
from typing import Dict, Any

from .base import Channel


class SlackChannel(Channel):
    """Slack incoming-webhook channel"""

    name = 'slack'
    transport_errors = (requests.exceptions.RequestException,)

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.webhook_url = config.get('webhook_url')
        self.channel = config.get('channel')
        self.username = config.get('username', 'Data Notifier')
        self.icon_emoji = config.get('icon_emoji', ':bell:')

    def validate_config(self) -> bool:
        """Validate Slack configuration"""
        if not self.enabled:
            return False

        if not self.webhook_url:
            self.logger.error("Slack webhook_url not configured")
            return False

        return True

    def format_message(self, message: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Format a rendered message as a Slack webhook payload

        Returns:
            Slack message payload
        """
        context = f"rule {metadata.get('rule_id')} · row {metadata.get('row_index')}"
        payload = {
            "text": message,
            "blocks": [
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": message}
                },
                {
                    "type": "context",
                    "elements": [{"type": "mrkdwn", "text": context}]
                }
            ],
            "username": self.username,
            "icon_emoji": self.icon_emoji
        }

        if self.channel:
            payload["channel"] = self.channel

        return payload

    def _transmit(self, payload: Dict[str, Any], metadata: Dict[str, Any]) -> Dict[str, Any]:
        response = requests.post(
            self.webhook_url,
            json=payload,
            timeout=self.timeout,
            headers={'Content-Type': 'application/json'}
        )

        response.raise_for_status()

        self.logger.info(f"Sent Slack message for rule {metadata.get('rule_id')}")
        return {'status_code': response.status_code}
