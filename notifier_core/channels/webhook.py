"""
Generic webhook channel implementation
"""
import requests
from typing import Dict, Any

from .base import Channel


class WebhookChannel(Channel):
    """Generic JSON webhook channel"""

    name = 'webhook'
    transport_errors = (requests.exceptions.RequestException,)

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.url = config.get('url')
        self.method = config.get('method', 'POST').upper()
        self.headers = config.get('headers', {})

    def validate_config(self) -> bool:
        """Validate webhook configuration"""
        if not self.enabled:
            return False

        if not self.url:
            self.logger.error("Webhook URL not configured")
            return False

        if self.method not in ('POST', 'PUT'):
            self.logger.error(f"Unsupported HTTP method: {self.method}")
            return False

        return True

    def format_message(self, message: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "rule_id": metadata.get('rule_id'),
            "row_index": metadata.get('row_index'),
            "channel": metadata.get('channel'),
            "message": message,
            "row": dict(metadata.get('row') or {}),
        }

    def _transmit(self, payload: Dict[str, Any], metadata: Dict[str, Any]) -> Dict[str, Any]:
        headers = {'Content-Type': 'application/json'}
        headers.update(self.headers)

        response = requests.request(
            self.method,
            self.url,
            json=payload,
            headers=headers,
            timeout=self.timeout
        )

        response.raise_for_status()

        self.logger.info(f"Sent webhook for rule {metadata.get('rule_id')}")
        return {'status_code': response.status_code}
