"""
Tests for channel implementations and the channel registry (MOCK MODE)

Transports are patched; nothing touches the network.
"""
import smtplib

import pytest
import requests
from unittest.mock import MagicMock, Mock, patch

from notifier_core.channels import (
    ChannelRegistry,
    DispatchResult,
    EmailChannel,
    SlackChannel,
    WebhookChannel,
)
from notifier_core.errors import UnsupportedChannelError


@pytest.fixture
def metadata():
    return {'rule_id': 1, 'row_index': 0, 'channel': 'slack', 'row': {'column0': '20', 'column1': '55'}}


class TestSlackChannel:

    def test_format_message(self, metadata):
        channel = SlackChannel({'enabled': True, 'webhook_url': 'https://hooks.slack.com/test', 'channel': '#alerts'})
        payload = channel.format_message('Low humidity: 55', metadata)

        assert payload['text'] == 'Low humidity: 55'
        assert payload['channel'] == '#alerts'
        assert len(payload['blocks']) == 2

    def test_send_success(self, metadata):
        channel = SlackChannel({'enabled': True, 'webhook_url': 'https://hooks.slack.com/test', 'timeout': 3})

        with patch('notifier_core.channels.slack.requests.post') as mock_post:
            mock_response = Mock()
            mock_response.status_code = 200
            mock_response.raise_for_status = Mock()
            mock_post.return_value = mock_response

            result = channel.send('Low humidity: 55', metadata)

        assert result.success is True
        assert result.channel == 'slack'
        assert result.rule_id == 1
        mock_post.assert_called_once()
        assert mock_post.call_args.kwargs['timeout'] == 3.0

    def test_send_failure(self, metadata):
        channel = SlackChannel({'enabled': True, 'webhook_url': 'https://hooks.slack.com/test'})

        with patch('notifier_core.channels.slack.requests.post') as mock_post:
            mock_post.side_effect = requests.exceptions.ConnectionError('Connection refused')
            result = channel.send('msg', metadata)

        assert result.success is False
        assert 'Connection refused' in result.error
        assert result.retry_count == 0

    def test_retries_are_channel_level(self, metadata):
        channel = SlackChannel({
            'enabled': True,
            'webhook_url': 'https://hooks.slack.com/test',
            'max_retries': 2,
            'retry_delays': [0, 0]
        })

        ok = Mock(status_code=200, raise_for_status=Mock())
        with patch('notifier_core.channels.slack.requests.post') as mock_post:
            mock_post.side_effect = [requests.exceptions.Timeout('slow'), ok]
            result = channel.send('msg', metadata)

        assert result.success is True
        assert result.retry_count == 1
        assert mock_post.call_count == 2

    def test_retries_exhausted_reports_count(self, metadata):
        channel = SlackChannel({
            'enabled': True,
            'webhook_url': 'https://hooks.slack.com/test',
            'max_retries': 2,
            'retry_delays': [0]
        })

        with patch('notifier_core.channels.slack.requests.post') as mock_post:
            mock_post.side_effect = requests.exceptions.Timeout('slow')
            result = channel.send('msg', metadata)

        assert result.success is False
        assert result.retry_count == 2
        assert mock_post.call_count == 3

    def test_retries_without_delays(self, metadata):
        channel = SlackChannel({
            'enabled': True,
            'webhook_url': 'https://hooks.slack.com/test',
            'max_retries': 1,
            'retry_delays': []
        })

        ok = Mock(status_code=200, raise_for_status=Mock())
        with patch('notifier_core.channels.slack.requests.post') as mock_post:
            mock_post.side_effect = [requests.exceptions.Timeout('slow'), ok]
            result = channel.send('msg', metadata)

        assert result.success is True
        assert result.retry_count == 1

    def test_missing_webhook_url(self, metadata):
        channel = SlackChannel({'enabled': True})
        result = channel.send('msg', metadata)

        assert result.success is False
        assert 'not configured' in result.error

    def test_dry_run_does_not_post(self, metadata):
        channel = SlackChannel({'enabled': True, 'dry_run': True})

        with patch('notifier_core.channels.slack.requests.post') as mock_post:
            result = channel.send('msg', metadata)

        assert result.success is True
        assert result.response == {'dry_run': True}
        mock_post.assert_not_called()


class TestEmailChannel:

    @pytest.fixture
    def email_config(self):
        return {
            'enabled': True,
            'smtp_host': 'smtp.example.com',
            'smtp_port': 587,
            'smtp_user': 'user',
            'smtp_password': 'secret',
            'from_email': 'alerts@example.com',
            'to_emails': ['ops@example.com']
        }

    def test_format_message(self, email_config, metadata):
        payload = EmailChannel(email_config).format_message('Low humidity: 55', metadata)

        assert payload['subject'] == 'Alert from rule 1: Low humidity: 55'
        assert payload['body'] == 'Low humidity: 55'

    def test_send_success(self, email_config, metadata):
        channel = EmailChannel(email_config)

        with patch('notifier_core.channels.email.smtplib.SMTP') as mock_smtp:
            server = MagicMock()
            mock_smtp.return_value.__enter__.return_value = server

            result = channel.send('Low humidity: 55', metadata)

        assert result.success is True
        assert result.response == {'recipients': ['ops@example.com']}
        server.starttls.assert_called_once()
        server.login.assert_called_once_with('user', 'secret')
        server.send_message.assert_called_once()
        sent = server.send_message.call_args.args[0]
        assert sent['To'] == 'ops@example.com'

    def test_smtp_error_is_failure(self, email_config, metadata):
        channel = EmailChannel(email_config)

        with patch('notifier_core.channels.email.smtplib.SMTP') as mock_smtp:
            mock_smtp.side_effect = smtplib.SMTPConnectError(421, 'unavailable')
            result = channel.send('msg', metadata)

        assert result.success is False
        assert result.channel == 'email'

    def test_no_recipients(self, metadata):
        result = EmailChannel({'enabled': True}).send('msg', metadata)
        assert result.success is False


class TestWebhookChannel:

    def test_send_posts_json(self, metadata):
        channel = WebhookChannel({'enabled': True, 'url': 'https://example.com/hook', 'headers': {'X-Token': 'abc'}})

        with patch('notifier_core.channels.webhook.requests.request') as mock_request:
            mock_request.return_value = Mock(status_code=204, raise_for_status=Mock())
            result = channel.send('msg', metadata)

        assert result.success is True
        method, url = mock_request.call_args.args
        assert (method, url) == ('POST', 'https://example.com/hook')
        assert mock_request.call_args.kwargs['json']['row'] == {'column0': '20', 'column1': '55'}
        assert mock_request.call_args.kwargs['headers']['X-Token'] == 'abc'

    def test_unsupported_method(self, metadata):
        channel = WebhookChannel({'enabled': True, 'url': 'https://example.com/hook', 'method': 'DELETE'})
        assert channel.validate_config() is False


class TestChannelRegistry:

    def test_from_config_registers_enabled_builtins(self):
        registry = ChannelRegistry.from_config({
            'email': {'enabled': True, 'to_emails': ['a@example.com']},
            'slack': {'enabled': False},
            'sms': {'enabled': True},
        })

        assert registry.names() == ['email']
        assert isinstance(registry.get('email'), EmailChannel)

    def test_dry_run_applies_to_all(self):
        registry = ChannelRegistry.from_config({'slack': {'enabled': True}}, dry_run=True)
        assert registry.get('slack').dry_run is True

    def test_unknown_channel_raises(self):
        registry = ChannelRegistry()
        with pytest.raises(UnsupportedChannelError) as exc_info:
            registry.get('sms')
        assert exc_info.value.channel == 'sms'

    def test_lookup_is_case_insensitive(self):
        channel = SlackChannel({'enabled': True})
        registry = ChannelRegistry({'Slack': channel})
        assert registry.get('SLACK') is channel
        assert 'slack' in registry


def test_dispatch_result_defaults():
    from datetime import datetime
    result = DispatchResult(success=True, channel='email', rule_id=1, timestamp=datetime.now())
    assert result.error is None
    assert result.retry_count == 0
