"""
Pytest configuration and shared fixtures
"""
import pytest

from notifier_core.channels import Channel, ChannelRegistry
from notifier_core.models import Row, Rule


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers",
        "e2e: mark test as end-to-end workflow test"
    )


class RecordingChannel(Channel):
    """In-memory channel that records every transmitted payload"""

    name = 'recording'

    def __init__(self, config=None, fail=False):
        super().__init__(config or {'enabled': True})
        self.fail = fail
        self.sent = []

    def format_message(self, message, metadata):
        return {'text': message}

    def _transmit(self, payload, metadata):
        from notifier_core.errors import TransportError
        if self.fail:
            raise TransportError(self.name, 'remote rejected message')
        self.sent.append((payload['text'], dict(metadata)))
        return {'delivered': True}


@pytest.fixture
def recording_channel():
    return RecordingChannel()


@pytest.fixture
def registry(recording_channel):
    """Registry with email and slack both backed by the same recorder"""
    return ChannelRegistry({'email': recording_channel, 'slack': recording_channel})


@pytest.fixture
def weather_rows():
    """Rows from 'temperature,humidity' data without a header"""
    return [
        Row.from_values(['35', '55'], index=0, header=['temperature', 'humidity']),
        Row.from_values(['20', '70'], index=1, header=['temperature', 'humidity']),
        Row.from_values(['cold', '40'], index=2, header=['temperature', 'humidity']),
    ]


@pytest.fixture
def weather_rules():
    return [
        Rule(id=1, channel='email', condition='temperature > 30', message='High temperature: {temperature}'),
        Rule(id=2, channel='slack', condition='humidity < 60', message='Low humidity: {humidity}'),
    ]
