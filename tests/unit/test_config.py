"""
Unit tests for application settings.
"""

import pytest
from pydantic import ValidationError

from sqs_consumer.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings(_env_file=None)

        assert settings.backend == "sqs"
        assert settings.handler == "log"
        assert settings.receivers == 1
        assert settings.wait_time_seconds == 0
        assert settings.metrics_enabled is True
        assert settings.otel_enabled is False

    def test_from_environment(self, monkeypatch):
        """Test loading values from environment variables."""
        monkeypatch.setenv("QUEUE_URL", "https://sqs.eu-west-1.amazonaws.com/1/orders")
        monkeypatch.setenv("BACKEND", "memory")
        monkeypatch.setenv("RECEIVERS", "3")
        monkeypatch.setenv("POLL_DELAY_MS", "250")
        monkeypatch.setenv("HANDLER_TIMEOUT_SECONDS", "1.5")
        monkeypatch.setenv("HANDLER_THREADS", "32")
        monkeypatch.setenv("AWS_ENDPOINT_URL", "http://localhost:4566")

        settings = Settings(_env_file=None)

        assert settings.queue_url.endswith("/orders")
        assert settings.backend == "memory"
        assert settings.receivers == 3
        assert settings.poll_delay_ms == 250
        assert settings.handler_timeout_seconds == 1.5
        assert settings.handler_threads == 32
        assert settings.aws_endpoint_url == "http://localhost:4566"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("BACKEND", "kafka"),
            ("RECEIVERS", "0"),
            ("MAX_NUMBER_OF_MESSAGES", "11"),
            ("WAIT_TIME_SECONDS", "30"),
            ("POLL_DELAY_MS", "-1"),
            ("HANDLER_THREADS", "-1"),
        ],
    )
    def test_invalid_values(self, monkeypatch, name, value):
        """Test that invalid environment values are rejected."""
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        """Test that settings are loaded once."""
        assert get_settings() is get_settings()
