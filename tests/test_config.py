"""Unit tests for settings loading."""
import os
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from ics_sync.config import get_settings
from ics_sync.errors import ConfigurationError

ENV_KEYS = ("CALENDAR_ID", "ICS_FILE", "TIMEZONE", "GOOGLE_CLIENT_SECRETS", "GOOGLE_TOKEN_FILE", "HTTP_TIMEOUT")


@pytest.fixture
def clean_env():
    """Run with none of the sync variables set."""
    env = {k: v for k, v in os.environ.items() if k not in ENV_KEYS}
    with patch.dict(os.environ, env, clear=True):
        yield


class TestGetSettings:
    """Test cases for get_settings."""

    def test_defaults(self, clean_env):
        settings = get_settings()

        assert settings.calendar_id == ""
        assert settings.timezone == ZoneInfo("UTC")
        assert settings.google_client_secrets == "credentials.json"
        assert settings.google_token_file == "token.json"
        assert settings.http_timeout == 30.0

    def test_reads_environment(self, clean_env):
        with patch.dict(
            os.environ,
            {
                "CALENDAR_ID": "cal@group.calendar.google.com",
                "ICS_FILE": "https://example.com/feed.ics",
                "TIMEZONE": "Europe/Paris",
                "HTTP_TIMEOUT": "5",
            },
        ):
            settings = get_settings()

        assert settings.calendar_id == "cal@group.calendar.google.com"
        assert settings.ics_file == "https://example.com/feed.ics"
        assert settings.timezone == ZoneInfo("Europe/Paris")
        assert settings.http_timeout == 5.0

    def test_arguments_override_environment(self, clean_env):
        with patch.dict(os.environ, {"CALENDAR_ID": "from-env", "ICS_FILE": "env.ics"}):
            settings = get_settings(calendar_id="from-cli", ics_file="cli.ics")

        assert settings.calendar_id == "from-cli"
        assert settings.ics_file == "cli.ics"

    def test_invalid_timezone_falls_back(self, clean_env):
        with patch.dict(os.environ, {"TIMEZONE": "Mars/Olympus_Mons"}):
            assert get_settings().timezone == ZoneInfo("UTC")

    def test_invalid_timeout(self, clean_env):
        with patch.dict(os.environ, {"HTTP_TIMEOUT": "soon"}):
            with pytest.raises(ConfigurationError):
                get_settings()


class TestSyncConfig:
    def test_requires_calendar_id(self, clean_env):
        with pytest.raises(ConfigurationError):
            get_settings().sync_config()

    def test_carries_calendar_and_timezone(self, clean_env):
        config = get_settings(calendar_id="primary").sync_config()

        assert config.calendar_id == "primary"
        assert config.timezone == ZoneInfo("UTC")
