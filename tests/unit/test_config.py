"""Tests for Settings.from_env()."""

import pytest

from servicewatch.config import Settings
from servicewatch.core.errors import ConfigurationError
from servicewatch.core.models import Environment, LogLevel

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]


class TestSettingsFromEnv:
    """Tests for reading settings from the environment."""

    def test_defaults(self) -> None:
        settings = Settings.from_env({})

        assert settings == Settings()
        assert settings.environment is Environment.PRODUCTION
        assert settings.log_level is LogLevel.DEBUG
        assert settings.batch_size == 100
        assert settings.flush_interval == 60.0
        assert settings.health_timeout == 5.0
        assert settings.sentry_dsn is None

    def test_reads_all_variables(self) -> None:
        settings = Settings.from_env(
            {
                "SERVICEWATCH_ENV": "development",
                "SERVICEWATCH_LOG_LEVEL": "WARNING",
                "SERVICEWATCH_METRICS_BATCH_SIZE": "25",
                "SERVICEWATCH_METRICS_FLUSH_INTERVAL": "2.5",
                "SERVICEWATCH_HEALTH_TIMEOUT": "0.5",
                "SENTRY_DSN": "https://key@example.ingest.sentry.io/1",
                "SERVICEWATCH_VERSION": "2.3.0",
            }
        )

        assert settings.environment is Environment.DEVELOPMENT
        assert settings.log_level is LogLevel.WARN
        assert settings.batch_size == 25
        assert settings.flush_interval == 2.5
        assert settings.health_timeout == 0.5
        assert settings.sentry_dsn == "https://key@example.ingest.sentry.io/1"
        assert settings.version == "2.3.0"

    def test_node_env_is_a_fallback(self) -> None:
        assert (
            Settings.from_env({"NODE_ENV": "development"}).environment
            is Environment.DEVELOPMENT
        )
        assert (
            Settings.from_env(
                {"NODE_ENV": "development", "SERVICEWATCH_ENV": "production"}
            ).environment
            is Environment.PRODUCTION
        )

    def test_blank_values_use_defaults(self) -> None:
        settings = Settings.from_env(
            {"SERVICEWATCH_METRICS_BATCH_SIZE": " ", "SENTRY_DSN": ""}
        )
        assert settings.batch_size == 100
        assert settings.sentry_dsn is None

    def test_reads_process_environment_by_default(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SERVICEWATCH_HEALTH_TIMEOUT", "1")
        assert Settings.from_env().health_timeout == 1.0

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("SERVICEWATCH_METRICS_BATCH_SIZE", "ten"),
            ("SERVICEWATCH_METRICS_BATCH_SIZE", "0"),
            ("SERVICEWATCH_METRICS_BATCH_SIZE", "2.5"),
            ("SERVICEWATCH_METRICS_FLUSH_INTERVAL", "-1"),
            ("SERVICEWATCH_HEALTH_TIMEOUT", "nan"),
            ("SERVICEWATCH_HEALTH_TIMEOUT", "inf"),
            ("SERVICEWATCH_LOG_LEVEL", "loud"),
        ],
    )
    def test_invalid_values_raise(self, key: str, value: str) -> None:
        with pytest.raises(ConfigurationError, match=key):
            Settings.from_env({key: value})
