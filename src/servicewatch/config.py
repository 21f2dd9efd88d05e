"""Settings read from environment variables.

## Environment Variables

- SERVICEWATCH_ENV: development or production (falls back to NODE_ENV;
  default: production)
- SERVICEWATCH_LOG_LEVEL: debug, info, warn, error, critical (default: debug)
- SERVICEWATCH_METRICS_BATCH_SIZE: samples per batch (default: 100)
- SERVICEWATCH_METRICS_FLUSH_INTERVAL: seconds between flushes (default: 60)
- SERVICEWATCH_HEALTH_TIMEOUT: per-check timeout in seconds (default: 5)
- SERVICEWATCH_VERSION: version reported by the liveness endpoint
- SENTRY_DSN: enables Sentry error reporting when set
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from servicewatch.core.errors import ConfigurationError
from servicewatch.core.health import DEFAULT_CHECK_TIMEOUT
from servicewatch.core.metrics import DEFAULT_BATCH_SIZE, DEFAULT_FLUSH_INTERVAL
from servicewatch.core.models import Environment, LogLevel


def _positive_number(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None
    # Rejects NaN as well as non-positive values
    if not value > 0 or value == float("inf"):
        raise ConfigurationError(f"{key} must be a positive number, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Observability configuration.

    Attributes:
        environment: Selects console (development) or JSON log lines.
        log_level: Minimum level written to the output stream.
        batch_size: Buffered samples that trigger an immediate flush.
        flush_interval: Seconds between periodic metric flushes.
        health_timeout: Per-check timeout in seconds.
        sentry_dsn: Sentry DSN; error reporting is disabled when None.
        version: Service version reported by the liveness endpoint.
    """

    environment: Environment = Environment.PRODUCTION
    log_level: LogLevel = LogLevel.DEBUG
    batch_size: int = DEFAULT_BATCH_SIZE
    flush_interval: float = DEFAULT_FLUSH_INTERVAL
    health_timeout: float = DEFAULT_CHECK_TIMEOUT
    sentry_dsn: str | None = None
    version: str = "1.0.0"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        level_raw = env.get("SERVICEWATCH_LOG_LEVEL", "debug")
        try:
            log_level = LogLevel.parse(level_raw)
        except ValueError:
            raise ConfigurationError(
                f"SERVICEWATCH_LOG_LEVEL must be one of "
                f"{', '.join(level.value for level in LogLevel)}, got {level_raw!r}"
            ) from None

        batch_size = _positive_number(
            env, "SERVICEWATCH_METRICS_BATCH_SIZE", DEFAULT_BATCH_SIZE
        )
        if batch_size != int(batch_size):
            raise ConfigurationError(
                f"SERVICEWATCH_METRICS_BATCH_SIZE must be an integer, got {batch_size}"
            )

        return cls(
            environment=Environment.parse(
                env.get("SERVICEWATCH_ENV") or env.get("NODE_ENV")
            ),
            log_level=log_level,
            batch_size=int(batch_size),
            flush_interval=_positive_number(
                env, "SERVICEWATCH_METRICS_FLUSH_INTERVAL", DEFAULT_FLUSH_INTERVAL
            ),
            health_timeout=_positive_number(
                env, "SERVICEWATCH_HEALTH_TIMEOUT", DEFAULT_CHECK_TIMEOUT
            ),
            sentry_dsn=env.get("SENTRY_DSN") or None,
            version=env.get("SERVICEWATCH_VERSION", "1.0.0"),
        )
