"""Sentry adapter for the error-reporting port."""

from collections.abc import Mapping
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from servicewatch.core.models import Environment

DEFAULT_CONTEXT_NAME = "service"


def _development_filter(
    event: dict[str, Any], hint: dict[str, Any]
) -> dict[str, Any] | None:
    """Drop everything but error-level events while developing."""
    if event.get("level") != "error":
        return None
    return event


def init_sentry(
    dsn: str,
    environment: Environment = Environment.PRODUCTION,
    release: str | None = None,
) -> None:
    """Initialize the Sentry SDK for this process.

    Stdlib logging records still become breadcrumbs but not events; errors
    reach Sentry through SentryErrorReporter only, so records bridged by
    ServiceWatchHandler are not reported twice.

    Args:
        dsn: Sentry project DSN.
        environment: Deployment environment; development samples every
            transaction but only sends error-level events.
        release: Release identifier attached to events.
    """
    development = environment == Environment.DEVELOPMENT
    sentry_sdk.init(
        dsn=dsn,
        environment=environment.value,
        release=release,
        traces_sample_rate=1.0 if development else 0.1,
        send_default_pii=False,
        before_send=_development_filter if development else None,
        integrations=[LoggingIntegration(event_level=None)],
    )


class SentryErrorReporter:
    """ErrorReporterPort implementation backed by ``sentry_sdk``.

    Example:
        ```python
        init_sentry(settings.sentry_dsn, settings.environment)
        logger = Logger(settings.environment, reporter=SentryErrorReporter())
        ```
    """

    def __init__(self, context_name: str = DEFAULT_CONTEXT_NAME) -> None:
        """Initialize the reporter.

        Args:
            context_name: Name of the Sentry context block carrying the
                log context.
        """
        self.context_name = context_name

    def capture(
        self, error: BaseException, severity: str, context: Mapping[str, Any]
    ) -> None:
        """Send the exception to Sentry with its severity and context."""
        sentry_sdk.capture_exception(
            error,
            level=severity,
            contexts={self.context_name: dict(context)},
        )
