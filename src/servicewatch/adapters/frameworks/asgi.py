"""ASGI generic adapter for health endpoints and request observability.

This adapter provides a framework-agnostic ASGI application and middleware
that can be used with any ASGI server (uvicorn, hypercorn, daphne) without
requiring FastAPI as a dependency.
"""

import dataclasses
import fnmatch
import json
import uuid
from collections.abc import Callable, Coroutine
from typing import Any

from servicewatch.core.health import HealthChecker
from servicewatch.core.logs import Logger, iso_timestamp
from servicewatch.core.metrics import MetricsCollector
from servicewatch.core.models import Environment, LogContext, LogLevel, TimerHandle
from servicewatch.core.performance import PerformanceMonitor

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _header(scope: Scope, name: str) -> str | None:
    """Return the first value of a request header (case-insensitive)."""
    wanted = name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for key, value in headers:
        if key.lower() == wanted:
            return value.decode("utf-8", errors="replace")
    return None


def create_request_context(
    scope: Scope, request_id_header: str = "X-Request-ID"
) -> LogContext:
    """Build the log context for an incoming HTTP request.

    The request ID is taken from ``request_id_header`` or generated. The
    client address prefers ``x-forwarded-for``, then ``x-real-ip``.

    Args:
        scope: ASGI scope dictionary containing request metadata.
        request_id_header: Header carrying an upstream request ID.

    Returns:
        LogContext with requestId, userAgent and ip set and the method and
        url (path plus query string) in ``extra``.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    url = scope.get("path", "")
    if query_string:
        url = f"{url}?{query_string}"
    return LogContext(
        request_id=_header(scope, request_id_header) or str(uuid.uuid4()),
        user_agent=_header(scope, "user-agent") or "",
        ip=_header(scope, "x-forwarded-for") or _header(scope, "x-real-ip") or "",
        extra={"method": scope.get("method", ""), "url": url},
    )


def _get_log_level_for_status(status_code: int) -> LogLevel:
    """Determine log level based on HTTP status code.

    Maps status codes to log levels:
    - 400-499 (4xx) → WARN
    - 500-599 (5xx) → ERROR
    - Other → INFO
    """
    if 400 <= status_code < 500:
        return LogLevel.WARN
    if 500 <= status_code < 600:
        return LogLevel.ERROR
    return LogLevel.INFO


async def _send_response(
    send: Send,
    status: int,
    content_type: str,
    body: str,
    extra_headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    """Send an HTTP response with headers and body."""
    headers = [(b"content-type", content_type.encode()), *(extra_headers or [])]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _send_json(
    send: Send,
    status: int,
    payload: dict[str, Any],
    extra_headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    await _send_response(
        send, status, "application/json", json.dumps(payload), extra_headers
    )


def liveness_payload(version: str, environment: Environment) -> dict[str, Any]:
    """Body of the dependency-free liveness response."""
    return {
        "status": "healthy",
        "timestamp": iso_timestamp(),
        "version": version,
        "environment": environment.value,
    }


class ASGIObservabilityMiddleware:
    """ASGI middleware that logs, counts and times every HTTP request.

    Each request is timed as ``operation.http.request``, counted as
    ``http.requests`` and logged once at a level derived from the response
    status. Exceptions raised by the wrapped app are logged at error level
    (and so reported) before being re-raised.
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: Logger,
        metrics: MetricsCollector,
        performance: PerformanceMonitor,
        exclude_paths: list[str] | None = None,
        request_id_header: str = "X-Request-ID",
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            logger: Logger receiving one line per request.
            metrics: Collector receiving the request counter.
            performance: Monitor timing each request.
            exclude_paths: Paths to skip. Supports exact matches and wildcard
                          patterns (e.g., "/health*").
            request_id_header: Header to read the request ID from.
        """
        self.app = app
        self.logger = logger
        self.metrics = metrics
        self.performance = performance
        self.exclude_paths = exclude_paths or []
        self.request_id_header = request_id_header

    def _path_excluded(self, path: str) -> bool:
        """Check if path matches any pattern in exclude_paths."""
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http" or self._path_excluded(scope["path"]):
            await self.app(scope, receive, send)
            return

        context = create_request_context(scope, self.request_id_header)
        handle = self.performance.start_timer("http.request")
        captured: dict[str, Any] = {"status": None}

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                captured["status"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, wrapped_send)
        except Exception as exc:
            self._record(scope, context, handle, 500, exc)
            raise
        self._record(scope, context, handle, captured["status"] or 0, None)

    def _record(
        self,
        scope: Scope,
        context: LogContext,
        handle: TimerHandle,
        status_code: int,
        error: Exception | None,
    ) -> None:
        tags = {"method": scope["method"], "status": str(status_code)}
        duration = self.performance.end_timer(handle, tags)
        self.metrics.counter("http.requests", 1, tags)

        request_context = dataclasses.replace(
            context,
            extra={**context.extra, "status": status_code, "duration": duration},
        )
        message = f"{scope['method']} {scope['path']}"
        if error is not None:
            self.logger.error(f"{message} failed", request_context, error)
        else:
            self.logger.log(
                _get_log_level_for_status(status_code), message, request_context
            )


def create_health_app(
    checker: HealthChecker,
    version: str = "1.0.0",
    environment: Environment = Environment.PRODUCTION,
) -> ASGIApp:
    """Create an ASGI app with /health and /health/live endpoints.

    ``/health`` runs every registered check and answers 200 when healthy,
    503 otherwise, with the report as JSON. ``/health/live`` answers 200
    without touching any dependency.

    Args:
        checker: HealthChecker whose checks back the /health endpoint.
        version: Service version reported by /health/live.
        environment: Environment reported by /health/live.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path == "/health":
            report = await checker.run_checks()
            await _send_json(
                send,
                report.http_status,
                report.to_dict(),
                [(b"cache-control", b"no-cache")],
            )
        elif path == "/health/live":
            await _send_json(
                send,
                200,
                liveness_payload(version, environment),
                [(b"cache-control", b"no-cache")],
            )
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
