"""Core domain models for observability data."""

import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Log severity levels, ordered debug < info < warn < error < critical."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        """Numeric rank used for threshold comparisons."""
        return _LEVEL_SEVERITY[self]

    @property
    def reportable(self) -> bool:
        """True for levels forwarded to the error reporter."""
        return self in (LogLevel.ERROR, LogLevel.CRITICAL)

    @classmethod
    def parse(cls, value: "str | LogLevel") -> "LogLevel":
        """Parse a level name, accepting stdlib spellings like WARNING."""
        if isinstance(value, LogLevel):
            return value
        normalized = value.strip().lower()
        if normalized == "warning":
            normalized = "warn"
        elif normalized == "fatal":
            normalized = "critical"
        return cls(normalized)


_LEVEL_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
    LogLevel.CRITICAL: 50,
}

# Python attribute name -> wire key
_WELL_KNOWN_CONTEXT_KEYS = {
    "user_id": "userId",
    "shop_id": "shopId",
    "customer_id": "customerId",
    "order_id": "orderId",
    "transaction_id": "transactionId",
    "request_id": "requestId",
    "user_agent": "userAgent",
    "ip": "ip",
}
_WIRE_TO_ATTR = {wire: attr for attr, wire in _WELL_KNOWN_CONTEXT_KEYS.items()}


@dataclass(frozen=True)
class LogContext:
    """Structured context attached to a log entry.

    Well-known identifiers have their own fields; anything else goes in
    ``extra``. Serialized with camelCase wire keys (``shopId``, ``requestId``).

    Attributes:
        user_id: Authenticated user identifier.
        shop_id: Shop the request belongs to.
        customer_id: Customer the operation concerns.
        order_id: Order identifier.
        transaction_id: Loyalty/payment transaction identifier.
        request_id: Correlation id of the current request.
        user_agent: Caller user agent.
        ip: Caller address.
        extra: Arbitrary additional fields.
    """

    user_id: str | None = None
    shop_id: str | None = None
    customer_id: str | None = None
    order_id: str | None = None
    transaction_id: str | None = None
    request_id: str | None = None
    user_agent: str | None = None
    ip: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LogContext":
        """Build a context from a mapping using wire or attribute key names."""
        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            attr = _WIRE_TO_ATTR.get(key) or (
                key if key in _WELL_KNOWN_CONTEXT_KEYS else None
            )
            if attr is not None:
                known[attr] = None if value is None else str(value)
            else:
                extra[key] = value
        return cls(**known, extra=extra)

    def get(self, wire_key: str) -> Any:
        """Look up a value by its wire key, falling back to ``extra``."""
        attr = _WIRE_TO_ATTR.get(wire_key)
        if attr is not None:
            return getattr(self, attr)
        return self.extra.get(wire_key)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to wire keys, omitting unset well-known fields."""
        result: dict[str, Any] = {}
        for attr, wire in _WELL_KNOWN_CONTEXT_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                result[wire] = value
        result.update(self.extra)
        return result


@dataclass(frozen=True)
class ErrorDetail:
    """Serializable description of an exception.

    Attributes:
        name: Exception class name.
        message: ``str()`` of the exception.
        stack: Formatted traceback.
    """

    name: str
    message: str
    stack: str

    @classmethod
    def from_exception(cls, error: BaseException) -> "ErrorDetail":
        stack = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
        return cls(name=type(error).__name__, message=str(error), stack=stack)


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: ISO-8601 UTC timestamp with millisecond precision.
        level: Severity level.
        message: The log message.
        context: Structured context, if any.
        error: Details of the attached exception, if any.
    """

    timestamp: str
    level: LogLevel
    message: str
    context: LogContext | None = None
    error: ErrorDetail | None = None


@dataclass(frozen=True)
class MetricSample:
    """A single metric measurement.

    Attributes:
        name: Metric name (e.g., operation.db.loadCustomer).
        value: The metric value.
        unit: Unit of the value ("count", "ms", "gauge"), if any.
        timestamp: Unix timestamp in seconds; filled in when recorded.
        tags: Key-value pairs for metric dimensions.
    """

    name: str
    value: float
    unit: str | None = None
    timestamp: float | None = None
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class MetricSummary:
    """Aggregate of the samples sharing a (name, unit) pair in one flush."""

    count: int
    sum: float
    min: float
    max: float

    def add(self, value: float) -> None:
        self.count += 1
        self.sum += value
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    def to_dict(self) -> dict[str, float]:
        return {"count": self.count, "sum": self.sum, "min": self.min, "max": self.max}


@dataclass(frozen=True)
class TimerHandle:
    """Opaque correlator between a timer start and its stop.

    Attributes:
        token: Random 128-bit identifier (hex).
        operation: Name of the timed operation.
    """

    token: str
    operation: str


class HealthStatus(str, Enum):
    """Aggregate health status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthReport:
    """Result of one health check run.

    Attributes:
        status: HEALTHY iff every check passed.
        checks: Check name -> passed.
    """

    status: HealthStatus
    checks: dict[str, bool] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    @property
    def http_status(self) -> int:
        """HTTP status code a liveness endpoint should answer with."""
        return 200 if self.healthy else 503

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "checks": dict(self.checks)}


class Environment(str, Enum):
    """Deployment environment; selects the log line format."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str | None) -> "Environment":
        """Anything other than development/dev is treated as production."""
        if value is not None and value.strip().lower() in ("development", "dev"):
            return cls.DEVELOPMENT
        return cls.PRODUCTION
