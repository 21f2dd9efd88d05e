"""NDJSON encoder for log entries."""

import json
import math
from typing import Any

from servicewatch.core.models import LogEntry


def _entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "timestamp": entry.timestamp,
        "level": entry.level.value,
        "message": entry.message,
    }
    if entry.context is not None:
        obj["context"] = entry.context.to_dict()
    if entry.error is not None:
        obj["error"] = {
            "name": entry.error.name,
            "message": entry.error.message,
            "stack": entry.error.stack,
        }
    return obj


def _finite(value: Any, parents: frozenset[int] = frozenset()) -> Any:
    """Copy nested dicts and lists, replacing NaN and infinities with None."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if id(value) in parents:
        # Leave cycles in place for json.dumps to reject
        return value
    if isinstance(value, dict):
        inner = parents | {id(value)}
        return {key: _finite(item, inner) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        inner = parents | {id(value)}
        return [_finite(item, inner) for item in value]
    return value


def encode_entry(entry: LogEntry) -> str:
    """Encode a log entry as a single JSON line (without trailing newline).

    Field names are timestamp, level, message, context and error; context
    and error are omitted when absent. Values JSON cannot represent are
    rendered with ``str`` and non-finite numbers as ``null``, so the line
    is always strict JSON.

    Args:
        entry: The log entry.

    Returns:
        One JSON object on one line.
    """
    obj = _entry_to_dict(entry)
    try:
        return json.dumps(obj, default=str, allow_nan=False)
    except (TypeError, ValueError):
        obj = _finite(obj)
    try:
        return json.dumps(obj, default=str, allow_nan=False)
    except (TypeError, ValueError):
        # Circular structures or non-string keys in the context
        if "context" in obj:
            obj["context"] = {"unserializable": repr(obj["context"])}
        return json.dumps(obj, default=str, allow_nan=False)
