"""Encoders for log entries written to the output stream."""

from servicewatch.core.encoding.console import format_console
from servicewatch.core.encoding.ndjson import encode_entry

__all__ = ["encode_entry", "format_console"]
