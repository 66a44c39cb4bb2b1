"""Keep the CommAPIKey out of log output.

Every upstream request carries the key in the ``DTGCommKey`` header, so
headers and payloads pass through :func:`redact_for_log` before they reach
DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

_SECRET_FIELDS: frozenset[str] = frozenset(
    {"dtgcommkey", "commkey", "comm_key", "commapikey", "authorization", "cookie"}
)
_MAX_DEPTH = 20


def redact_key(key: str) -> str:
    """Return a short, non-reversible hint of *key* for log lines."""
    if len(key) <= 4:
        return REDACTED
    return f"{key[:2]}…{key[-2:]}"


def _scrub(value: Any, max_string: int, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(name): REDACTED if str(name).lower() in _SECRET_FIELDS else _scrub(item, max_string, depth + 1)
            for name, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(item, max_string, depth + 1) for item in value]
    return repr(value)


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* with key-bearing fields masked.

    Mapping entries named like the comm key (any casing) become
    ``<redacted>``; long strings are truncated to *max_string* characters.
    """
    return _scrub(value, max_string, 0)
