"""Normalization helpers.

Centralizes defensive parsing of upstream payloads.  The game API is not
consistent about key names, so every field is read through a resolution
chain: candidate keys tried in priority order, first usable value wins.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from tswbridge._constants import CM_PER_M


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value)
    return text if text else None


def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def as_list(value: Any) -> list[Any]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)
    return []


def first_present(data: Any, *keys: str) -> Any:
    """Return the first non-``None`` value among *keys* in *data*."""
    mapping = as_mapping(data)
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def resolve_float(data: Any, *keys: str) -> float | None:
    """Return the first of *keys* that parses as a float."""
    mapping = as_mapping(data)
    for key in keys:
        value = safe_float(mapping.get(key))
        if value is not None:
            return value
    return None


def resolve_str(data: Any, *keys: str) -> str | None:
    mapping = as_mapping(data)
    for key in keys:
        value = safe_str(mapping.get(key))
        if value is not None:
            return value
    return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def cm_to_m(value: float | None) -> float | None:
    if value is None:
        return None
    return value / CM_PER_M


def cm_to_whole_m(value: float | None) -> float | None:
    if value is None:
        return None
    return float(round_half_up(value / CM_PER_M))
