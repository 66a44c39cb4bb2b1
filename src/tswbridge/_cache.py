"""Latest-value cache for upstream groups (stale-but-available)."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class GroupCacheEntry:
    """Most recent successful value for one group."""

    value: Any = None
    observed_at: float | None = None
    consecutive_failures: int = 0
    last_error: str | None = None


class GroupCache:
    """Per-group cache owned by the refresh loop.

    A successful refresh replaces the group's value wholesale; a failed one
    only records the failure, so readers keep seeing the previous value.
    Values are never mutated in place once stored.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._groups: dict[str, GroupCacheEntry] = {}

    def _entry(self, group: str) -> GroupCacheEntry:
        entry = self._groups.get(group)
        if entry is None:
            entry = GroupCacheEntry()
            self._groups[group] = entry
        return entry

    def store(self, group: str, value: Any) -> int:
        """Replace *group*'s value; return the failure streak it ended."""
        entry = self._entry(group)
        recovered_after = entry.consecutive_failures
        entry.value = value
        entry.observed_at = self._clock()
        entry.consecutive_failures = 0
        entry.last_error = None
        return recovered_after

    def record_failure(self, group: str, error: BaseException) -> int:
        entry = self._entry(group)
        entry.consecutive_failures += 1
        entry.last_error = str(error)
        return entry.consecutive_failures

    def get(self, group: str, default: Any = None) -> Any:
        entry = self._groups.get(group)
        if entry is None or entry.observed_at is None:
            return default
        return entry.value

    def has_value(self, group: str) -> bool:
        entry = self._groups.get(group)
        return entry is not None and entry.observed_at is not None

    def age_seconds(self, group: str) -> float | None:
        entry = self._groups.get(group)
        if entry is None or entry.observed_at is None:
            return None
        return self._clock() - entry.observed_at

    def failures(self, group: str) -> int:
        entry = self._groups.get(group)
        return entry.consecutive_failures if entry is not None else 0
