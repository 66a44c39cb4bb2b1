"""Subscription listing envelope returned by ``/subscription/?Subscription=<id>``."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from tswbridge.models._base import UpstreamModel


class SubscriptionEntry(UpstreamModel):
    """One subscribed path and its latest values."""

    path: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)

    def matches(self, path: str) -> bool:
        """Case-insensitive path equality."""
        return self.path is not None and self.path.lower() == path.lower()


class SubscriptionListing(UpstreamModel):
    entries: list[SubscriptionEntry] = Field(default_factory=list)

    def contains(self, path: str) -> bool:
        return any(entry.matches(path) for entry in self.entries)
