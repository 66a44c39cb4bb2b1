"""Subscription endpoints.

Endpoints:
  - POST /subscription/<path>?Subscription=<id> (register)
  - GET /subscription/?Subscription=<id> (listing + latest values)

Registration is idempotent upstream, so it is safe to repeat until the
listing confirms the path.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from tswbridge._transport import Transport
from tswbridge.models.subscription import SubscriptionEntry, SubscriptionListing

_logger = logging.getLogger(__name__)


def register_path(path: str, subscription_id: int) -> str:
    return f"/subscription/{path}?Subscription={subscription_id}"


def listing_path(subscription_id: int) -> str:
    return f"/subscription/?Subscription={subscription_id}"


def parse_listing(raw: Any) -> SubscriptionListing:
    """Parse a listing payload entry by entry.

    A malformed entry is skipped on its own so the remaining paths keep
    their values; a payload without an ``Entries`` list parses as empty.
    """
    if not isinstance(raw, dict):
        return SubscriptionListing()
    raw_entries = raw.get("Entries", raw.get("entries"))
    if not isinstance(raw_entries, list):
        return SubscriptionListing()
    entries: list[SubscriptionEntry] = []
    for item in raw_entries:
        try:
            entries.append(SubscriptionEntry.model_validate(item))
        except ValidationError:
            _logger.debug("Malformed subscription entry skipped: %r", item)
    return SubscriptionListing(entries=entries)


async def register(transport: Transport, path: str, subscription_id: int) -> None:
    await transport.fetch(register_path(path, subscription_id), "POST")


async def fetch_listing(transport: Transport, subscription_id: int) -> SubscriptionListing:
    raw = await transport.fetch(listing_path(subscription_id))
    return parse_listing(raw)


async def is_subscribed(transport: Transport, path: str, subscription_id: int) -> bool:
    """Read the listing back and check *path* by case-insensitive match."""
    listing = await fetch_listing(transport, subscription_id)
    return listing.contains(path)
