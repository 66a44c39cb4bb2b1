"""Direct group reads.

Endpoints:
  - /get/<GroupName> (e.g. ``DriverAid.Data``, ``DriverAid.TrackData``)
"""

from __future__ import annotations

from typing import Any

from tswbridge._transport import Transport


def group_path(group: str) -> str:
    return f"/get/{group}"


async def fetch_group(transport: Transport, group: str) -> Any:
    """Fetch one named group; the ``Values`` envelope is already stripped."""
    return await transport.fetch(group_path(group))
