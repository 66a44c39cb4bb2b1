"""Source refresh loop.

Each upstream group is re-fetched on its own period by its own task.
Reads never wait on an in-flight request: consumers only ever see the
group cache.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from tswbridge import _constants as const
from tswbridge._api import subscription as _subscription_api
from tswbridge._api.groups import group_path
from tswbridge._cache import GroupCache
from tswbridge._transport import Transport
from tswbridge.config import BridgeConfig
from tswbridge.exceptions import TswError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GroupSpec:
    """A named upstream group, where to read it and how often."""

    name: str
    path: str
    period: float


def build_group_specs(config: BridgeConfig) -> list[GroupSpec]:
    """Return the groups the bridge refreshes for *config*.

    Fast groups: the HUD functions (one subscription readback, or one
    ``/get`` per function when subscriptions are disabled) and the
    driver-aid aggregate.  Heavy group: the track-data aggregate.
    """
    specs: list[GroupSpec] = []
    if config.use_subscription:
        specs.append(
            GroupSpec(
                name=const.SUBSCRIPTION_GROUP,
                path=_subscription_api.listing_path(config.subscription_id),
                period=config.fast_period,
            )
        )
    else:
        specs.extend(
            GroupSpec(name=function, path=group_path(function), period=config.fast_period)
            for function in const.HUD_FUNCTIONS
        )
    specs.append(
        GroupSpec(
            name=const.DRIVER_AID_GROUP,
            path=group_path(const.DRIVER_AID_GROUP),
            period=config.fast_period,
        )
    )
    specs.append(
        GroupSpec(
            name=const.TRACK_DATA_GROUP,
            path=group_path(const.TRACK_DATA_GROUP),
            period=config.heavy_period,
        )
    )
    return specs


class SourceRefresher:
    """Run one periodic refresh task per group and keep the cache current."""

    def __init__(
        self,
        transport: Transport,
        cache: GroupCache,
        groups: Iterable[GroupSpec],
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._groups = list(groups)
        self._sleep = sleep
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def groups(self) -> list[GroupSpec]:
        return list(self._groups)

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    async def refresh(self, spec: GroupSpec) -> bool:
        """Refresh one group once.  Failures keep the previous value."""
        try:
            value = await self._transport.fetch(spec.path)
        except TswError as exc:
            streak = self._cache.record_failure(spec.name, exc)
            _logger.debug("Refresh of %s failed (%d in a row): %s", spec.name, streak, exc)
            return False

        recovered_after = self._cache.store(spec.name, value)
        if recovered_after:
            _logger.info("Refresh of %s recovered after %d failures", spec.name, recovered_after)
        return True

    async def _run(self, spec: GroupSpec) -> None:
        while True:
            try:
                await self.refresh(spec)
            except Exception:
                _logger.exception("Unexpected error refreshing %s", spec.name)
            await self._sleep(spec.period)

    def start(self) -> None:
        """Spawn refresh tasks for every group not already running."""
        for spec in self._groups:
            task = self._tasks.get(spec.name)
            if task is not None and not task.done():
                continue
            self._tasks[spec.name] = asyncio.create_task(self._run(spec), name=f"tswbridge-refresh-{spec.name}")

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
