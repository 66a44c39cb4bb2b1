"""Upstream subscription setup with per-path retry loops.

Each HUD function path gets its own task that registers the path and
reads the listing back until the path shows up.  Values then arrive
through the regular subscription readback group, not through this
module.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable

from tswbridge._api import subscription as _subscription_api
from tswbridge._transport import Transport
from tswbridge.exceptions import TswError

_logger = logging.getLogger(__name__)


class SubscriptionManager:
    """Register and confirm a set of paths against one subscription slot."""

    def __init__(
        self,
        transport: Transport,
        paths: Iterable[str],
        *,
        subscription_id: int = 1,
        retry_interval: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._paths = list(paths)
        self._subscription_id = subscription_id
        self._retry_interval = retry_interval
        self._sleep = sleep
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._confirmed: set[str] = set()
        self._attempts: dict[str, int] = {}

    @property
    def confirmed(self) -> frozenset[str]:
        return frozenset(self._confirmed)

    @property
    def pending(self) -> list[str]:
        return [path for path in self._paths if path not in self._confirmed]

    def attempts(self, path: str) -> int:
        return self._attempts.get(path, 0)

    async def try_subscribe(self, path: str) -> bool:
        """One registration + confirmation round for *path*."""
        self._attempts[path] = self._attempts.get(path, 0) + 1
        try:
            await _subscription_api.register(self._transport, path, self._subscription_id)
            ok = await _subscription_api.is_subscribed(self._transport, path, self._subscription_id)
        except TswError as exc:
            _logger.debug("Subscription attempt %d for %s failed: %s", self._attempts[path], path, exc)
            return False

        if ok:
            self._confirmed.add(path)
            _logger.info("Subscribed %s (subscription %d)", path, self._subscription_id)
        return ok

    async def subscribe_with_retry(self, path: str) -> None:
        """Retry *path* on a fixed backoff until the listing confirms it."""
        while not await self.try_subscribe(path):
            await self._sleep(self._retry_interval)

    def start(self) -> None:
        """Spawn one independent retry loop per unconfirmed path."""
        _logger.info("Setting up subscription %d for %d paths", self._subscription_id, len(self._paths))
        for path in self.pending:
            task = self._tasks.get(path)
            if task is not None and not task.done():
                continue
            self._tasks[path] = asyncio.create_task(
                self.subscribe_with_retry(path),
                name=f"tswbridge-subscribe-{path}",
            )

    async def wait_confirmed(self) -> None:
        """Wait until every started retry loop has finished."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks)

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
