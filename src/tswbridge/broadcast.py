"""Periodic snapshot push to attached dashboards."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from tswbridge.models.status import StatusSnapshot

_logger = logging.getLogger(__name__)

STATUS_MESSAGE_TYPE = "status"


class Consumer(Protocol):
    """A live streaming connection (``aiohttp.web.WebSocketResponse`` fits)."""

    @property
    def closed(self) -> bool:
        ...

    async def send_str(self, data: str) -> None:
        ...


def encode_status_message(snapshot: StatusSnapshot) -> str:
    """Serialize *snapshot* as a ``{"type": "status", "data": ...}`` message."""
    return json.dumps(
        {"type": STATUS_MESSAGE_TYPE, "data": snapshot.model_dump(mode="json")},
        separators=(",", ":"),
    )


class Broadcaster:
    """Push a fresh snapshot to every attached consumer on a fixed tick.

    A failing consumer is skipped; it never affects delivery to the others
    or the schedule.  Consumers are detached by whoever attached them.
    """

    def __init__(
        self,
        build: Callable[[], StatusSnapshot],
        *,
        interval: float = 0.15,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._build = build
        self._interval = interval
        self._sleep = sleep
        self._consumers: set[Consumer] = set()
        self._task: asyncio.Task[None] | None = None

    @property
    def consumers(self) -> frozenset[Consumer]:
        return frozenset(self._consumers)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self, consumer: Consumer) -> None:
        self._consumers.add(consumer)
        _logger.info("Consumer attached (%d total)", len(self._consumers))

    def detach(self, consumer: Consumer) -> None:
        if consumer in self._consumers:
            self._consumers.discard(consumer)
            _logger.info("Consumer detached (%d remaining)", len(self._consumers))

    async def _deliver(self, consumer: Consumer, message: str) -> bool:
        if consumer.closed:
            return False
        try:
            await consumer.send_str(message)
        except Exception as exc:
            _logger.debug("Delivery to consumer failed: %s", exc)
            return False
        return True

    async def tick(self) -> int:
        """Run one broadcast; return how many consumers received it."""
        consumers = list(self._consumers)
        if not consumers:
            return 0

        try:
            message = encode_status_message(self._build())
        except Exception:
            _logger.warning("Broadcast tick skipped: snapshot assembly failed", exc_info=True)
            return 0

        results = await asyncio.gather(*(self._deliver(consumer, message) for consumer in consumers))
        return sum(1 for delivered in results if delivered)

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                _logger.exception("Unexpected error in broadcast tick")
            await self._sleep(self._interval)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="tswbridge-broadcast")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
