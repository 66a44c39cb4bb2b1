"""High-level async bridge tying polling, assembly and broadcast together."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from tswbridge import _constants as const
from tswbridge._cache import GroupCache
from tswbridge._redact import redact_key
from tswbridge._transport import HttpTransport, Transport
from tswbridge.broadcast import Broadcaster
from tswbridge.config import BridgeConfig
from tswbridge.ingestion.refresh import SourceRefresher, build_group_specs
from tswbridge.ingestion.subscriptions import SubscriptionManager
from tswbridge.models.status import StatusSnapshot
from tswbridge.state.assembler import SnapshotAssembler
from tswbridge.state.kinematics import DerivativeTracker

_logger = logging.getLogger(__name__)


class TswBridge:
    """Async telemetry bridge for the game's local API.

    Usage::

        async with TswBridge(config) as bridge:
            snapshot = bridge.build_status()

    Entering the context starts the refresh loop, the subscription retry
    loops (when enabled) and the broadcaster; leaving it cancels all of
    them and closes the HTTP session it created.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self.cache = GroupCache()
        self.tracker = DerivativeTracker()
        self.assembler = SnapshotAssembler(self.cache, self.tracker)
        self.broadcaster = Broadcaster(self.build_status, interval=config.broadcast_interval)
        self._refresher: SourceRefresher | None = None
        self._subscriptions: SubscriptionManager | None = None

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def refresher(self) -> SourceRefresher | None:
        return self._refresher

    @property
    def subscriptions(self) -> SubscriptionManager | None:
        return self._subscriptions

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TswBridge:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        transport = self._transport

        _logger.info(
            "Bridging %s (key %s, %s mode)",
            self._config.upstream_url,
            redact_key(self._config.comm_key),
            "subscription" if self._config.use_subscription else "polling",
        )

        if self._config.use_subscription:
            self._subscriptions = SubscriptionManager(
                transport,
                const.HUD_FUNCTIONS,
                subscription_id=self._config.subscription_id,
                retry_interval=self._config.subscription_retry_interval,
            )
            self._subscriptions.start()

        self._refresher = SourceRefresher(transport, self.cache, build_group_specs(self._config))
        self._refresher.start()
        self.broadcaster.start()

    async def stop(self) -> None:
        await self.broadcaster.stop()
        if self._refresher is not None:
            await self._refresher.stop()
            self._refresher = None
        if self._subscriptions is not None:
            await self._subscriptions.stop()
            self._subscriptions = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def build_status(self) -> StatusSnapshot:
        """Assemble a snapshot from cached data (no network access)."""
        return self.assembler.build()
