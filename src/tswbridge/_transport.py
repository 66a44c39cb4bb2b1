"""HTTP transport for the game's local API (DTGCommKey auth, envelope unwrap)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from tswbridge._constants import COMM_KEY_HEADER, VALUES_FIELD
from tswbridge._redact import redact_for_log
from tswbridge.config import BridgeConfig
from tswbridge.exceptions import TswTransportError, TswUpstreamError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def fetch(self, path: str, method: str = "GET") -> Any:
        ...


def unwrap_values(body: Any) -> Any:
    """Strip the one-level ``{"Values": ...}`` envelope when present."""
    if isinstance(body, dict) and body.get(VALUES_FIELD) is not None:
        return body[VALUES_FIELD]
    if body is None:
        return {}
    return body


class HttpTransport:
    """Bounded-timeout requests against the upstream API.

    No retries happen here; callers own their retry policy.
    """

    def __init__(self, config: BridgeConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def fetch(self, path: str, method: str = "GET") -> Any:
        """Issue one request and return the (unwrapped) JSON payload.

        Raises
        ------
        TswUpstreamError
            Non-200 response.
        TswTransportError
            Network failure, timeout or a body that is not JSON.
        """
        url = f"{self._config.upstream_url}{path}"
        headers = {COMM_KEY_HEADER: self._config.comm_key}

        _logger.debug("%s %s headers=%s", method, url, redact_for_log(headers))

        try:
            async with self._http.request(method, url, headers=headers, timeout=self._timeout) as resp:
                if resp.status != 200:
                    raise TswUpstreamError(resp.status, path)
                text = await resp.text()
        except TswTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise TswTransportError(f"Request to {path} timed out", path=path) from exc
        except aiohttp.ClientError as exc:
            raise TswTransportError(f"Request to {path} failed: {exc}", path=path) from exc

        if not text.strip():
            return {}
        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TswTransportError(
                f"Invalid JSON from {path}: {text[:200]}",
                status_code=200,
                path=path,
            ) from exc

        return unwrap_values(body)
