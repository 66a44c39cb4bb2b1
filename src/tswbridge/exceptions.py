"""Custom exception hierarchy for tswbridge."""

from __future__ import annotations


class TswError(Exception):
    """Base exception for all tswbridge errors."""


class TswConfigError(TswError):
    """Invalid or missing configuration.

    Raised at startup when no ``CommAPIKey.txt`` can be found; the bridge
    must not start serving without a key.
    """


class TswTransportError(TswError):
    """Upstream unavailable (network failure, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)


class TswUpstreamError(TswTransportError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, status_code: int, path: str) -> None:
        super().__init__(f"TSW {status_code}: {path}", status_code=status_code, path=path)


class TswAssemblyError(TswError):
    """Unexpected structural failure while building a status snapshot."""
