"""Bridge configuration for tswbridge."""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from pathlib import Path
from typing import Any

from tswbridge._constants import COMM_KEY_RELATIVE_PATH, GAME_FOLDER_PREFIX, UPSTREAM_URL
from tswbridge.exceptions import TswConfigError

_logger = logging.getLogger(__name__)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _folder_version(name: str) -> int:
    digits = re.sub(r"\D", "", name)
    return int(digits) if digits else 0


def default_documents_dir() -> Path:
    """Return ``<home>/Documents/My Games`` for the current user."""
    home = os.environ.get("HOME") or os.environ.get("USERPROFILE") or str(Path.home())
    return Path(home) / "Documents" / "My Games"


def discover_comm_key(documents_dir: Path | str | None = None) -> tuple[str, str]:
    """Locate the newest game install's ``CommAPIKey.txt`` and read it.

    Game folders (``TrainSimWorld``, ``TrainSimWorld4``, ...) are ordered by
    the number embedded in their name, newest first.  The first folder that
    carries a key file wins.

    Parameters
    ----------
    documents_dir : Path or str, optional
        Directory holding the game folders. Defaults to
        ``~/Documents/My Games``.

    Returns
    -------
    tuple[str, str]
        ``(key, folder_name)``.

    Raises
    ------
    TswConfigError
        When the directory cannot be read or no key file exists.
    """
    base = Path(documents_dir) if documents_dir is not None else default_documents_dir()
    try:
        folders = sorted(
            (entry.name for entry in base.iterdir() if entry.name.startswith(GAME_FOLDER_PREFIX)),
            key=_folder_version,
            reverse=True,
        )
    except OSError as exc:
        raise TswConfigError(f"Cannot scan {base} for CommAPIKey: {exc}") from exc

    for folder in folders:
        key_file = base.joinpath(folder, *COMM_KEY_RELATIVE_PATH)
        if not key_file.is_file():
            continue
        try:
            key = key_file.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise TswConfigError(f"Cannot read {key_file}: {exc}") from exc
        if key:
            return key, folder

    raise TswConfigError(f"No CommAPIKey.txt found under {base}")


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    Parameters
    ----------
    comm_key : str
        Shared secret sent to the game API in the ``DTGCommKey`` header.
    upstream_url : str
        Base URL of the game's local HTTP API.
    request_timeout : float
        Per-request timeout in seconds.
    fast_period : float
        Refresh period for per-cycle groups (speed, handles, driver aid).
    heavy_period : float
        Refresh period for aggregate groups (track data).
    broadcast_interval : float
        Seconds between pushes to attached dashboards.
    use_subscription : bool
        Read HUD functions through an upstream subscription instead of
        polling each function on its own.
    subscription_id : int
        Upstream subscription slot.
    subscription_retry_interval : float
        Backoff between registration attempts for an unconfirmed path.
    host : str
        Address the dashboard server binds to.
    port : int
        Port the dashboard server listens on.
    static_dir : str or None
        Directory holding the dashboard ``index.html``.
    """

    comm_key: str
    upstream_url: str = UPSTREAM_URL
    request_timeout: float = 1.2
    fast_period: float = 0.25
    heavy_period: float = 0.5
    broadcast_interval: float = 0.15
    use_subscription: bool = True
    subscription_id: int = 1
    subscription_retry_interval: float = 0.3
    host: str = "0.0.0.0"
    port: int = 8080
    static_dir: str | None = None

    def __post_init__(self) -> None:
        if not self.comm_key:
            raise TswConfigError("comm_key must be non-empty")
        for name in ("request_timeout", "fast_period", "heavy_period", "broadcast_interval"):
            if getattr(self, name) <= 0:
                raise TswConfigError(f"{name} must be positive")

    @classmethod
    def from_env(cls, *, documents_dir: Path | str | None = None, **overrides: Any) -> BridgeConfig:
        """Create configuration from ``TSW_*`` environment variables.

        Explicit keyword arguments override environment values.  When
        neither supplies ``comm_key`` it is discovered on disk with
        :func:`discover_comm_key`.

        Raises
        ------
        TswConfigError
            When no key is configured and none can be discovered.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "TSW_COMM_KEY": "comm_key",
            "TSW_UPSTREAM_URL": "upstream_url",
            "TSW_HOST": "host",
            "TSW_STATIC_DIR": "static_dir",
        }
        _ENV_FLOAT_MAP = {
            "TSW_REQUEST_TIMEOUT": "request_timeout",
            "TSW_FAST_PERIOD": "fast_period",
            "TSW_HEAVY_PERIOD": "heavy_period",
            "TSW_BROADCAST_INTERVAL": "broadcast_interval",
        }
        _ENV_INT_MAP = {
            "TSW_SUBSCRIPTION_ID": "subscription_id",
            "TSW_PORT": "port",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val
        try:
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    config_kwargs[field_name] = float(val)
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    config_kwargs[field_name] = int(val)
        except ValueError as exc:
            raise TswConfigError(f"Invalid numeric environment value: {exc}") from exc

        if "use_subscription" not in overrides:
            config_kwargs["use_subscription"] = _env_bool(env.get("TSW_USE_SUBSCRIPTION"), True)

        config_kwargs.update(overrides)

        if not config_kwargs.get("comm_key"):
            key, folder = discover_comm_key(documents_dir)
            _logger.info("CommAPIKey loaded from %s", folder)
            config_kwargs["comm_key"] = key

        return cls(**config_kwargs)
