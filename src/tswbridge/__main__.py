"""Command-line entry point: ``tswbridge`` / ``python -m tswbridge``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from aiohttp import web

from tswbridge.client import TswBridge
from tswbridge.config import BridgeConfig
from tswbridge.exceptions import TswConfigError
from tswbridge.server import create_app

_logger = logging.getLogger("tswbridge")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tswbridge",
        description="Republish live Train Sim World driver data to a browser dashboard.",
    )
    parser.add_argument("--host", help="Bind address (default: 0.0.0.0 or TSW_HOST)")
    parser.add_argument("--port", type=int, help="Listen port (default: 8080 or TSW_PORT)")
    parser.add_argument("--upstream", dest="upstream_url", help="Game API base URL")
    parser.add_argument("--static-dir", help="Directory containing the dashboard index.html")
    parser.add_argument("--documents-dir", help="Folder holding the TrainSimWorld* game folders")
    parser.add_argument(
        "--poll",
        action="store_true",
        help="Poll HUD functions directly instead of using an upstream subscription",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {
        name: value
        for name, value in (
            ("host", args.host),
            ("port", args.port),
            ("upstream_url", args.upstream_url),
            ("static_dir", args.static_dir),
        )
        if value is not None
    }
    if args.poll:
        overrides["use_subscription"] = False

    try:
        config = BridgeConfig.from_env(documents_dir=args.documents_dir, **overrides)
    except TswConfigError as exc:
        _logger.error("Cannot start: %s", exc)
        return 1

    bridge = TswBridge(config)
    _logger.info("Bridge running at http://localhost:%d", config.port)
    web.run_app(create_app(bridge), host=config.host, port=config.port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
