#!/usr/bin/env python3
"""Fetch every upstream group once and dump the raw JSON.

Useful for discovering which field names a given route or locomotive
actually reports before touching the assembler's resolution chains.

Usage
-----
With the game running (the CommAPIKey is discovered automatically)::

    python scripts/probe_groups.py

Options::

    --json               Output as machine-readable JSON
    --output FILE        Write JSON to FILE instead of stdout
    --group NAME         Extra /get/<NAME> group to probe (repeatable)
    --snapshot           Also print the assembled status snapshot
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from tswbridge import BridgeConfig, DerivativeTracker, SnapshotAssembler  # noqa: E402
from tswbridge._api import subscription as _subscription_api  # noqa: E402
from tswbridge._api.groups import fetch_group  # noqa: E402
from tswbridge._cache import GroupCache  # noqa: E402
from tswbridge._constants import DRIVER_AID_GROUP, HUD_FUNCTIONS, SUBSCRIPTION_GROUP, TRACK_DATA_GROUP  # noqa: E402
from tswbridge._transport import HttpTransport  # noqa: E402
from tswbridge.exceptions import TswError  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def probe(config: BridgeConfig, groups: list[str]) -> dict[str, Any]:
    """Fetch each group plus the subscription listing; keep errors per group."""
    results: dict[str, Any] = {}
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(config, session)
        for group in groups:
            try:
                results[group] = {"raw": await fetch_group(transport, group)}
            except TswError as exc:
                results[group] = {"error": str(exc)}
        try:
            raw = await transport.fetch(_subscription_api.listing_path(config.subscription_id))
            results[SUBSCRIPTION_GROUP] = {"raw": raw}
        except TswError as exc:
            results[SUBSCRIPTION_GROUP] = {"error": str(exc)}
    return results


def _assemble(results: dict[str, Any]) -> dict[str, Any]:
    cache = GroupCache()
    for group, result in results.items():
        if "raw" in result:
            cache.store(group, result["raw"])
    return SnapshotAssembler(cache, DerivativeTracker()).build().model_dump(mode="json")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump raw upstream groups for field discovery.")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write JSON to FILE instead of stdout")
    parser.add_argument("--group", action="append", default=[], help="Extra group to probe")
    parser.add_argument("--snapshot", action="store_true", help="Also assemble a status snapshot")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = BridgeConfig.from_env()
    groups = [DRIVER_AID_GROUP, TRACK_DATA_GROUP, *HUD_FUNCTIONS, *args.group]
    results = await probe(config, groups)

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "upstream": config.upstream_url,
        "groups": results,
    }
    if args.snapshot:
        payload["snapshot"] = _assemble(results)

    if args.json_mode or args.output:
        text = json.dumps(payload, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(text, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(text)
        return

    out: list[str] = [_section("tswbridge probe_groups"), f"  time      : {payload['timestamp']}"]
    for group, result in results.items():
        out.append(_section(group))
        if "error" in result:
            out.append(f"  !! {group} failed: {result['error']}")
        else:
            out.append(json.dumps(result["raw"], indent=2, default=str, ensure_ascii=False))
    if args.snapshot:
        out.append(_section("SNAPSHOT"))
        out.append(json.dumps(payload["snapshot"], indent=2, ensure_ascii=False))
    print("\n".join(out))


if __name__ == "__main__":
    asyncio.run(main())
