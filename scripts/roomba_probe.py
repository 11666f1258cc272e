#!/usr/bin/env python3
"""Local probe for a Roomba on the LAN.

This script uses pyroomba to:
1) identify the robot over UDP,
2) fetch its password if none is given (hold HOME on the robot until it beeps),
3) open the local MQTT session and print every channel update.

Optionally sends one mission command once the robot is online.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyroomba import (  # noqa: E402
    Credential,
    RoombaClient,
    RoombaConfig,
    RoombaError,
    SimpleHost,
    ThingStatus,
    ThingStatusDetail,
)

_LOG = logging.getLogger("roomba_probe")


class ProbeHost(SimpleHost):
    """Prints what the client reports."""

    def __init__(self, *, as_json: bool) -> None:
        super().__init__()
        self._as_json = as_json
        self.online = asyncio.Event()

    def update_status(
        self,
        status: ThingStatus,
        detail: ThingStatusDetail = ThingStatusDetail.NONE,
        description: str | None = None,
    ) -> None:
        super().update_status(status, detail, description)
        print(f"[probe] status={status} detail={detail} {description or ''}".rstrip())
        if status == ThingStatus.ONLINE:
            self.online.set()
        else:
            self.online.clear()

    def update_state(self, channel: str, value: Any) -> None:
        super().update_state(channel, value)
        ts_text = time.strftime("%H:%M:%S")
        if self._as_json:
            print(json.dumps({"ts": ts_text, "channel": channel, "value": value}))
        else:
            print(f"[probe] {ts_text} {channel:<14} = {value}")

    def update_property(self, name: str, value: str) -> None:
        super().update_property(name, value)
        print(f"[probe] property {name} = {value}")

    def persist_credential(self, credential: Credential) -> None:
        super().persist_credential(credential)
        print("[probe] Robot issued a password; pass it with --password next time:")
        print(f"[probe]   {credential.secret}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Connect to a Roomba on the local network and print its state.",
    )
    parser.add_argument(
        "--address",
        default=os.environ.get("ROOMBA_ADDRESS"),
        help="Robot IP address (default: $ROOMBA_ADDRESS).",
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("ROOMBA_PASSWORD"),
        help="Robot password (default: $ROOMBA_PASSWORD; fetched from the robot when empty).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--command",
        choices=["clean", "spot", "dock", "pause", "stop"],
        help="Mission command to send once the robot is online.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print channel updates as JSON lines.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace, config: RoombaConfig) -> None:
    host = ProbeHost(as_json=args.json)
    async with RoombaClient(config, host) as client:
        if args.command:
            await host.online.wait()
            print(f"[probe] Sending {args.command}")
            client.handle_command("command", args.command)

        if args.duration > 0:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()

        print("[probe] Final channel values")
        for channel, value in sorted(client.synchronizer.snapshot().items()):
            print(f"[probe]   {channel:<14}: {value}")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.address:
        print("[probe] No robot address; use --address or set ROOMBA_ADDRESS", file=sys.stderr)
        return 2

    try:
        config = RoombaConfig.from_env(address=args.address, password=args.password)
    except RoombaError as exc:
        print(f"[probe] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _LOG.debug("Using %r", config)
    try:
        asyncio.run(_run(args, config))
    except KeyboardInterrupt:
        print("[probe] Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
