"""Quick demo script for the NRT simulator.

Loads a scene, hands over a schedule and prints the reconstructed state at
the requested timestamps, without waiting in real time.

Examples
--------
Play the bundled weather forecast, stop it after three seconds and inspect a
few instants::

    python scripts/demo_nrt_seek.py --play 0 --stop 3000 --at 500 --at 2500 --at 4500

Use another scene document::

    python scripts/demo_nrt_seek.py --scene path/to/scene.yaml --play 0 --at 1000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Iterable

from nrtgraphics.config import EngineConfig
from nrtgraphics.graphic import Graphic
from nrtgraphics.utils.logging import configure_logging


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="nrtgraphics NRT seek demo")
    parser.add_argument("--profile", default="default", help="configuration profile to load")
    parser.add_argument("--scene", default=None, help="scene document (YAML or JSON)")
    parser.add_argument("--play", action="append", type=float, default=[], help="timestamp (ms) of a play action")
    parser.add_argument("--stop", action="append", type=float, default=[], help="timestamp (ms) of a stop action")
    parser.add_argument("--at", action="append", type=float, default=[], help="timestamp (ms) to seek to")
    return parser.parse_args(argv)


def build_schedule(plays: list[float], stops: list[float]) -> list[dict]:
    schedule = [{"timestamp": ts, "action": {"type": "play"}} for ts in plays]
    schedule.extend({"timestamp": ts, "action": {"type": "stop"}} for ts in stops)
    return schedule


async def run_demo(args: argparse.Namespace) -> int:
    config = EngineConfig.from_profile(args.profile)
    if args.scene:
        config.scene = args.scene
    graphic = Graphic(config)
    await graphic.load()

    table = await graphic.set_actions_schedule(build_schedule(args.play, args.stop))
    print(json.dumps({"table": table.describe()}, indent=2))

    for timestamp in args.at or [0.0]:
        frame = await graphic.go_to_time(timestamp)
        compositions = graphic.runtime.describe()["compositions"]
        print(
            json.dumps(
                {
                    "timestamp": timestamp,
                    "appliedFrame": frame.index if frame is not None else None,
                    "compositions": compositions,
                },
                indent=2,
            )
        )

    await graphic.dispose()
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    configure_logging()
    return asyncio.run(run_demo(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
