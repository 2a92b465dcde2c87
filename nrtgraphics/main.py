"""
Engine process entrypoint.

Resolves the configuration profile, initialises logging and serves the
graphic control API with uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from .api.server import create_app
from .api.state import EngineState
from .config import EngineConfig
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)


async def serve(config: EngineConfig, *, load_on_start: bool = True) -> None:
    """
    Run the control API inside an asyncio loop.

    Parameters
    ----------
    config:
        Resolved engine configuration (bind address included).
    load_on_start:
        Load the profile's scene before accepting requests.
    """

    import uvicorn

    engine_state = EngineState(config=config)
    if load_on_start:
        await engine_state.graphic.load()

    app = create_app(state=engine_state)
    server_config = uvicorn.Config(
        app=app,
        host=config.host,
        port=config.port,
        log_config=None,
        log_level=config.log_level.lower(),
        reload=False,
    )
    server = uvicorn.Server(config=server_config)
    await server.serve()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="nrtgraphics control API server")
    parser.add_argument("--profile", default="default", help="configuration profile to load")
    parser.add_argument("--host", default=None, help="bind host for the API server")
    parser.add_argument("--port", type=int, default=None, help="bind port for the API server")
    parser.add_argument("--scene", default=None, help="scene document overriding the profile's scene")
    parser.add_argument("--no-load", action="store_true", help="wait for an explicit load request")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    config = EngineConfig.from_profile(args.profile)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.scene:
        config.scene = args.scene
    configure_logging(config.log_level)

    try:
        asyncio.run(serve(config, load_on_start=not args.no_load))
    except KeyboardInterrupt:
        LOG.info("Engine interrupted by user.")


if __name__ == "__main__":
    run()
