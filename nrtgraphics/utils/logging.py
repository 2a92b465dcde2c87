"""
Logging setup shared by the server entrypoint and the demo scripts.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where those records go and at which level the ``nrtgraphics``
hierarchy is emitted.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "nrtgraphics"
DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"

# uvicorn's access log is noisy during seek-heavy NRT renders
QUIET_LOGGERS = ("uvicorn.access",)


def resolve_level(level: Union[int, str]) -> int:
    """Map ``"debug"``, ``"INFO"`` or a numeric level onto a logging level."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO, format: Optional[str] = None) -> None:
    """
    Attach a stdout handler to the root logger unless the host already did,
    then apply ``level`` to the package loggers.
    """

    numeric = resolve_level(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=numeric,
            format=format or DEFAULT_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )

    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric)
    if numeric > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
