"""Control API for a hosted graphic."""

from __future__ import annotations

from .server import create_app
from .state import EngineState

__all__ = ["EngineState", "create_app"]
