"""
nrtgraphics package.

Hosts broadcast graphics driven through a common lifecycle contract and the
non-real-time (NRT) simulation engine that lets a host seek a nested
animation composition to any timestamp without replaying it in real time.
"""

from __future__ import annotations

from .config import EngineConfig, load_profiles

__all__ = [
    "EngineConfig",
    "load_profiles",
]
