"""
Non-real-time simulation of composition timelines.
"""

from __future__ import annotations

from .simulator import NrtSimulator, NrtState, execute_scheduled_action
from .snapshots import (
    CompositionSnapshot,
    SimulationFrame,
    SimulationTable,
    Topology,
    capture_topology,
    is_anything_playing,
    record_frame,
)

__all__ = [
    "CompositionSnapshot",
    "NrtSimulator",
    "NrtState",
    "SimulationFrame",
    "SimulationTable",
    "Topology",
    "capture_topology",
    "execute_scheduled_action",
    "is_anything_playing",
    "record_frame",
]
