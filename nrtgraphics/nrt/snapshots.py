"""
Per-frame snapshots of independently timed compositions.

Only compositions with a detached playhead (and the root) are recorded; the
frame of an attached child follows from its parent and is restored by the
runtime when the parent's playhead is placed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..runtime.base import CompositionRuntime
from ..timeline import ScheduledAction, TimelineError


@dataclass(frozen=True, slots=True)
class LayerLink:
    child_id: str
    detach_playhead: bool


@dataclass(frozen=True, slots=True)
class Topology:
    """
    Immutable view of the composition tree captured at simulation time.
    """

    root_id: str
    children: Dict[str, Tuple[LayerLink, ...]]
    detached_ids: Tuple[str, ...]
    all_ids: Tuple[str, ...]


def capture_topology(runtime: CompositionRuntime) -> Topology:
    children: Dict[str, Tuple[LayerLink, ...]] = {}
    detached: List[str] = []
    ordered: List[str] = []

    def visit(composition_id: str, treat_as_detached: bool, path: Tuple[str, ...]) -> None:
        if composition_id in path:
            raise TimelineError(f"composition cycle through '{composition_id}'")
        composition = runtime.composition(composition_id)
        ordered.append(composition_id)
        if treat_as_detached:
            detached.append(composition_id)
        links = tuple(
            LayerLink(child_id=layer.child_id, detach_playhead=bool(layer.detach_playhead))
            for layer in composition.layers
            if layer.child_id is not None
        )
        children[composition_id] = links
        for link in links:
            # Each child is recorded according to its own flag, never the parent's.
            visit(link.child_id, link.detach_playhead, path + (composition_id,))

    visit(runtime.root_id, True, ())
    return Topology(
        root_id=runtime.root_id,
        children=children,
        detached_ids=tuple(detached),
        all_ids=tuple(ordered),
    )


def is_anything_playing(runtime: CompositionRuntime, topology: Topology) -> bool:
    def visit(composition_id: str) -> bool:
        if runtime.composition(composition_id).is_playing:
            return True
        return any(visit(link.child_id) for link in topology.children.get(composition_id, ()))

    return visit(topology.root_id)


@dataclass(frozen=True, slots=True)
class CompositionSnapshot:
    composition_id: str
    frame: int
    is_visible: bool

    def to_dict(self) -> dict:
        return {"compositionId": self.composition_id, "frame": self.frame, "isVisible": self.is_visible}


@dataclass(frozen=True, slots=True)
class SimulationFrame:
    index: int
    snapshots: Tuple[CompositionSnapshot, ...]

    def snapshot_for(self, composition_id: str) -> Optional[CompositionSnapshot]:
        for snapshot in self.snapshots:
            if snapshot.composition_id == composition_id:
                return snapshot
        return None

    def to_dict(self) -> dict:
        return {"index": self.index, "compositions": [snapshot.to_dict() for snapshot in self.snapshots]}


def record_frame(runtime: CompositionRuntime, topology: Topology, index: int) -> SimulationFrame:
    snapshots = []
    for composition_id in topology.detached_ids:
        composition = runtime.composition(composition_id)
        snapshots.append(
            CompositionSnapshot(
                composition_id=composition_id,
                frame=int(composition.active_frame),
                is_visible=bool(composition.is_visible),
            )
        )
    return SimulationFrame(index=index, snapshots=tuple(snapshots))


@dataclass(frozen=True, slots=True)
class SimulationTable:
    """
    Frames recorded by one simulation run together with the schedule they
    were built against.
    """

    generation: int = 0
    fps: float = 0.0
    schedule: Tuple[ScheduledAction, ...] = ()
    frames: Tuple[SimulationFrame, ...] = ()
    truncated: bool = False
    topology: Optional[Topology] = field(default=None, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def is_empty(self) -> bool:
        return not self.frames

    @property
    def last_index(self) -> Optional[int]:
        return len(self.frames) - 1 if self.frames else None

    def resolve(self, frame: int) -> Optional[SimulationFrame]:
        """
        Return the frame at ``frame``, clamping to the last recorded frame.
        """

        if not self.frames:
            return None
        if 0 <= frame < len(self.frames):
            return self.frames[frame]
        if frame < 0:
            return self.frames[0]
        return self.frames[-1]

    def describe(self, *, include_frames: bool = False) -> dict:
        payload = {
            "generation": self.generation,
            "fps": self.fps,
            "length": len(self.frames),
            "truncated": self.truncated,
            "scheduleSize": len(self.schedule),
        }
        if include_frames:
            payload["frames"] = [frame.to_dict() for frame in self.frames]
        return payload
