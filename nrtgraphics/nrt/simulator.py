"""
Non-real-time simulation and deterministic seeking.

:meth:`NrtSimulator.set_actions_schedule` simulates the whole composition
tree frame by frame against a schedule of control actions and records a
snapshot of every detached composition per frame.  :meth:`go_to_time` then
restores the state at any timestamp by replaying the schedule prefix and
placing each recorded playhead, without waiting in real time.

Both entry points are serialised through one ``asyncio.Lock`` (FIFO), so a
rebuild and a seek never interleave; every table carries its generation id
and the schedule it was built from.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import DEFAULT_MAX_DURATION
from ..runtime.base import CompositionRuntime
from ..timeline import (
    ActionType,
    ScheduleItem,
    ScheduledAction,
    StaleGeneration,
    actions_up_to_frame,
    coerce_timestamp,
    describe_schedule,
    last_scheduled_frame,
    normalize_schedule,
    timestamp_to_frame,
)
from .snapshots import (
    SimulationFrame,
    SimulationTable,
    capture_topology,
    is_anything_playing,
    record_frame,
)

LOG = logging.getLogger(__name__)


@dataclass
class NrtState:
    last_requested_timestamp_ms: float = 0.0
    schedule: Tuple[ScheduledAction, ...] = ()


async def execute_scheduled_action(runtime: CompositionRuntime, scheduled: ScheduledAction) -> None:
    if scheduled.type is ActionType.PLAY:
        await runtime.fire_play()
    elif scheduled.type is ActionType.STOP:
        await runtime.fire_stop()
    elif scheduled.type is ActionType.UPDATE:
        data = scheduled.params.get("data")
        if data:
            runtime.apply_update(data)


def _group_by_frame(schedule: Iterable[ScheduledAction]) -> Dict[int, List[ScheduledAction]]:
    grouped: Dict[int, List[ScheduledAction]] = defaultdict(list)
    for scheduled in schedule:
        grouped[scheduled.frame].append(scheduled)
    return grouped


class NrtSimulator:
    """
    Simulation table and seek resolver for one composition runtime.
    """

    def __init__(self, runtime: CompositionRuntime, *, max_duration: int = DEFAULT_MAX_DURATION) -> None:
        self._runtime = runtime
        self.max_duration = max(0, int(max_duration))
        self.state = NrtState()
        self._table = SimulationTable()
        self._generation = 0
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------ properties

    @property
    def runtime(self) -> CompositionRuntime:
        return self._runtime

    @property
    def table(self) -> SimulationTable:
        return self._table

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def schedule(self) -> Tuple[ScheduledAction, ...]:
        return self.state.schedule

    # ------------------------------------------------------------------ public API

    async def set_actions_schedule(self, items: Optional[Iterable[ScheduleItem]]) -> SimulationTable:
        """
        Replace the schedule, rebuild the simulation table and re-render the
        last requested timestamp against it.
        """

        schedule = normalize_schedule(items, self._runtime.fps)
        async with self._lock:
            self._generation += 1
            self.state.schedule = schedule
            table = await self._simulate(schedule, self._generation)
            self._table = table
            LOG.info(
                "Simulation generation %d built: %d frames, %d scheduled actions%s",
                table.generation,
                len(table),
                len(schedule),
                " (truncated)" if table.truncated else "",
            )
            await self._seek(self.state.last_requested_timestamp_ms)
        return table

    async def go_to_time(self, timestamp_ms: Any, *, generation: Optional[int] = None) -> Optional[SimulationFrame]:
        """
        Restore the composition state at ``timestamp_ms``.  Returns the
        simulation frame that was applied, or ``None`` when nothing has been
        simulated yet.
        """

        timestamp = coerce_timestamp(timestamp_ms)
        async with self._lock:
            if generation is not None and int(generation) != self._generation:
                raise StaleGeneration(f"expected generation {generation}, current {self._generation}")
            return await self._seek(timestamp)

    # ------------------------------------------------------------------ simulation

    def _reset(self) -> None:
        self._runtime.root.reset()
        self._runtime.reset()

    def _enter_simulation(self) -> bool:
        """Enter simulator mode with animations enabled; returns the previous no-animation flag."""

        no_animation = self._runtime.no_animation_mode
        self._runtime.set_no_animation_mode(False)
        self._runtime.set_simulator_mode(True)
        return no_animation

    def _leave_simulation(self, no_animation: bool) -> None:
        self._runtime.set_simulator_mode(False)
        self._runtime.set_no_animation_mode(no_animation)

    async def _simulate(self, schedule: Tuple[ScheduledAction, ...], generation: int) -> SimulationTable:
        runtime = self._runtime
        topology = capture_topology(runtime)
        by_frame = _group_by_frame(schedule)
        last_frame = last_scheduled_frame(schedule)
        frames: List[SimulationFrame] = []
        truncated = False

        self._reset()
        no_animation = self._enter_simulation()
        try:
            runtime.root.execute_composition_action()
            frame = 0
            while True:
                if frame > self.max_duration:
                    LOG.error("Frame limit exceeded (%d frames); simulation table truncated.", self.max_duration)
                    truncated = True
                    break

                playing = is_anything_playing(runtime, topology)
                if not playing and (last_frame is None or frame > last_frame):
                    break

                for scheduled in by_frame.get(frame, ()):
                    await execute_scheduled_action(runtime, scheduled)

                await runtime.tick()
                frames.append(record_frame(runtime, topology, frame))
                frame += 1

            if not frames:
                frames.append(record_frame(runtime, topology, 0))
        finally:
            self._reset()
            self._leave_simulation(no_animation)

        return SimulationTable(
            generation=generation,
            fps=runtime.fps,
            schedule=schedule,
            frames=tuple(frames),
            truncated=truncated,
            topology=topology,
        )

    # ------------------------------------------------------------------ seeking

    async def _seek(self, timestamp: float) -> Optional[SimulationFrame]:
        self.state.last_requested_timestamp_ms = timestamp
        table = self._table
        if table.is_empty:
            LOG.debug("Seek to %sms ignored; no simulation table yet.", timestamp)
            return None

        runtime = self._runtime
        target_frame = timestamp_to_frame(timestamp, table.fps)
        snapshot_frame = table.resolve(target_frame)
        replay_frame = min(target_frame, snapshot_frame.index)
        compositions = [
            (snapshot, runtime.composition(snapshot.composition_id)) for snapshot in snapshot_frame.snapshots
        ]

        self._reset()
        no_animation = self._enter_simulation()
        try:
            for _snapshot, composition in compositions:
                composition.execute_composition_action()

            for scheduled in actions_up_to_frame(table.schedule, replay_frame):
                await execute_scheduled_action(runtime, scheduled)

            for snapshot, composition in compositions:
                composition.execute_composition_action()
                composition.execute_frame_actions_before_frame(snapshot.frame)
                composition.go_to(snapshot.frame)
                if snapshot.is_visible:
                    composition.show()
                else:
                    composition.hide()
        finally:
            self._leave_simulation(no_animation)

        runtime.refresh_render()
        LOG.debug("Seeked to %sms (frame %d, applied frame %d).", timestamp, target_frame, snapshot_frame.index)
        return snapshot_frame

    def describe(self) -> Dict[str, Any]:
        return {
            "generation": self._generation,
            "lastRequestedTimestamp": self.state.last_requested_timestamp_ms,
            "maxDuration": self.max_duration,
            "schedule": describe_schedule(self.state.schedule),
            "table": self._table.describe(),
        }

