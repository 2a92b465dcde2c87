"""
Contract between the NRT simulator and a composition runtime.

A runtime owns a tree of compositions (each with its own timeline and child
layers) and knows how to advance it one frame at a time.  Concrete engines
subclass :class:`CompositionRuntime`; the base class carries the shared
observer, mode flag and live clock plumbing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence, runtime_checkable

LOG = logging.getLogger(__name__)

RenderCallback = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True, slots=True)
class Layer:
    """
    A child slot of a composition.

    ``child_id`` references another composition in the same runtime.  When
    ``detach_playhead`` is false the child's frame is derived from the parent
    (offset by ``start_frame``).
    """

    name: str = ""
    child_id: Optional[str] = None
    detach_playhead: bool = False
    start_frame: int = 0

    @property
    def is_composition(self) -> bool:
        return self.child_id is not None


@runtime_checkable
class Composition(Protocol):
    """State and per-composition operations the simulator relies on."""

    @property
    def id(self) -> str:
        ...

    @property
    def is_playing(self) -> bool:
        ...

    @property
    def active_frame(self) -> int:
        ...

    @property
    def is_visible(self) -> bool:
        ...

    @property
    def layers(self) -> Sequence[Layer]:
        ...

    def reset(self) -> None:
        ...

    def go_to(self, frame: int) -> None:
        ...

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...

    def execute_composition_action(self) -> None:
        ...

    def execute_frame_actions_before_frame(self, frame: int) -> None:
        ...


class CompositionRuntime:
    """
    Base class for composition runtimes.
    """

    def __init__(self) -> None:
        self._simulator_mode = False
        self._no_animation_mode = False
        self._observer_counter = 0
        self._observers: Dict[int, RenderCallback] = {}
        self._clock_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------ engine hooks

    @property
    def fps(self) -> float:
        raise NotImplementedError

    @property
    def root_id(self) -> str:
        raise NotImplementedError

    def composition(self, composition_id: str) -> Composition:
        raise NotImplementedError

    def reset(self) -> None:
        """
        Restore runtime level state (flags, template data).  Compositions are
        reset separately through :meth:`Composition.reset`.
        """

        raise NotImplementedError

    async def tick(self) -> None:
        raise NotImplementedError

    async def fire_play(self) -> None:
        raise NotImplementedError

    async def fire_stop(self) -> None:
        raise NotImplementedError

    def apply_update(self, data: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def describe(self) -> Dict[str, Any]:
        raise NotImplementedError

    # ------------------------------------------------------------------ modes

    @property
    def root(self) -> Composition:
        return self.composition(self.root_id)

    def is_anything_playing(self) -> bool:
        return self.root.is_playing

    @property
    def simulator_mode(self) -> bool:
        return self._simulator_mode

    def set_simulator_mode(self, enabled: bool) -> None:
        self._simulator_mode = bool(enabled)

    @property
    def no_animation_mode(self) -> bool:
        return self._no_animation_mode

    def set_no_animation_mode(self, enabled: bool) -> None:
        self._no_animation_mode = bool(enabled)

    # ------------------------------------------------------------------ rendering

    def subscribe(self, callback: RenderCallback) -> int:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._observer_counter += 1
        token = self._observer_counter
        self._observers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._observers.pop(token, None)

    def refresh_render(self) -> None:
        """
        Publish the current state to render observers.  Suppressed while the
        runtime is in simulator mode.
        """

        if self._simulator_mode or not self._observers:
            return
        description = self.describe()
        for token, callback in dict(self._observers).items():
            try:
                callback(description)
            except Exception:  # pragma: no cover - observer failures should not kill the runtime
                LOG.exception("Render observer %s failed.", token)

    # ------------------------------------------------------------------ live playback

    @property
    def is_clock_running(self) -> bool:
        return self._clock_task is not None and not self._clock_task.done()

    async def play(self) -> None:
        await self.fire_play()
        self.refresh_render()
        if not self.is_clock_running:
            self._clock_task = asyncio.get_running_loop().create_task(self._run_clock())

    def pause(self) -> None:
        task, self._clock_task = self._clock_task, None
        if task is not None and not task.done():
            task.cancel()

    def close(self) -> None:
        self.pause()
        self._observers.clear()

    async def _run_clock(self) -> None:
        interval = 1.0 / float(self.fps)
        while True:
            await asyncio.sleep(interval)
            if self._simulator_mode:
                continue
            try:
                await self.tick()
            except Exception:
                LOG.exception("Live clock tick failed; stopping the clock.")
                return
            self.refresh_render()
            if not self.is_anything_playing():
                LOG.debug("Nothing is playing; live clock stopped.")
                return
