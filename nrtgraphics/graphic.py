"""
Host-facing graphic lifecycle.

A :class:`Graphic` is loaded, played, updated, stopped and disposed by the
host application.  Playback is tracked as a step counter: ``current_step`` is
``None`` while idle and ``0 <= n < step_count`` while a step is active.  A
graphic with ``step_count == 0`` is continuously live and drives the runtime's
play/pause directly.

Non-real-time hosts instead hand over a schedule with
:meth:`Graphic.set_actions_schedule` and render arbitrary instants with
:meth:`Graphic.go_to_time`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .config import EngineConfig
from .nrt import NrtSimulator, SimulationFrame, SimulationTable
from .runtime import CompositionRuntime, load_runtime
from .timeline import InvalidCommand, NotReadyError

LOG = logging.getLogger(__name__)

RuntimeFactory = Callable[[Any], CompositionRuntime]


@dataclass(frozen=True, slots=True)
class ActionResult:
    status_code: int = 200
    status_message: str = "OK"
    current_step: Optional[int] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_dict(self) -> dict:
        return {
            "statusCode": self.status_code,
            "statusMessage": self.status_message,
            "currentStep": self.current_step,
        }


def _not_accessible(method: str) -> ActionResult:
    return ActionResult(
        status_code=500,
        status_message=f"Could not trigger {method} method, runtime is not accessible",
    )


class Graphic:
    """
    One graphic instance bound to a composition runtime.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        runtime_factory: Optional[RuntimeFactory] = None,
        step_count: Optional[int] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.step_count = max(0, int(self.config.step_count if step_count is None else step_count))
        self._runtime_factory: RuntimeFactory = runtime_factory or load_runtime
        self._runtime: Optional[CompositionRuntime] = None
        self._simulator: Optional[NrtSimulator] = None
        self._current_step: Optional[int] = None

    # ------------------------------------------------------------------ properties

    @property
    def is_loaded(self) -> bool:
        return self._runtime is not None

    @property
    def current_step(self) -> Optional[int]:
        return self._current_step

    @property
    def runtime(self) -> CompositionRuntime:
        if self._runtime is None:
            raise NotReadyError("Composition runtime is not loaded; call load() first")
        return self._runtime

    @property
    def simulator(self) -> NrtSimulator:
        if self._simulator is None:
            raise NotReadyError("Composition runtime is not loaded; call load() first")
        return self._simulator

    # ------------------------------------------------------------------ lifecycle

    async def load(self, params: Optional[Mapping[str, Any]] = None) -> ActionResult:
        params = params or {}
        if self._runtime is not None:
            await self.dispose()

        source = params.get("scene") or self.config.scene_path()
        runtime = self._runtime_factory(source)
        self._runtime = runtime
        self._simulator = NrtSimulator(runtime, max_duration=self.config.max_duration)
        self._current_step = None

        data = params.get("data")
        if data:
            runtime.apply_update(data)
        LOG.info("Graphic loaded (root '%s', %s fps, %d steps)", runtime.root_id, runtime.fps, self.step_count)
        return ActionResult()

    async def dispose(self, _params: Optional[Mapping[str, Any]] = None) -> ActionResult:
        if self._runtime is not None:
            self._runtime.close()
        self._runtime = None
        self._simulator = None
        self._current_step = None
        LOG.info("Graphic disposed")
        return ActionResult()

    async def update_action(self, params: Optional[Mapping[str, Any]] = None) -> ActionResult:
        if self._runtime is None:
            return _not_accessible("update")
        data = (params or {}).get("data")
        if data:
            self._runtime.apply_update(data)
            self._runtime.refresh_render()
        return ActionResult()

    async def custom_action(self, _params: Optional[Mapping[str, Any]] = None) -> ActionResult:
        return ActionResult(status_code=400, status_message="No custom actions supported")

    # ------------------------------------------------------------------ playback

    def resolve_target_step(self, params: Optional[Mapping[str, Any]] = None) -> Optional[int]:
        """
        Resolve the step a play action moves to, or ``None`` when the target
        lies beyond the last step.
        """

        params = params or {}
        goto = params.get("goto")
        if isinstance(goto, int) and not isinstance(goto, bool):
            return None if goto >= self.step_count else max(0, goto)

        delta = params.get("delta")
        if not isinstance(delta, int) or isinstance(delta, bool):
            delta = 1
        current = -1 if self._current_step is None else self._current_step
        target = current + delta
        if target >= self.step_count:
            return None
        return max(0, target)

    async def play_action(self, params: Optional[Mapping[str, Any]] = None) -> ActionResult:
        params = params or {}
        if self._runtime is None:
            return _not_accessible("play")
        runtime = self._runtime
        self._apply_animation_mode(runtime, params)

        if self.step_count == 0:
            await runtime.play()
            return ActionResult(current_step=self._current_step)

        target = self.resolve_target_step(params)
        if target is None:
            LOG.debug("Play beyond the last step; stopping instead.")
            return await self.stop_action(params)

        self._current_step = target
        await runtime.play()
        return ActionResult(current_step=self._current_step)

    async def stop_action(self, params: Optional[Mapping[str, Any]] = None) -> ActionResult:
        params = params or {}
        if self._runtime is None:
            return _not_accessible("stop")
        runtime = self._runtime
        self._apply_animation_mode(runtime, params)

        if self.step_count == 0:
            runtime.pause()
            return ActionResult()

        if self._current_step is None:
            return ActionResult(status_code=400, status_message="Bad request, graphic is not playing")

        self._current_step = None
        await runtime.fire_stop()
        runtime.refresh_render()
        return ActionResult()

    @staticmethod
    def _apply_animation_mode(runtime: CompositionRuntime, params: Mapping[str, Any]) -> None:
        skip = params.get("skipAnimation", params.get("skip_animation"))
        runtime.set_no_animation_mode(skip is True)

    # ------------------------------------------------------------------ non-real-time

    async def set_actions_schedule(self, params: Any) -> SimulationTable:
        """
        Accepts either ``{"schedule": [...]}`` or the list of entries itself.
        """

        if isinstance(params, Mapping):
            if "schedule" not in params:
                raise InvalidCommand("setActionsSchedule requires a 'schedule' list")
            schedule = params.get("schedule")
        else:
            schedule = params
        if schedule is not None and (isinstance(schedule, (str, bytes, Mapping))):
            raise InvalidCommand("schedule must be a list of {timestamp, action} entries")
        return await self.simulator.set_actions_schedule(schedule)

    async def go_to_time(self, params: Any) -> Optional[SimulationFrame]:
        generation = None
        if isinstance(params, Mapping):
            if "timestamp" not in params:
                raise InvalidCommand("goToTime requires a 'timestamp'")
            timestamp = params.get("timestamp")
            generation = params.get("generation")
        else:
            timestamp = params
        return await self.simulator.go_to_time(timestamp, generation=generation)

    def describe(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "loaded": self.is_loaded,
            "stepCount": self.step_count,
            "currentStep": self._current_step,
        }
        if self._runtime is not None:
            payload["runtime"] = self._runtime.describe()
        if self._simulator is not None:
            payload["nrt"] = self._simulator.describe()
        return payload
