"""
Deterministic in-memory keyframe runtime.

Compositions are plain state machines over integer frames: a playhead, a
play flag, a visibility flag and a set of frame markers that fire when the
playhead lands on them.  Nothing is drawn; the runtime exists so the NRT
simulator can run headless and so the control API has an engine to drive.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .base import CompositionRuntime, Layer

LOG = logging.getLogger(__name__)


class MarkerAction(str, Enum):
    """Instantaneous effects a frame marker can trigger."""

    STOP = "stop"
    SHOW = "show"
    HIDE = "hide"
    SET = "set"
    PLAY_CHILD = "play_child"
    STOP_CHILD = "stop_child"


@dataclass(frozen=True, slots=True)
class FrameMarker:
    frame: int
    action: MarkerAction
    target: Optional[str] = None
    values: Mapping[str, Any] = field(default_factory=dict)


class KeyframeComposition:
    """
    A composition node.  Children are resolved by id through the owning
    runtime's arena.
    """

    def __init__(
        self,
        arena: Dict[str, "KeyframeComposition"],
        composition_id: str,
        *,
        duration: int,
        layers: Sequence[Layer] = (),
        markers: Sequence[FrameMarker] = (),
        loop: bool = False,
        autoplay: bool = False,
        visible: bool = True,
        outro_frame: Optional[int] = None,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if duration < 1:
            raise ValueError(f"composition '{composition_id}' needs a duration of at least one frame")
        self._arena = arena
        self._id = composition_id
        self.duration = int(duration)
        self._layers: Tuple[Layer, ...] = tuple(layers)
        self.markers: Tuple[FrameMarker, ...] = tuple(sorted(markers, key=lambda marker: marker.frame))
        self.loop = bool(loop)
        self.autoplay = bool(autoplay)
        self.initially_visible = bool(visible)
        self.outro_frame = outro_frame
        self._initial_properties: Dict[str, Any] = dict(properties or {})

        self._active_frame = 0
        self._is_playing = False
        self._is_visible = self.initially_visible
        self._in_outro = False
        self.properties: Dict[str, Any] = copy.deepcopy(self._initial_properties)

    # ------------------------------------------------------------------ state

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def active_frame(self) -> int:
        return self._active_frame

    @property
    def is_visible(self) -> bool:
        return self._is_visible

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return self._layers

    @property
    def last_frame(self) -> int:
        return self.duration - 1

    def children(self) -> Iterator[Tuple[Layer, "KeyframeComposition"]]:
        for layer in self._layers:
            if not layer.is_composition:
                continue
            yield layer, self._arena[layer.child_id]

    # ------------------------------------------------------------------ operations

    def reset(self) -> None:
        self._active_frame = 0
        self._is_playing = False
        self._is_visible = self.initially_visible
        self._in_outro = False
        self.properties = copy.deepcopy(self._initial_properties)
        for _layer, child in self.children():
            child.reset()

    def play(self, *, restart: bool = False) -> None:
        if restart or (not self.loop and self._active_frame >= self.last_frame):
            self.go_to(0)
        self._in_outro = False
        self._is_playing = True
        self._is_visible = True

    def pause(self) -> None:
        self._is_playing = False

    def go_to(self, frame: int) -> None:
        self._active_frame = self._clamp(frame)
        for layer, child in self.children():
            if not layer.detach_playhead:
                child.go_to(self._active_frame - layer.start_frame)

    def show(self) -> None:
        self._is_visible = True

    def hide(self) -> None:
        self._is_visible = False

    def execute_composition_action(self) -> None:
        if self.autoplay:
            self._is_playing = True
            self._is_visible = True

    def execute_frame_actions_before_frame(self, frame: int) -> None:
        """
        Re-apply the instantaneous effects (visibility and property markers)
        of every marker at or before ``frame``.
        """

        for marker in self.markers:
            if marker.frame > frame:
                break
            if marker.action in (MarkerAction.SHOW, MarkerAction.HIDE, MarkerAction.SET):
                self._apply_marker(marker)

    def begin_outro(self) -> bool:
        if self.outro_frame is None:
            return False
        self.go_to(self.outro_frame)
        self._in_outro = True
        self._is_playing = True
        return True

    def next_pause_frame(self) -> int:
        for marker in self.markers:
            if marker.action is MarkerAction.STOP and marker.frame > self._active_frame:
                return marker.frame
        return self.last_frame

    # ------------------------------------------------------------------ stepping

    def advance(self) -> None:
        """
        Advance one frame: move this playhead when playing, then derive the
        frame of attached children and advance detached ones.
        """

        if self._is_playing:
            self._step()
        self._propagate()

    def _step(self) -> None:
        target = self._active_frame + 1
        if target > self.last_frame:
            if self.loop:
                target = 0
            else:
                self._is_playing = False
                if self._in_outro:
                    self._in_outro = False
                    self._is_visible = False
                return
        self._active_frame = target
        for marker in self.markers:
            if marker.frame == target:
                self._apply_marker(marker)

    def _propagate(self) -> None:
        for layer, child in self.children():
            if layer.detach_playhead:
                child.advance()
            else:
                child._active_frame = child._clamp(self._active_frame - layer.start_frame)
                child._propagate()

    def _apply_marker(self, marker: FrameMarker) -> None:
        action = marker.action
        if action is MarkerAction.STOP:
            self._is_playing = False
        elif action is MarkerAction.SHOW:
            self._is_visible = True
        elif action is MarkerAction.HIDE:
            self._is_visible = False
        elif action is MarkerAction.SET:
            self.properties.update(copy.deepcopy(dict(marker.values)))
        elif action is MarkerAction.PLAY_CHILD:
            self._child(marker.target).play(restart=True)
        elif action is MarkerAction.STOP_CHILD:
            self._child(marker.target).pause()

    def _child(self, child_id: Optional[str]) -> "KeyframeComposition":
        for layer, child in self.children():
            if layer.child_id == child_id:
                return child
        raise KeyError(f"composition '{self._id}' has no child '{child_id}'")

    def _clamp(self, frame: int) -> int:
        return max(0, min(self.last_frame, int(frame)))

    def describe(self) -> Dict[str, Any]:
        return {
            "frame": self._active_frame,
            "playing": self._is_playing,
            "visible": self._is_visible,
            "properties": copy.deepcopy(self.properties),
        }


class KeyframeRuntime(CompositionRuntime):
    """
    Runtime over an arena of :class:`KeyframeComposition` nodes.

    Template data applied outside simulator mode becomes the baseline that
    :meth:`reset` restores; data applied while simulating only lives until
    the next reset.
    """

    def __init__(self, *, fps: float, root_id: str, fields: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__()
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self._fps = float(fps)
        self._root_id = root_id
        self.arena: Dict[str, KeyframeComposition] = {}
        self._base_fields: Dict[str, Any] = dict(fields or {})
        self.fields: Dict[str, Any] = copy.deepcopy(self._base_fields)

    def add_composition(self, composition_id: str, **options: Any) -> KeyframeComposition:
        if composition_id in self.arena:
            raise ValueError(f"duplicate composition id '{composition_id}'")
        node = KeyframeComposition(self.arena, composition_id, **options)
        self.arena[composition_id] = node
        return node

    # ------------------------------------------------------------------ engine hooks

    @property
    def fps(self) -> float:
        return self._fps

    @property
    def root_id(self) -> str:
        return self._root_id

    def composition(self, composition_id: str) -> KeyframeComposition:
        try:
            return self.arena[composition_id]
        except KeyError:
            raise KeyError(f"unknown composition '{composition_id}'") from None

    def reset(self) -> None:
        self.fields = copy.deepcopy(self._base_fields)

    async def tick(self) -> None:
        self.composition(self._root_id).advance()

    def is_anything_playing(self) -> bool:
        return any(node.is_playing for node in self.arena.values())

    async def fire_play(self) -> None:
        root = self.composition(self._root_id)
        root.play()
        if self.no_animation_mode:
            target = root.next_pause_frame()
            root.go_to(target)
            root.execute_frame_actions_before_frame(target)
            root.pause()

    async def fire_stop(self) -> None:
        root = self.composition(self._root_id)
        if self.no_animation_mode or not root.begin_outro():
            root.pause()
            root.hide()

    def apply_update(self, data: Union[Mapping[str, Any], str]) -> None:
        if isinstance(data, str):
            data = json.loads(data)
        if not isinstance(data, Mapping):
            raise TypeError("update data must be a mapping")
        payload = copy.deepcopy(dict(data))
        self.fields.update(payload)
        if not self.simulator_mode:
            self._base_fields.update(copy.deepcopy(payload))

    def describe(self) -> Dict[str, Any]:
        return {
            "fps": self._fps,
            "rootId": self._root_id,
            "simulatorMode": self.simulator_mode,
            "noAnimationMode": self.no_animation_mode,
            "fields": copy.deepcopy(self.fields),
            "compositions": {key: node.describe() for key, node in self.arena.items()},
        }

    def validate_tree(self) -> List[str]:
        """
        Return the composition ids reachable from the root, raising when a
        layer references an unknown id, an id is embedded twice or the
        layers form a cycle.
        """

        seen: List[str] = []

        def visit(composition_id: str, path: Tuple[str, ...]) -> None:
            if composition_id in path:
                raise ValueError(f"composition cycle through '{composition_id}'")
            if composition_id in seen:
                raise ValueError(f"composition '{composition_id}' is embedded more than once")
            if composition_id not in self.arena:
                raise ValueError(f"unknown composition '{composition_id}'")
            seen.append(composition_id)
            for layer in self.arena[composition_id].layers:
                if layer.is_composition:
                    visit(layer.child_id, path + (composition_id,))

        visit(self._root_id, ())
        return seen
