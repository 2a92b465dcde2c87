"""
Scene documents for the keyframe runtime.

A scene is a YAML or JSON document listing compositions by id, the root
composition and the frame rate.  Documents are validated with pydantic before
a :class:`KeyframeRuntime` is built from them.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .base import Layer
from .keyframe import FrameMarker, KeyframeRuntime, MarkerAction

LOG = logging.getLogger(__name__)

SceneSource = Union[str, Path, Mapping[str, Any], "SceneModel"]


class MarkerModel(BaseModel):
    frame: int = Field(ge=0)
    action: MarkerAction
    target: Optional[str] = None
    values: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_target(self) -> "MarkerModel":
        if self.action in (MarkerAction.PLAY_CHILD, MarkerAction.STOP_CHILD) and not self.target:
            raise ValueError(f"marker '{self.action.value}' requires a target composition")
        return self


class LayerModel(BaseModel):
    name: str = ""
    composition: Optional[str] = None
    detach_playhead: bool = Field(default=False, alias="detachPlayhead")
    start_frame: int = Field(default=0, alias="startFrame")
    model_config = ConfigDict(populate_by_name=True)


class CompositionModel(BaseModel):
    id: str
    duration: int = Field(ge=1)
    loop: bool = False
    autoplay: bool = False
    visible: bool = True
    outro_frame: Optional[int] = Field(default=None, ge=0, alias="outroFrame")
    properties: Dict[str, Any] = Field(default_factory=dict)
    layers: List[LayerModel] = Field(default_factory=list)
    markers: List[MarkerModel] = Field(default_factory=list)
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _check_frames(self) -> "CompositionModel":
        if self.outro_frame is not None and self.outro_frame >= self.duration:
            raise ValueError(f"outro frame of '{self.id}' lies beyond its duration")
        for marker in self.markers:
            if marker.frame >= self.duration:
                raise ValueError(f"marker at frame {marker.frame} lies beyond the duration of '{self.id}'")
        return self


class SceneModel(BaseModel):
    name: str = "scene"
    fps: float = Field(gt=0)
    root: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    compositions: List[CompositionModel]

    @model_validator(mode="after")
    def _check_references(self) -> "SceneModel":
        ids = [composition.id for composition in self.compositions]
        if len(ids) != len(set(ids)):
            raise ValueError("composition ids must be unique")
        known = set(ids)
        if self.root not in known:
            raise ValueError(f"root composition '{self.root}' is not defined")
        for composition in self.compositions:
            children = {layer.composition for layer in composition.layers if layer.composition}
            missing = sorted(children - known)
            if missing:
                raise ValueError(f"composition '{composition.id}' embeds unknown compositions: {', '.join(missing)}")
            for marker in composition.markers:
                if marker.target and marker.target not in children:
                    raise ValueError(
                        f"marker target '{marker.target}' is not a child of composition '{composition.id}'"
                    )
        return self


def read_scene(path: Union[str, Path]) -> SceneModel:
    scene_path = Path(path).expanduser()
    with scene_path.open("r", encoding="utf-8") as handle:
        if scene_path.suffix.lower() == ".json":
            document = json.load(handle)
        else:
            document = yaml.safe_load(handle) or {}
    return SceneModel.model_validate(document)


def build_runtime(scene: SceneModel) -> KeyframeRuntime:
    runtime = KeyframeRuntime(fps=scene.fps, root_id=scene.root, fields=scene.fields)
    for composition in scene.compositions:
        runtime.add_composition(
            composition.id,
            duration=composition.duration,
            loop=composition.loop,
            autoplay=composition.autoplay,
            visible=composition.visible,
            outro_frame=composition.outro_frame,
            properties=composition.properties,
            layers=[
                Layer(
                    name=layer.name,
                    child_id=layer.composition,
                    detach_playhead=layer.detach_playhead,
                    start_frame=layer.start_frame,
                )
                for layer in composition.layers
            ],
            markers=[
                FrameMarker(frame=marker.frame, action=marker.action, target=marker.target, values=marker.values)
                for marker in composition.markers
            ],
        )
    reachable = runtime.validate_tree()
    unused = sorted(set(runtime.arena) - set(reachable))
    if unused:
        LOG.warning("Scene '%s' defines unreachable compositions: %s", scene.name, ", ".join(unused))
    return runtime


def load_runtime(source: SceneSource) -> KeyframeRuntime:
    """
    Build a runtime from a scene file path, a raw document or a validated model.
    """

    if isinstance(source, SceneModel):
        scene = source
    elif isinstance(source, Mapping):
        scene = SceneModel.model_validate(dict(source))
    else:
        scene = read_scene(source)
    LOG.debug("Building runtime for scene '%s' (%d compositions)", scene.name, len(scene.compositions))
    return build_runtime(scene)
