"""
Composition runtimes driven by the NRT simulator.
"""

from __future__ import annotations

from .base import Composition, CompositionRuntime, Layer
from .keyframe import FrameMarker, KeyframeComposition, KeyframeRuntime, MarkerAction
from .scene import SceneModel, build_runtime, load_runtime, read_scene

__all__ = [
    "Composition",
    "CompositionRuntime",
    "FrameMarker",
    "KeyframeComposition",
    "KeyframeRuntime",
    "Layer",
    "MarkerAction",
    "SceneModel",
    "build_runtime",
    "load_runtime",
    "read_scene",
]
