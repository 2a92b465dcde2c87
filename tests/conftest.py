"""Shared builders for runtime and simulator tests."""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

import pytest

from nrtgraphics.runtime import FrameMarker, KeyframeRuntime, Layer, MarkerAction


class CountingRuntime(KeyframeRuntime):
    """Keyframe runtime that counts ticks and yields to the loop on each one."""

    def __init__(self, *args, yield_on_tick: bool = False, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.ticks = 0
        self.yield_on_tick = yield_on_tick

    async def tick(self) -> None:
        self.ticks += 1
        if self.yield_on_tick:
            await asyncio.sleep(0)
        await super().tick()


def build_single_runtime(
    *,
    fps: float = 30,
    duration: int = 300,
    loop: bool = False,
    autoplay: bool = False,
    outro_frame: Optional[int] = None,
    markers: Sequence[FrameMarker] = (),
    fields: Optional[dict] = None,
    runtime_cls=KeyframeRuntime,
    **runtime_kwargs,
) -> KeyframeRuntime:
    """One root composition, hidden until played."""

    runtime = runtime_cls(fps=fps, root_id="main", fields=fields or {"location": "Prague"}, **runtime_kwargs)
    runtime.add_composition(
        "main",
        duration=duration,
        loop=loop,
        autoplay=autoplay,
        visible=False,
        outro_frame=outro_frame,
        markers=markers,
    )
    return runtime


def build_nested_runtime(*, fps: float = 30) -> KeyframeRuntime:
    """
    main
    ├── bg (attached)
    │   └── spark (detached, looping)
    └── panel (detached, started by main at frame 5)
        └── label (attached, 10 frame offset)
    """

    runtime = KeyframeRuntime(fps=fps, root_id="main")
    runtime.add_composition(
        "main",
        duration=100,
        visible=False,
        layers=[
            Layer(name="Background", child_id="bg", detach_playhead=False),
            Layer(name="Panel", child_id="panel", detach_playhead=True),
        ],
        markers=[FrameMarker(frame=5, action=MarkerAction.PLAY_CHILD, target="panel")],
    )
    runtime.add_composition(
        "bg",
        duration=100,
        layers=[Layer(name="Spark", child_id="spark", detach_playhead=True)],
    )
    runtime.add_composition("spark", duration=12, loop=True)
    runtime.add_composition(
        "panel",
        duration=50,
        visible=False,
        layers=[Layer(name="Label", child_id="label", detach_playhead=False, start_frame=10)],
        markers=[
            FrameMarker(frame=1, action=MarkerAction.SHOW),
            FrameMarker(frame=20, action=MarkerAction.SET, values={"title": "Tomorrow"}),
        ],
        properties={"title": "Today"},
    )
    runtime.add_composition("label", duration=30)
    return runtime


def play_stop_schedule(stop_ms: float = 2000) -> list:
    return [
        {"timestamp": 0, "action": {"type": "play"}},
        {"timestamp": stop_ms, "action": {"type": "stop"}},
    ]


@pytest.fixture
def single_runtime() -> KeyframeRuntime:
    return build_single_runtime()


@pytest.fixture
def nested_runtime() -> KeyframeRuntime:
    return build_nested_runtime()
