"""
Shared engine state container.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..config import EngineConfig
from ..graphic import Graphic


@dataclass
class EngineState:
    """
    Aggregated state shared between the API and the hosted graphic.
    """

    config: EngineConfig = field(default_factory=EngineConfig)
    graphic: Optional[Graphic] = None

    def __post_init__(self) -> None:
        if self.graphic is None:
            self.graphic = Graphic(self.config)

    @property
    def active_profile(self) -> str:
        return self.config.profile

    def snapshot(self) -> dict:
        return {
            "profile": self.active_profile,
            "graphic": self.graphic.describe(),
        }
