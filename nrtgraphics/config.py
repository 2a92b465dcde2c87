"""
Profile based engine configuration.

Profiles live in ``configs/profiles.yaml`` next to this module.  The
``NRTGRAPHICS_PROFILES`` environment variable can point at another YAML file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

LOG = logging.getLogger(__name__)

ENV_PROFILES_VAR = "NRTGRAPHICS_PROFILES"
CONFIG_DIR = Path(__file__).resolve().parent / "configs"
PROFILES_PATH = CONFIG_DIR / "profiles.yaml"
SCENES_DIR = Path(__file__).resolve().parent / "scenes"

DEFAULT_MAX_DURATION = 10000


def profiles_path() -> Path:
    env_path = os.environ.get(ENV_PROFILES_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return PROFILES_PATH


def load_profiles(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    target = path or profiles_path()
    try:
        with target.open("r", encoding="utf-8") as handle:
            profiles = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        LOG.warning("Profiles file %s not found; using built-in defaults.", target)
        return {}
    if not isinstance(profiles, dict):
        LOG.warning("Profiles file %s is not a mapping; ignoring it.", target)
        return {}
    return profiles


@dataclass
class EngineConfig:
    """Top level engine configuration resolved from a named profile."""

    profile: str = "default"
    max_duration: int = DEFAULT_MAX_DURATION
    step_count: int = 1
    scene: str = "weather_forecast.yaml"
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_profile(cls, profile: str = "default", path: Optional[Path] = None) -> "EngineConfig":
        profiles = load_profiles(path)
        values = profiles.get(profile)
        if values is None:
            if profiles:
                LOG.warning("Profile '%s' not found; using built-in defaults.", profile)
            values = {}
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            LOG.warning("Ignoring unknown keys in profile '%s': %s", profile, ", ".join(unknown))
        config = cls(profile=profile, **{k: v for k, v in values.items() if k in known and k != "profile"})
        config.max_duration = max(0, int(config.max_duration))
        config.step_count = max(0, int(config.step_count))
        config.port = int(config.port)
        return config

    def scene_path(self) -> Path:
        candidate = Path(self.scene).expanduser()
        if candidate.is_absolute():
            return candidate
        return SCENES_DIR / candidate
