"""
Action schedule model for non-real-time playback.

Host applications hand over timestamped control actions; this module turns
them into an immutable, frame-indexed schedule ordered by timestamp.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

LOG = logging.getLogger(__name__)

# upper bound for frame indices; timestamps beyond it clamp here
MAX_FRAME = sys.maxsize


class TimelineError(RuntimeError):
    """Base class for timeline related errors."""


class NotReadyError(TimelineError):
    """Raised when the composition runtime is requested before it is loaded."""


class InvalidCommand(TimelineError):
    """Raised when an unsupported or malformed action is requested."""


class StaleGeneration(TimelineError):
    """Raised when an operation targets a simulation table that was replaced."""


class ActionType(str, Enum):
    """Control actions a schedule may carry."""

    PLAY = "play"
    STOP = "stop"
    UPDATE = "update"

    @classmethod
    def parse(cls, value: object) -> "ActionType":
        command = str(value or "").strip()
        if command.endswith("Action"):
            command = command[: -len("Action")]
        command = command.lower()
        for member in cls:
            if member.value == command:
                return member
        raise InvalidCommand(f"Unsupported action type '{value}'")


@dataclass(frozen=True, slots=True)
class ScheduledAction:
    """
    Immutable control action bound to a timestamp and its frame index.
    """

    timestamp_ms: float
    frame: int
    type: ActionType
    params: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timestamp": float(self.timestamp_ms),
            "frame": int(self.frame),
            "action": {"type": self.type.value, "params": dict(self.params)},
        }


ScheduleItem = Union[ScheduledAction, Mapping[str, Any]]


def timestamp_to_frame(timestamp_ms: float, fps: float) -> int:
    """
    Map ``timestamp_ms`` to a frame index, ``floor(timestamp / (1000 / fps))``.

    The product form keeps exact frame boundaries (2000 ms at 30 fps is frame
    60, not 59).
    """

    if fps <= 0:
        raise InvalidCommand(f"fps must be positive, got {fps}")
    scaled = float(timestamp_ms) * float(fps) / 1000.0
    if math.isnan(scaled):
        raise InvalidCommand(f"timestamp must be a number, got {timestamp_ms!r}")
    if scaled <= 0:
        return 0
    if scaled >= MAX_FRAME:
        return MAX_FRAME
    return int(math.floor(scaled))


def frame_to_timestamp(frame: int, fps: float) -> float:
    if fps <= 0:
        raise InvalidCommand(f"fps must be positive, got {fps}")
    return int(frame) * 1000.0 / float(fps)


def coerce_timestamp(value: object) -> float:
    if isinstance(value, bool):
        raise InvalidCommand("timestamp must be a number")
    try:
        timestamp = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidCommand(f"timestamp must be a number, got {value!r}") from None
    if not math.isfinite(timestamp) or timestamp < 0:
        raise InvalidCommand(f"timestamp must be a finite non-negative number, got {value!r}")
    return timestamp


def _parse_item(item: ScheduleItem, fps: float) -> ScheduledAction:
    if isinstance(item, ScheduledAction):
        return ScheduledAction(
            timestamp_ms=item.timestamp_ms,
            frame=timestamp_to_frame(item.timestamp_ms, fps),
            type=item.type,
            params=item.params,
        )
    if not isinstance(item, Mapping):
        raise InvalidCommand(f"schedule entries must be mappings, got {type(item).__name__}")
    if "timestamp" not in item:
        raise InvalidCommand("schedule entry is missing 'timestamp'")
    timestamp = coerce_timestamp(item.get("timestamp"))

    action = item.get("action")
    if isinstance(action, Mapping):
        action_type = ActionType.parse(action.get("type"))
        params = action.get("params") or {}
    else:
        action_type = ActionType.parse(action)
        params = {}
    if not isinstance(params, Mapping):
        raise InvalidCommand("action params must be a mapping")

    return ScheduledAction(
        timestamp_ms=timestamp,
        frame=timestamp_to_frame(timestamp, fps),
        type=action_type,
        params=dict(params),
    )


def normalize_schedule(items: Optional[Iterable[ScheduleItem]], fps: float) -> Tuple[ScheduledAction, ...]:
    """
    Convert host supplied ``{timestamp, action}`` entries into a schedule.

    The result is sorted by timestamp; entries sharing a timestamp keep their
    input order.
    """

    parsed = [_parse_item(item, fps) for item in (items or ())]
    parsed.sort(key=lambda scheduled: scheduled.timestamp_ms)
    LOG.debug("Normalised %d scheduled actions at %s fps", len(parsed), fps)
    return tuple(parsed)


def last_scheduled_frame(schedule: Iterable[ScheduledAction]) -> Optional[int]:
    frames = [scheduled.frame for scheduled in schedule]
    return max(frames) if frames else None


def actions_up_to_frame(schedule: Iterable[ScheduledAction], frame: int) -> Tuple[ScheduledAction, ...]:
    return tuple(scheduled for scheduled in schedule if scheduled.frame <= frame)


def describe_schedule(schedule: Iterable[ScheduledAction]) -> Dict[str, Any]:
    items = [scheduled.to_dict() for scheduled in schedule]
    return {"count": len(items), "items": items}
