import pytest

from nrtgraphics.timeline import (
    MAX_FRAME,
    ActionType,
    InvalidCommand,
    ScheduledAction,
    actions_up_to_frame,
    coerce_timestamp,
    frame_to_timestamp,
    last_scheduled_frame,
    normalize_schedule,
    timestamp_to_frame,
)


def test_timestamp_to_frame_keeps_exact_boundaries() -> None:
    assert timestamp_to_frame(0, 30) == 0
    assert timestamp_to_frame(33, 30) == 0
    assert timestamp_to_frame(34, 30) == 1
    assert timestamp_to_frame(2000, 30) == 60
    assert timestamp_to_frame(1000, 25) == 25
    assert timestamp_to_frame(999.9, 25) == 24


def test_timestamp_to_frame_rejects_invalid_fps() -> None:
    with pytest.raises(InvalidCommand):
        timestamp_to_frame(100, 0)


def test_frame_to_timestamp() -> None:
    assert frame_to_timestamp(25, 25) == 1000.0
    assert frame_to_timestamp(0, 30) == 0.0


def test_normalize_sorts_and_assigns_frames() -> None:
    schedule = normalize_schedule(
        [
            {"timestamp": 2000, "action": {"type": "stop"}},
            {"timestamp": 0, "action": {"type": "play"}},
            {"timestamp": 1000, "action": {"type": "update", "params": {"data": {"a": 1}}}},
        ],
        30,
    )

    assert [item.type for item in schedule] == [ActionType.PLAY, ActionType.UPDATE, ActionType.STOP]
    assert [item.frame for item in schedule] == [0, 30, 60]
    assert schedule[1].params == {"data": {"a": 1}}


def test_normalize_is_stable_for_equal_timestamps() -> None:
    schedule = normalize_schedule(
        [
            {"timestamp": 500, "action": {"type": "update", "params": {"data": {"n": 1}}}},
            {"timestamp": 100, "action": {"type": "play"}},
            {"timestamp": 500, "action": {"type": "update", "params": {"data": {"n": 2}}}},
            {"timestamp": 500, "action": {"type": "stop"}},
        ],
        30,
    )

    assert [item.type for item in schedule] == [
        ActionType.PLAY,
        ActionType.UPDATE,
        ActionType.UPDATE,
        ActionType.STOP,
    ]
    assert [item.params.get("data") for item in schedule[1:3]] == [{"n": 1}, {"n": 2}]


def test_frames_are_monotonic_in_timestamp() -> None:
    timestamps = [0, 1, 16.6, 16.7, 33.3, 33.4, 999, 1000, 1001, 4321.5]
    schedule = normalize_schedule(
        [{"timestamp": ts, "action": "play"} for ts in reversed(timestamps)],
        60,
    )

    frames = [item.frame for item in schedule]
    assert frames == sorted(frames)
    assert [item.timestamp_ms for item in schedule] == sorted(timestamps)


def test_action_type_accepts_lifecycle_method_names() -> None:
    assert ActionType.parse("playAction") is ActionType.PLAY
    assert ActionType.parse("stopAction") is ActionType.STOP
    assert ActionType.parse("UPDATE") is ActionType.UPDATE

    with pytest.raises(InvalidCommand):
        ActionType.parse("customAction")


@pytest.mark.parametrize(
    "entry",
    [
        {"action": {"type": "play"}},
        {"timestamp": -1, "action": {"type": "play"}},
        {"timestamp": "soon", "action": {"type": "play"}},
        {"timestamp": True, "action": {"type": "play"}},
        {"timestamp": 0, "action": {"type": "rewind"}},
        {"timestamp": 0, "action": {"type": "update", "params": ["not", "a", "mapping"]}},
        "play",
    ],
)
def test_normalize_rejects_malformed_entries(entry) -> None:
    with pytest.raises(InvalidCommand):
        normalize_schedule([entry], 30)


def test_normalize_recomputes_frames_for_existing_actions() -> None:
    original = ScheduledAction(timestamp_ms=1000, frame=999, type=ActionType.PLAY)

    (item,) = normalize_schedule([original], 25)

    assert item.frame == 25
    assert item.type is ActionType.PLAY


def test_empty_schedule_helpers() -> None:
    assert normalize_schedule(None, 30) == ()
    assert last_scheduled_frame(()) is None


def test_schedule_prefix_and_last_frame() -> None:
    schedule = normalize_schedule(
        [
            {"timestamp": 0, "action": "play"},
            {"timestamp": 1000, "action": "update"},
            {"timestamp": 2000, "action": "stop"},
        ],
        30,
    )

    assert last_scheduled_frame(schedule) == 60
    assert [item.frame for item in actions_up_to_frame(schedule, 30)] == [0, 30]
    assert schedule[2].to_dict() == {"timestamp": 2000.0, "frame": 60, "action": {"type": "stop", "params": {}}}


def test_timestamp_to_frame_saturates_on_overflow() -> None:
    assert timestamp_to_frame(1e308, 30) == MAX_FRAME
    assert timestamp_to_frame(float("inf"), 30) == MAX_FRAME


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "Infinity"])
def test_coerce_timestamp_rejects_non_finite_values(value) -> None:
    with pytest.raises(InvalidCommand):
        coerce_timestamp(value)
