"""Tests covering the HTTP control surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import play_stop_schedule
from nrtgraphics.api import EngineState, create_app
from nrtgraphics.config import EngineConfig


@pytest.fixture
def client():
    app = create_app(state=EngineState(config=EngineConfig()))
    with TestClient(app) as test_client:
        yield test_client


def _load(client: TestClient) -> None:
    response = client.post("/graphic/load", json={"data": {"location": "Brno"}})
    assert response.status_code == 200


def test_healthz_reports_profile_and_load_state(client) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "profile": "default", "loaded": False}


def test_profiles_lists_bundled_profiles(client) -> None:
    profiles = client.get("/profiles").json()["profiles"]

    assert {"default", "live", "debug"} <= set(profiles)


def test_nrt_calls_before_load_are_unavailable(client) -> None:
    assert client.post("/graphic/schedule", json={"schedule": play_stop_schedule()}).status_code == 503
    assert client.post("/graphic/seek", json={"timestamp": 0}).status_code == 503
    assert client.post("/graphic/play", json={}).status_code == 500


def test_load_applies_initial_data(client) -> None:
    _load(client)

    state = client.get("/graphic/state").json()
    assert state["profile"] == "default"
    assert state["graphic"]["loaded"] is True
    assert state["graphic"]["runtime"]["fields"]["location"] == "Brno"
    assert client.get("/healthz").json()["loaded"] is True


def test_schedule_then_seek(client) -> None:
    _load(client)

    response = client.post("/graphic/schedule", json={"schedule": play_stop_schedule(3000)})
    assert response.status_code == 200
    table = response.json()["table"]
    assert table["generation"] == 1
    assert table["truncated"] is False
    assert table["scheduleSize"] == 2

    response = client.post("/graphic/seek", json={"timestamp": 50000})
    assert response.status_code == 200
    body = response.json()
    assert body["frame"]["index"] == table["length"] - 1
    assert body["runtime"]["simulatorMode"] is False

    response = client.post("/graphic/seek", json={"timestamp": 1000, "generation": 1})
    assert response.json()["frame"]["index"] == 30


def test_seek_against_stale_generation_conflicts(client) -> None:
    _load(client)
    client.post("/graphic/schedule", json={"schedule": play_stop_schedule(1000)})

    response = client.post("/graphic/seek", json={"timestamp": 0, "generation": 0})

    assert response.status_code == 409


def test_invalid_schedules_are_rejected(client) -> None:
    _load(client)

    response = client.post("/graphic/schedule", json={"schedule": [{"timestamp": 0, "action": {"type": "rewind"}}]})
    assert response.status_code == 400

    response = client.post("/graphic/schedule", json={"schedule": [{"timestamp": -5, "action": {"type": "play"}}]})
    assert response.status_code == 422

    response = client.post("/graphic/seek", json={"timestamp": -1})
    assert response.status_code == 422


def test_step_playback_over_http(client) -> None:
    _load(client)

    assert client.post("/graphic/stop", json={}).status_code == 400

    response = client.post("/graphic/play", json={})
    assert response.status_code == 200
    assert response.json()["currentStep"] == 0

    # the default profile has a single step, so the next play stops the graphic
    response = client.post("/graphic/play", json={"skipAnimation": True})
    assert response.status_code == 200
    assert response.json()["currentStep"] is None


def test_update_and_custom_actions(client) -> None:
    _load(client)

    assert client.post("/graphic/update", json={"data": {"headline": "Rain"}}).status_code == 200
    assert client.get("/graphic/state").json()["graphic"]["runtime"]["fields"]["headline"] == "Rain"

    response = client.post("/graphic/custom")
    assert response.status_code == 400
    assert response.json()["detail"] == "No custom actions supported"


def test_load_reports_scene_problems(client) -> None:
    response = client.post("/graphic/load", json={"scene": "/nonexistent/scene.yaml"})
    assert response.status_code == 404

    response = client.post("/graphic/load", json={"scene": {"fps": 30, "root": "missing", "compositions": []}})
    assert response.status_code == 422


def test_load_accepts_inline_scene(client) -> None:
    scene = {
        "fps": 25,
        "root": "lower-third",
        "compositions": [{"id": "lower-third", "duration": 50, "visible": False}],
    }
    assert client.post("/graphic/load", json={"scene": scene}).status_code == 200

    response = client.post("/graphic/schedule", json={"schedule": play_stop_schedule(1000)})
    assert response.json()["table"]["fps"] == 25
    assert response.json()["table"]["length"] == 26


def test_dispose_unloads_graphic(client) -> None:
    _load(client)

    assert client.post("/graphic/dispose").status_code == 200
    assert client.get("/graphic/state").json()["graphic"]["loaded"] is False
    assert client.post("/graphic/seek", json={"timestamp": 0}).status_code == 503


def test_infinite_timestamps_are_bad_requests(client) -> None:
    _load(client)
    client.post("/graphic/schedule", json={"schedule": play_stop_schedule(1000)})
    headers = {"content-type": "application/json"}

    response = client.post("/graphic/seek", content='{"timestamp": Infinity}', headers=headers)
    assert response.status_code == 400

    body = '{"schedule": [{"timestamp": Infinity, "action": {"type": "play"}}]}'
    response = client.post("/graphic/schedule", content=body, headers=headers)
    assert response.status_code == 400

    # the simulator is still usable afterwards
    response = client.post("/graphic/seek", json={"timestamp": 1e308})
    assert response.status_code == 200
    assert response.json()["frame"]["index"] == 30
