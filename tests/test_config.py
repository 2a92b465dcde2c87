"""Tests covering profile loading."""

from __future__ import annotations

import logging

from nrtgraphics.config import ENV_PROFILES_VAR, EngineConfig, load_profiles


def test_bundled_profiles() -> None:
    default = EngineConfig.from_profile("default")
    live = EngineConfig.from_profile("live")

    assert default.step_count == 1
    assert default.max_duration == 10000
    assert default.scene_path().is_file()
    assert live.step_count == 0


def test_environment_override(tmp_path, monkeypatch, caplog) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text(
        "studio:\n"
        "  max_duration: -5\n"
        "  step_count: 3\n"
        "  port: '9000'\n"
        "  colour: red\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(ENV_PROFILES_VAR, str(path))

    with caplog.at_level(logging.WARNING, logger="nrtgraphics.config"):
        config = EngineConfig.from_profile("studio")

    assert config.profile == "studio"
    assert config.max_duration == 0
    assert config.step_count == 3
    assert config.port == 9000
    assert "colour" in caplog.text


def test_unknown_profile_falls_back_to_defaults(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="nrtgraphics.config"):
        config = EngineConfig.from_profile("nope")

    assert config.profile == "nope"
    assert config.step_count == 1
    assert "not found" in caplog.text


def test_missing_or_malformed_profiles_file(tmp_path) -> None:
    assert load_profiles(tmp_path / "missing.yaml") == {}

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    assert load_profiles(listing) == {}


def test_scene_path_keeps_absolute_paths(tmp_path) -> None:
    scene = tmp_path / "custom.yaml"

    assert EngineConfig(scene=str(scene)).scene_path() == scene
    assert EngineConfig(scene="other.yaml").scene_path().name == "other.yaml"
