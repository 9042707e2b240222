"""Tests for config loader — YAML to dataclasses."""

from pathlib import Path

import yaml

from minigame.config import (
    BAKING_FRAMES,
    AppConfig,
    AudioConfig,
    MinigameConfig,
    Settings,
    load_config,
)


def _write(tmp_path: Path, raw: dict) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(raw))
    return path


def test_load_config_parses_sections(tmp_path):
    """load_config should parse YAML into the deck, audio and game dataclasses."""
    raw = {
        "deck": {"brightness": 30},
        "audio": {"volume": 0.7, "sfx": False},
        "assets_dir": "/opt/bakeshop/assets",
        "games": {
            "baking": {"duration": 90, "intro": {"frame_rate": 4}},
            "cleaning": {"target_correct": 8},
        },
    }
    cfg = load_config(_write(tmp_path, raw))
    assert cfg.deck.brightness == 30
    assert cfg.audio.volume == 0.7
    assert cfg.audio.sfx is False
    assert cfg.assets_dir == "/opt/bakeshop/assets"

    baking = cfg.games["baking"]
    assert baking.duration == 90
    assert baking.intro.frame_rate == 4
    # untouched fields keep the built-in game's values
    assert baking.problem == "division"
    assert baking.intro.frames == BAKING_FRAMES
    assert cfg.games["cleaning"].target_correct == 8
    assert cfg.games["cleaning"].problem == "multiplication"


def test_load_config_defaults(tmp_path):
    """Empty file should give the built-in defaults."""
    path = tmp_path / "config.yaml"
    path.write_text("")
    cfg = load_config(path)
    assert cfg.deck.brightness == 80
    assert cfg.audio == AudioConfig()
    assert cfg.assets_dir == "assets"
    assert set(cfg.games) == {"baking", "cleaning"}


def test_baking_defaults():
    """The baking game plays frames 9-14 at 2 fps, once."""
    baking = AppConfig().games["baking"]
    assert baking.duration == 60
    assert baking.feedback_delay_ms == 800
    assert baking.intro.frames == [f"frames/{n}.png" for n in range(9, 15)]
    assert baking.intro.frame_rate == 2
    assert baking.intro.loop is False
    assert baking.target_correct is None


def test_new_game_and_unknown_keys(tmp_path):
    """Games not built in start from MinigameConfig; unknown keys are dropped."""
    raw = {"games": {"sprint": {"problem": "multiplication", "duration": 20, "colour": "red"}}}
    game = load_config(_write(tmp_path, raw)).games["sprint"]
    assert game.problem == "multiplication"
    assert game.duration == 20
    assert game.shuffles == MinigameConfig().shuffles
    assert game.intro.frames == []


def test_defaults_are_not_shared():
    a, b = AppConfig(), AppConfig()
    a.games["baking"].intro.frames.append("extra.png")
    assert "extra.png" not in b.games["baking"].intro.frames


def test_settings_clamps_volume():
    settings = Settings(volume=3)
    assert settings.volume == 1.0
    settings.volume = -0.5
    assert settings.volume == 0.0
    assert not settings.audible


def test_settings_from_config():
    settings = Settings.from_config(AudioConfig(volume=0.25, sfx=False, muted=True))
    assert settings.volume == 0.25
    assert settings.sfx_enabled is False
    assert settings.muted is True
    assert not settings.audible
