"""Tests for SFX synthesis and the afplay-backed sound engine."""

import os
import wave
from unittest.mock import MagicMock, patch

from minigame.config import Settings
from minigame.sound import MAX_CONCURRENT, SFX, SoundEngine, generate_sfx


def test_generate_sfx_writes_wavs(tmp_path):
    paths = generate_sfx(str(tmp_path / "sfx"))
    assert set(paths) == set(SFX)
    with wave.open(paths["correct"]) as w:
        assert w.getnchannels() == 1
        assert w.getframerate() == 22050
        assert w.getnframes() > 0


def _engine(tmp_path, **settings):
    engine = SoundEngine(Settings(**settings))
    engine.sfx = generate_sfx(str(tmp_path))
    return engine


def test_play_uses_settings_volume(tmp_path):
    engine = _engine(tmp_path, volume=0.5)
    with patch("minigame.sound.subprocess.Popen") as mock_popen:
        engine.play("correct")
        cmd = mock_popen.call_args[0][0]
        assert cmd[:3] == ["afplay", "-v", "0.50"]
        assert cmd[3].endswith("correct.wav")


def test_play_respects_mute_and_sfx_toggle(tmp_path):
    with patch("minigame.sound.subprocess.Popen") as mock_popen:
        _engine(tmp_path, muted=True).play("correct")
        _engine(tmp_path, sfx_enabled=False).play("correct")
        _engine(tmp_path, volume=0).play("correct")
        mock_popen.assert_not_called()


def test_unknown_effect_is_ignored(tmp_path):
    with patch("minigame.sound.subprocess.Popen") as mock_popen:
        _engine(tmp_path).play("fanfare")
        mock_popen.assert_not_called()


def test_oldest_player_killed_when_too_many(tmp_path):
    engine = _engine(tmp_path)
    procs = [MagicMock() for _ in range(MAX_CONCURRENT + 1)]
    for p in procs:
        p.poll.return_value = None
    with patch("minigame.sound.subprocess.Popen", side_effect=procs):
        for _ in procs:
            engine.play("tick")
    procs[0].kill.assert_called_once()
    assert len(engine._processes) == MAX_CONCURRENT


def test_missing_player_is_not_fatal(tmp_path):
    engine = _engine(tmp_path)
    with patch("minigame.sound.subprocess.Popen", side_effect=FileNotFoundError("afplay")):
        engine.play("wrong")
    assert engine._processes == []


def test_prepare_and_close():
    engine = SoundEngine(Settings())
    assert engine.prepare()
    assert set(engine.sfx) == set(SFX)
    sfx_dir = engine._sfx_dir
    engine.close()
    assert engine.sfx == {}
    assert sfx_dir and not os.path.exists(sfx_dir)
