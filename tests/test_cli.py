"""Tests for the command-line entry point."""

from unittest.mock import patch

from minigame.cli import describe, main
from minigame.session import MinigameResult


def test_describe_results():
    assert describe(None) == "Minigame exited early."
    assert describe(MinigameResult(0, 0, 60, skipped=True)) == "Minigame skipped - no tips earned."
    assert describe(MinigameResult(3, 4, 0, reward=15)) == "Earned $15 in tips! (3/4 correct)"


def test_unknown_game(tmp_path, capsys):
    """An unknown game name should fail before touching the deck."""
    with patch("minigame.cli.find_deck") as mock_find:
        code = main(["--config", str(tmp_path / "missing.yaml"), "--game", "juggling"])
    assert code == 1
    mock_find.assert_not_called()
    out = capsys.readouterr().out
    assert "using defaults" in out
    assert "baking, cleaning" in out


def test_no_deck(tmp_path, capsys):
    with patch("minigame.cli.find_deck", return_value=None):
        code = main(["--config", str(tmp_path / "missing.yaml")])
    assert code == 1
    assert "No Stream Deck found" in capsys.readouterr().out
