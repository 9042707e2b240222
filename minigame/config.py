"""Config loader — YAML to dataclasses."""

import threading
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

BAKING_FRAMES = [f"frames/{n}.png" for n in range(9, 15)]


@dataclass
class DeckConfig:
    brightness: int = 80


@dataclass
class AudioConfig:
    volume: float = 0.4
    sfx: bool = True
    muted: bool = False


@dataclass
class IntroConfig:
    frames: list[str] = field(default_factory=list)
    frame_rate: float = 2
    loop: bool = False


@dataclass
class MinigameConfig:
    title: str = "Minigame"
    problem: str = "division"  # "division" | "multiplication"
    duration: int = 60  # seconds
    shuffles: int = 3
    feedback_delay_ms: int = 800
    skip_delay_ms: int = 100
    max_input_length: int = 5
    reward_per_correct: int = 5
    target_correct: int | None = None
    intro: IntroConfig = field(default_factory=IntroConfig)
    instructions: str = ""


def default_games() -> dict[str, MinigameConfig]:
    return {
        "baking": MinigameConfig(
            title="Baking Minigame - Solve Problems for Tips!",
            problem="division",
            duration=60,
            feedback_delay_ms=800,
            intro=IntroConfig(frames=list(BAKING_FRAMES), frame_rate=2, loop=False),
            instructions=(
                "Solve as many division problems as you can within the time "
                "limit to earn bonus tips!\n\nType your answer and press ENTER.\n\n"
                "Each correct answer gives you $5 tip.\nGood luck!"
            ),
        ),
        "cleaning": MinigameConfig(
            title="CLEAN UP TIME!",
            problem="multiplication",
            duration=45,
            feedback_delay_ms=500,
            instructions="Solve multiplication problems to clean the dishes!",
        ),
    }


@dataclass
class AppConfig:
    deck: DeckConfig = field(default_factory=DeckConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    assets_dir: str = "assets"
    games: dict[str, MinigameConfig] = field(default_factory=default_games)


class Settings:
    """Shared audio settings, passed explicitly to whoever needs them."""

    def __init__(self, volume: float = 0.4, sfx_enabled: bool = True, muted: bool = False):
        self.lock = threading.Lock()
        self._volume = 0.0
        self.sfx_enabled = sfx_enabled
        self.muted = muted
        self.volume = volume

    @classmethod
    def from_config(cls, audio: AudioConfig) -> "Settings":
        return cls(volume=audio.volume, sfx_enabled=audio.sfx, muted=audio.muted)

    @property
    def volume(self) -> float:
        with self.lock:
            return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        with self.lock:
            self._volume = min(1.0, max(0.0, float(value)))

    @property
    def audible(self) -> bool:
        return not self.muted and self.volume > 0


def _game_config(raw: dict, base: MinigameConfig | None) -> MinigameConfig:
    raw = dict(raw)
    known = {f.name for f in fields(MinigameConfig)}
    intro_raw = raw.pop("intro", None)
    values = {k: v for k, v in raw.items() if k in known}
    game = replace(base, **values) if base else MinigameConfig(**values)
    if intro_raw is not None:
        game.intro = replace(game.intro, **intro_raw)
    return game


def load_config(path: Path) -> AppConfig:
    """Load config from YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    deck = DeckConfig(**{k: v for k, v in (raw.get("deck") or {}).items()})
    audio = AudioConfig(**{k: v for k, v in (raw.get("audio") or {}).items()})

    games = default_games()
    for name, game_raw in (raw.get("games") or {}).items():
        games[name] = _game_config(game_raw or {}, games.get(name))

    return AppConfig(
        deck=deck,
        audio=audio,
        assets_dir=raw.get("assets_dir", "assets"),
        games=games,
    )
