"""Run one minigame session on a Stream Deck."""

import argparse
import logging
import sys
import threading
from pathlib import Path

from minigame.config import AppConfig, Settings, load_config
from minigame.deck import DeckKeypad, DeckSurface, find_deck
from minigame.inputs import InputBus
from minigame.loader import ImageLoader
from minigame.scheduler import ThreadScheduler
from minigame.session import MinigameResult, MinigameSession
from minigame.sound import SoundEngine


def describe(result: MinigameResult | None) -> str:
    if result is None:
        return "Minigame exited early."
    if result.skipped:
        return "Minigame skipped - no tips earned."
    return (f"Earned ${result.reward} in tips! "
            f"({result.correct_answers}/{result.total_problems} correct)")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Bakeshop minigames on a Stream Deck")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--game", default="baking", help="Minigame to run (baking, cleaning)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
    else:
        print(f"Config not found: {config_path}, using defaults")
        config = AppConfig()

    game = config.games.get(args.game)
    if game is None:
        print(f"Unknown game: {args.game} (available: {', '.join(config.games)})")
        return 1

    deck = find_deck()
    if deck is None:
        print("No Stream Deck found. Is it plugged in?")
        return 1

    deck.open()
    deck.reset()
    deck.set_brightness(config.deck.brightness)
    print(f"Connected: {deck.deck_type()} ({deck.key_count()} keys)")

    settings = Settings.from_config(config.audio)
    sound = SoundEngine(settings)
    print("Sound effects: ON" if sound.prepare() else "Sound effects: OFF (generation failed)")

    scheduler = ThreadScheduler()
    inputs = InputBus()
    done = threading.Event()
    outcome: dict[str, MinigameResult] = {}

    def on_complete(result: MinigameResult):
        outcome["result"] = result
        done.set()

    surface = DeckSurface(deck)
    session = MinigameSession(
        surface,
        scheduler,
        on_complete,
        game,
        loader=ImageLoader(config.assets_dir),
        inputs=inputs,
        sound=sound,
    )
    keypad = DeckKeypad(deck, session, inputs, on_exit=done.set)
    surface.label_source = keypad.labels
    keypad.attach()

    session.start()
    try:
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        session.cleanup()
        scheduler.shutdown()
        sound.close()
        deck.reset()
        deck.close()

    print(describe(outcome.get("result")))
    return 0


if __name__ == "__main__":
    sys.exit(main())
