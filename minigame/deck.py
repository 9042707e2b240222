"""Stream Deck host for a minigame session.

Layout (8x4 = 32 keys):
  Row 1 (0-7):   HUD — title, score, timer, shuffle, ..., exit
  Row 2 (8-15):  problem / input / feedback, choice prompt, results
  Row 3 (16-23): digits 1-5 (PLAY / SKIP / CONTINUE outside the round)
  Row 4 (24-31): digits 6-0, DEL, ENTER

While the intro animation plays, its frame is spread across all keys.
"""

import logging
import textwrap
from typing import Callable

from PIL import Image
from StreamDeck.DeviceManager import DeviceManager
from StreamDeck.ImageHelpers import PILHelper

from minigame.inputs import InputBus, delete, digit, submit
from minigame.renderer import (
    CanvasSurface,
    ImageNode,
    TextNode,
    render_frame_tiles,
    render_text_button,
)
from minigame.session import Choice, MinigameSession, SessionState

logger = logging.getLogger(__name__)

SIZE = (96, 96)
COLS, ROWS = 8, 4
KEY_COUNT = COLS * ROWS

BG_KEY = "#111827"
BG_HUD = "#1e293b"
BG_BUTTON = "#065f46"
BG_DANGER = "#7c2d12"

# text node name -> keys its lines spill over, in order
NODE_KEYS = {
    "title": [0],
    "score": [1],
    "timer": [2],
    "shuffles": [3],
    "problem": [9, 10],
    "input": [12],
    "feedback": [13, 14],
    "choice": [8, 9, 10, 11],
    "instructions": [12, 13, 14, 15],
    "results": [8, 9, 10, 11, 12, 13, 14, 15],
}

DIGIT_KEYS = {
    17: "1", 18: "2", 19: "3", 20: "4", 21: "5",
    25: "6", 26: "7", 27: "8", 28: "9", 29: "0",
}
DELETE_KEY = 30
ENTER_KEY = 31
SHUFFLE_KEY = 3
EXIT_KEY = 7
PLAY_KEY = 19
SKIP_KEY = 20
CONTINUE_KEY = 20


def find_deck():
    """Find first visual Stream Deck device."""
    decks = DeviceManager().enumerate()
    for deck in decks:
        if deck.is_visual():
            return deck
    return None


def _key_chunks(text: str, keys: int, width: int = 10, per_key: int = 3) -> list[list[str]]:
    lines = []
    for line in text.split("\n"):
        if line.strip():
            lines.extend(textwrap.wrap(line, width) or [line])
    chunks = [lines[i:i + per_key] for i in range(0, len(lines), per_key)]
    return chunks[:keys]


class DeckSurface(CanvasSurface):
    """Canvas surface that mirrors itself onto the deck keys on every redraw."""

    def __init__(self, deck, label_source: Callable[[], dict[int, tuple[str, str]]] | None = None):
        super().__init__(size=(SIZE[0] * COLS, SIZE[1] * ROWS))
        self.deck = deck
        self.label_source = label_source

    def set_key(self, pos: int, img: Image.Image):
        native = PILHelper.to_native_key_format(self.deck, img)
        with self.deck:
            self.deck.set_key_image(pos, native)

    def request_redraw(self) -> None:
        super().request_redraw()
        for pos, img in enumerate(self.key_images()):
            self.set_key(pos, img)

    def key_images(self) -> list[Image.Image]:
        """One image per key for the current node state."""
        nodes = self.visible_nodes()
        for node in nodes:
            if isinstance(node, ImageNode) and node.image is not None:
                return render_frame_tiles(node.image, COLS, ROWS, SIZE)

        keys = [render_text_button(SIZE, None, BG_KEY) for _ in range(KEY_COUNT)]
        for node in nodes:
            if not isinstance(node, TextNode) or not node.text:
                continue
            positions = NODE_KEYS.get(node.name, [])
            bg = BG_HUD if positions and positions[0] < COLS else BG_KEY
            for pos, chunk in zip(positions, _key_chunks(node.text, len(positions))):
                keys[pos] = render_text_button(SIZE, chunk, bg, colors=[node.color])

        labels = self.label_source() if self.label_source else {}
        for pos, (label, bg) in labels.items():
            keys[pos] = render_text_button(SIZE, label.split("\n"), bg)
        return keys


class DeckKeypad:
    """Turns key presses into input events and session actions."""

    def __init__(self, deck, session: MinigameSession, inputs: InputBus,
                 on_exit: Callable[[], None] | None = None):
        self.deck = deck
        self.session = session
        self.inputs = inputs
        self.on_exit = on_exit

    def attach(self):
        self.deck.set_key_callback(self.on_key)

    def labels(self) -> dict[int, tuple[str, str]]:
        """Button labels for the session's current state."""
        state = self.session.state
        labels = {EXIT_KEY: ("EXIT", BG_DANGER)}
        if state is SessionState.CHOICE:
            labels[PLAY_KEY] = ("PLAY", BG_BUTTON)
            labels[SKIP_KEY] = ("SKIP", BG_DANGER)
        elif self.session.accepting_input:
            for pos, ch in DIGIT_KEYS.items():
                labels[pos] = (ch, BG_HUD)
            labels[DELETE_KEY] = ("DEL", BG_DANGER)
            labels[ENTER_KEY] = ("ENTER", BG_BUTTON)
            if not self.session.shuffle_budget.exhausted:
                labels[SHUFFLE_KEY] = (f"SHUFFLE\n{self.session.shuffle_budget.remaining}", "#16a085")
        elif state is SessionState.RESULTS:
            labels[CONTINUE_KEY] = ("CONTINUE", BG_BUTTON)
        return labels

    def on_key(self, _deck, key: int, pressed: bool):
        if not pressed:
            return

        if key == EXIT_KEY:
            logger.info("Exit pressed")
            self.session.cleanup()
            if self.on_exit:
                self.on_exit()
            return

        state = self.session.state
        if state is SessionState.CHOICE:
            if key == PLAY_KEY:
                self.session.choose(Choice.PLAY)
            elif key == SKIP_KEY:
                self.session.choose(Choice.SKIP)
        elif self.session.accepting_input:
            if key in DIGIT_KEYS:
                self.inputs.publish(digit(DIGIT_KEYS[key]))
            elif key == DELETE_KEY:
                self.inputs.publish(delete())
            elif key == ENTER_KEY:
                self.inputs.publish(submit())
            elif key == SHUFFLE_KEY:
                self.session.shuffle()
        elif state is SessionState.RESULTS and key == CONTINUE_KEY:
            self.session.acknowledge_results()
