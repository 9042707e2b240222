"""PIL-based rendering surface for minigame nodes."""

import threading
from typing import Callable

from PIL import Image, ImageDraw, ImageFont

FONT_PATH = "/System/Library/Fonts/Helvetica.ttc"
BG_DARK = "#111827"

TIMER_GREEN = "#27ae60"
TIMER_ORANGE = "#f39c12"
TIMER_RED = "#e74c3c"


def _font(size: int) -> ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype(FONT_PATH, size)
    except OSError:
        return ImageFont.load_default()


def timer_color(seconds: int) -> str:
    """Green with plenty of time, orange from 30s, red from 10s."""
    if seconds <= 10:
        return TIMER_RED
    if seconds <= 30:
        return TIMER_ORANGE
    return TIMER_GREEN


# ── nodes ────────────────────────────────────────────────────────────

class Node:
    def __init__(self, name: str, visible: bool = True):
        self.name = name
        self.visible = visible
        self.destroyed = False
        self.surface: "CanvasSurface | None" = None

    def destroy(self) -> None:
        """Detach from the surface. Safe to call twice."""
        if self.surface is not None:
            self.surface.remove_node(self)
        self.surface = None
        self.destroyed = True


class ImageNode(Node):
    def __init__(self, image, x: int = 0, y: int = 0,
                 width: int | None = None, height: int | None = None,
                 name: str = "image", visible: bool = True):
        super().__init__(name, visible)
        self.image = image
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class TextNode(Node):
    def __init__(self, name: str, text: str = "", color: str = "white",
                 font_size: int = 18, visible: bool = True):
        super().__init__(name, visible)
        self.text = text
        self.color = color
        self.font_size = font_size


# ── surface ──────────────────────────────────────────────────────────

class CanvasSurface:
    """Holds nodes and composites them onto a Pillow canvas.

    ``request_redraw()`` only counts and notifies ``on_redraw``; the
    actual compositing happens in ``render()``.
    """

    def __init__(self, size: tuple[int, int] = (768, 384), bg_color: str = BG_DARK,
                 on_redraw: Callable[["CanvasSurface"], None] | None = None):
        self.size = size
        self.bg_color = bg_color
        self.on_redraw = on_redraw
        self.nodes: list[Node] = []
        self.redraw_count = 0
        self.lock = threading.RLock()

    def add_node(self, node: Node) -> None:
        with self.lock:
            node.surface = self
            if node not in self.nodes:
                self.nodes.append(node)

    def remove_node(self, node: Node) -> None:
        with self.lock:
            if node in self.nodes:
                self.nodes.remove(node)

    def find(self, name: str) -> Node | None:
        with self.lock:
            for node in self.nodes:
                if node.name == name:
                    return node
        return None

    def request_redraw(self) -> None:
        with self.lock:
            self.redraw_count += 1
        if self.on_redraw:
            self.on_redraw(self)

    def visible_nodes(self) -> list[Node]:
        with self.lock:
            return [n for n in self.nodes if n.visible and not n.destroyed]

    def render(self) -> Image.Image:
        """Composite visible nodes: images first, text lines stacked on top."""
        img = Image.new("RGB", self.size, self.bg_color)
        nodes = self.visible_nodes()

        for node in nodes:
            if isinstance(node, ImageNode) and node.image is not None:
                w = node.width or self.size[0]
                h = node.height or self.size[1]
                frame = node.image.convert("RGBA").resize((w, h), Image.LANCZOS)
                img.paste(frame, (node.x, node.y), frame)

        texts = [n for n in nodes if isinstance(n, TextNode) and n.text]
        if texts:
            draw = ImageDraw.Draw(img)
            y = 12
            for node in texts:
                for line in node.text.split("\n"):
                    draw.text((self.size[0] // 2, y), line, font=_font(node.font_size),
                              fill=node.color, anchor="mt")
                    y += node.font_size + 6
        return img


def render_frame_tiles(image: Image.Image, cols: int, rows: int,
                       key_size: tuple[int, int] = (96, 96)) -> list[Image.Image]:
    """Scale an image over a cols x rows key grid and cut it into key tiles.

    Tiles are returned row by row, matching Stream Deck key order.
    """
    kw, kh = key_size
    full = image.convert("RGB").resize((kw * cols, kh * rows), Image.LANCZOS)
    tiles = []
    for r in range(rows):
        for c in range(cols):
            tiles.append(full.crop((c * kw, r * kh, (c + 1) * kw, (r + 1) * kh)))
    return tiles


def render_text_button(
    size: tuple[int, int] = (96, 96),
    lines: list[str] | None = None,
    bg_color: str = "#1e3a5f",
    font_sizes: list[int] | None = None,
    colors: list[str] | None = None,
) -> Image.Image:
    """Render a text-only key — big readable text, no icon.

    lines: up to 4 lines of text, centered vertically
    font_sizes: per-line font sizes (default depends on line count)
    colors: per-line colors (default: white, then progressively dimmer)
    """
    img = Image.new("RGB", size, bg_color)
    if not lines:
        return img

    draw = ImageDraw.Draw(img)
    n = len(lines)

    if not font_sizes:
        font_sizes = {1: [22], 2: [18, 14], 3: [16, 13, 11]}.get(n, [14, 12, 10, 9])
    font_sizes = list(font_sizes)

    if not colors:
        palette = ["#ffffff", "#dddddd", "#aaaaaa", "#888888"]
        colors = palette[:n]
    colors = list(colors)

    while len(font_sizes) < n:
        font_sizes.append(font_sizes[-1])
    while len(colors) < n:
        colors.append(colors[-1])

    fonts = [_font(s) for s in font_sizes]
    line_heights = [f.getbbox("Ag")[3] - f.getbbox("Ag")[1] for f in fonts]
    spacing = 4
    total_h = sum(line_heights) + spacing * (n - 1)
    y = (size[1] - total_h) // 2

    for i, text in enumerate(lines):
        draw.text((size[0] // 2, y), text, font=fonts[i], fill=colors[i], anchor="mt")
        y += line_heights[i] + spacing

    return img
