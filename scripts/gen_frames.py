"""Generate the baking intro animation frames using PIL.

No external assets needed — draws an oven with a loaf rising, one step per
frame. Frames are numbered 9-14 to match the default baking config.

Usage:
    uv run python scripts/gen_frames.py
"""

from pathlib import Path

from PIL import Image, ImageDraw

FRAMES_DIR = Path(__file__).parent.parent / "assets" / "frames"
SIZE = (768, 384)
FIRST_FRAME = 9
FRAME_COUNT = 6

BG = "#fdf2e9"
OVEN = "#4b5563"
WINDOW = "#1f2937"
GLOW = "#f59e0b"
DOUGH = "#f5deb3"
CRUST = "#b45309"


def _lerp(a: int, b: int, t: float) -> int:
    return int(a + (b - a) * t)


def draw_frame(step: int, total: int) -> Image.Image:
    """Oven scene at ``step`` of ``total`` — the loaf grows and browns."""
    t = step / max(total - 1, 1)
    img = Image.new("RGB", SIZE, BG)
    d = ImageDraw.Draw(img)

    # Oven body and window
    d.rounded_rectangle([224, 40, 544, 344], radius=18, fill=OVEN)
    d.rounded_rectangle([254, 110, 514, 314], radius=10, fill=WINDOW)
    for i, x in enumerate((284, 334, 384, 434, 484)):
        color = GLOW if i <= step % 5 else "#6b7280"
        d.ellipse([x - 9, 62, x + 9, 80], fill=color)

    # Heating element glow under the loaf
    glow_h = _lerp(2, 8, t)
    d.rectangle([274, 296, 494, 296 + glow_h], fill=GLOW)

    # Loaf: rises from a flat dough ball to a domed, browned loaf
    loaf_h = _lerp(30, 110, t)
    top = 286 - loaf_h
    r = _lerp(0xf5, 0xb4, t)
    g = _lerp(0xde, 0x53, t)
    b = _lerp(0xb3, 0x09, t)
    d.ellipse([314, top, 454, 286 + loaf_h // 3], fill=(r, g, b))
    d.rectangle([314, 256, 454, 290], fill=(r, g, b))

    # Scoring cuts once the crust sets
    if t > 0.5:
        for dx in (-30, 0, 30):
            cx = 384 + dx
            d.line([(cx - 12, top + 28), (cx + 12, top + 12)], fill=CRUST, width=4)

    return img


def main() -> None:
    FRAMES_DIR.mkdir(parents=True, exist_ok=True)
    print(f"Generating {FRAME_COUNT} frames into {FRAMES_DIR}/")
    for i in range(FRAME_COUNT):
        name = f"{FIRST_FRAME + i}.png"
        draw_frame(i, FRAME_COUNT).save(FRAMES_DIR / name)
        print(f"  {name}")
    print(f"Done — {FRAME_COUNT} frames generated.")


if __name__ == "__main__":
    main()
