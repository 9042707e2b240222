"""Tests for the PIL-based surface and key renderers."""

from PIL import Image

from minigame.renderer import (
    CanvasSurface,
    ImageNode,
    TextNode,
    render_frame_tiles,
    render_text_button,
    timer_color,
)


def test_render_text_button_returns_pil_image():
    """render_text_button should return a 96x96 PIL Image."""
    img = render_text_button(size=(96, 96), lines=["42"], bg_color="#22c55e")
    assert isinstance(img, Image.Image)
    assert img.size == (96, 96)


def test_render_text_button_different_colors():
    """Different background colors should produce different images."""
    green = render_text_button(size=(96, 96), lines=["OK"], bg_color="#22c55e")
    red = render_text_button(size=(96, 96), lines=["OK"], bg_color="#ef4444")
    assert green.tobytes() != red.tobytes()


def test_render_text_button_blank():
    img = render_text_button(size=(96, 96), lines=None, bg_color="#000000")
    assert img.getpixel((48, 48)) == (0, 0, 0)


def test_timer_color_thresholds():
    """timer_color should go green -> orange -> red as time runs down."""
    assert timer_color(60) == "#27ae60"
    assert timer_color(31) == "#27ae60"
    assert timer_color(30) == "#f39c12"
    assert timer_color(11) == "#f39c12"
    assert timer_color(10) == "#e74c3c"
    assert timer_color(0) == "#e74c3c"


def test_frame_tiles_are_row_major():
    img = Image.new("RGB", (8, 4), "black")
    img.paste((255, 0, 0), (6, 0, 8, 2))  # top-right corner
    tiles = render_frame_tiles(img, cols=4, rows=2, key_size=(10, 10))
    assert len(tiles) == 8
    assert all(t.size == (10, 10) for t in tiles)
    r, g, _ = tiles[3].getpixel((5, 5))
    assert r > 150 and g < 60
    assert tiles[4].getpixel((5, 5)) == (0, 0, 0)


def test_surface_tracks_nodes():
    surface = CanvasSurface(size=(96, 96))
    text = TextNode("score", "Tips Earned: $0")
    surface.add_node(text)
    surface.add_node(text)
    assert surface.nodes == [text]
    assert surface.find("score") is text

    text.destroy()
    text.destroy()
    assert surface.nodes == []
    assert text.destroyed
    assert surface.find("score") is None


def test_surface_redraw_notifies():
    seen = []
    surface = CanvasSurface(size=(96, 96), on_redraw=seen.append)
    surface.request_redraw()
    surface.request_redraw()
    assert surface.redraw_count == 2
    assert seen == [surface, surface]


def test_render_composites_visible_nodes():
    surface = CanvasSurface(size=(20, 20), bg_color="#000000")
    frame = Image.new("RGBA", (4, 4), (0, 0, 255, 255))
    hidden = ImageNode(Image.new("RGBA", (4, 4), (255, 0, 0, 255)), name="hidden", visible=False)
    surface.add_node(ImageNode(frame))
    surface.add_node(hidden)
    img = surface.render()
    assert img.size == (20, 20)
    r, _, b = img.getpixel((10, 10))
    assert b > 240 and r < 15
    assert hidden not in surface.visible_nodes()
