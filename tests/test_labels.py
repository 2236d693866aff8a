"""Tests for Pillow-rendered text labels."""

from gridreel.config import TextStyle
from gridreel.labels import MIN_LABEL_SIZE, render_label, save_label

STYLE = TextStyle()


class TestRenderLabel:
    def test_padding_surrounds_text(self):
        small = render_label("Scene", 24, STYLE, padding=0)
        padded = render_label("Scene", 24, STYLE, padding=10)
        assert padded.size == (small.width + 20, small.height + 20)

    def test_box_opacity_and_color(self):
        style = TextStyle(box_color=(0, 0, 255), box_opacity=1.0)
        label = render_label("Scene", 24, style, padding=6)
        assert label.getpixel((0, 0)) == (0, 0, 255, 255)

    def test_shrinks_to_max_width(self):
        label = render_label("Harbor Walk", 96, STYLE, padding=4, max_width=120)
        assert label.width <= 120

    def test_shrinks_to_max_height(self):
        label = render_label("Harbor", 96, STYLE, padding=4, max_height=40)
        assert label.height <= 40

    def test_never_below_minimum_size(self):
        at_min = render_label("Harbor Walk", MIN_LABEL_SIZE, STYLE, padding=0)
        squeezed = render_label("Harbor Walk", 96, STYLE, padding=0, max_width=1)
        assert squeezed.size == at_min.size

    def test_text_drawn_literally(self):
        label = render_label("it's: [take 1], 100%", 24, STYLE, padding=4)
        assert label.width > 0 and label.height > 0


class TestSaveLabel:
    def test_creates_parent_and_keeps_alpha(self, tmp_path):
        from PIL import Image

        path = save_label(render_label("A", 24, STYLE, padding=4), tmp_path / "labels" / "a.png")
        assert path.exists()
        with Image.open(path) as img:
            assert img.mode == "RGBA"
