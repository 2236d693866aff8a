"""Text labels rendered with Pillow and composited by the engine.

A label is a tight RGBA patch: the text in the style color on a box of
the style's box color and opacity. Patches are saved as PNGs and laid
over the video with ffmpeg's overlay filter, so the engine needs no
font support of its own.
"""

from pathlib import Path

from PIL import Image, ImageDraw

from .common import load_font
from .config import TextStyle

# Smallest font size a label shrinks to when it does not fit.
MIN_LABEL_SIZE = 8


def _measure(text: str, size: int):
    font = load_font(size)
    draw = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    return font, draw.textbbox((0, 0), text, font=font)


def render_label(
    text: str,
    font_size: int,
    style: TextStyle,
    padding: int,
    max_width: int | None = None,
    max_height: int | None = None,
) -> Image.Image:
    """Render text on a semi-transparent box as an RGBA patch.

    The font shrinks (down to MIN_LABEL_SIZE) until the patch fits in
    max_width x max_height.

    Args:
        text: Label text, drawn literally.
        font_size: Starting font size in pixels.
        style: Text and box colors, box opacity.
        padding: Box margin around the text on every side.
    """
    size = max(font_size, MIN_LABEL_SIZE)
    while True:
        font, bbox = _measure(text, size)
        patch_w = bbox[2] - bbox[0] + 2 * padding
        patch_h = bbox[3] - bbox[1] + 2 * padding
        fits = (max_width is None or patch_w <= max_width) and (
            max_height is None or patch_h <= max_height
        )
        if fits or size <= MIN_LABEL_SIZE:
            break
        size -= 2

    patch_w, patch_h = max(patch_w, 1), max(patch_h, 1)
    img = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rectangle(
        [(0, 0), (patch_w - 1, patch_h - 1)],
        fill=(*style.box_color, round(255 * style.box_opacity)),
    )
    draw.text(
        (padding - bbox[0], padding - bbox[1]), text,
        fill=(*style.color, 255), font=font,
    )
    return img


def save_label(img: Image.Image, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path)
    return path
