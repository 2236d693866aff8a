"""Intro composer — title card listing every scene and its duration.

The card text is laid out with Pillow (centered, red on a half-opaque
black box over black), written as a PNG, and turned into a fixed
length clip by the engine so it shares encoder settings with every
other segment.
"""

from pathlib import Path

from PIL import Image, ImageDraw

from .common import load_font
from .config import RenderSettings
from .engine import EngineInput, MediaEngine, Resolution
from .filtergraph import FilterGraph, fps, pixel_format, setsar
from .inventory import Clip
from .probe import mean_duration

INTRO_HEADER = "Scenes in this compilation"

# Line spacing relative to font size.
_LINE_SPACING = 0.35


def build_manifest(clips: list[Clip]) -> str:
    """Header, blank, one line per clip, blank, grid trailer."""
    mean = mean_duration(clips)
    lines = [INTRO_HEADER, ""]
    for clip in clips:
        lines.append(f"{clip.ordinal}. {clip.name} ({round(clip.duration)}s)")
    lines.append("")
    lines.append(f"Final: Grid view of all scenes ({round(mean)}s)")
    return "\n".join(lines)


def _fit_font_size(draw, text: str, size: int, max_w: int, max_h: int) -> int:
    """Shrink size until the text block fits in max_w x max_h."""
    while size > 8:
        font = load_font(size)
        bbox = draw.multiline_textbbox(
            (0, 0), text, font=font, spacing=int(size * _LINE_SPACING), align="center",
        )
        if bbox[2] - bbox[0] <= max_w and bbox[3] - bbox[1] <= max_h:
            break
        size -= 2
    return size


def render_intro_frame(
    text: str,
    resolution: Resolution,
    settings: RenderSettings,
) -> Image.Image:
    """Render the intro card as an RGB image at the canvas resolution."""
    w, h = resolution.width, resolution.height
    style = settings.text
    border = style.box_border

    # Font size scales with frame height (reference 1080p), capped to fit.
    draw_tmp = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    size = max(12, round(style.intro_size * h / 1080))
    size = _fit_font_size(draw_tmp, text, size, w - 4 * border, h - 4 * border)
    font = load_font(size)
    spacing = int(size * _LINE_SPACING)

    bbox = draw_tmp.multiline_textbbox((0, 0), text, font=font, spacing=spacing, align="center")
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    x = (w - tw) // 2 - bbox[0]
    y = (h - th) // 2 - bbox[1]

    # Box on its own layer so opacity blends with the background.
    base = Image.new("RGBA", (w, h), (0, 0, 0, 255))
    layer = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    alpha = round(255 * style.box_opacity)
    draw.rectangle(
        [
            (x + bbox[0] - border, y + bbox[1] - border),
            (x + bbox[0] + tw + border, y + bbox[1] + th + border),
        ],
        fill=(*style.box_color, alpha),
    )
    draw.multiline_text(
        (x, y), text, fill=(*style.color, 255), font=font,
        spacing=spacing, align="center",
    )
    return Image.alpha_composite(base, layer).convert("RGB")


def render_intro(
    clips: list[Clip],
    resolution: Resolution,
    engine: MediaEngine,
    work_dir: Path,
    settings: RenderSettings,
) -> Path:
    """Render the fixed-length intro clip. Engine failures propagate."""
    text = build_manifest(clips)
    card = Path(work_dir) / "intro.png"
    render_intro_frame(text, resolution, settings).save(card)

    graph = FilterGraph(output="intro").add(
        ["0:v"],
        [fps(settings.fps), setsar(1), pixel_format(settings.encoder.pix_fmt)],
        ["intro"],
    )
    image_input = EngineInput(
        card, ("-loop", "1", "-framerate", str(settings.fps)),
    )
    return engine.render(
        graph, [image_input], Path(work_dir) / "intro.mp4",
        settings.encoder, duration=settings.intro_duration,
    )
