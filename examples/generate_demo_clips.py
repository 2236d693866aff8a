#!/usr/bin/env python3
"""Generate synthetic clips for trying gridreel end to end.

Creates a few solid-color clips with different durations (and one odd
size) in examples/demo-clips/. Each clip ends on a "END" frame, so the
grid's speed normalization is easy to see: every cell reaches its END
frame at the same moment.

Usage:
    python examples/generate_demo_clips.py
    gridreel -o examples/demo-reel.mp4 -s 5 examples/demo-clips/
"""

import numpy as np
from moviepy import ColorClip, CompositeVideoClip, ImageClip
from pathlib import Path
from PIL import Image, ImageDraw

from gridreel.common import load_font

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-clips"
FPS = 30

# name, color, duration (s), size
CLIPS = [
    ("A-harbor", (180, 60, 60), 4.0, (640, 360)),
    ("B-market", (60, 60, 180), 6.0, (640, 360)),
    ("C-bridge", (60, 160, 60), 8.0, (640, 360)),
    ("D-tower", (200, 130, 40), 5.0, (480, 480)),   # square: letterboxed
    ("E-garden", (130, 60, 180), 7.0, (640, 360)),
]


def _make_end_frame(bg_color: tuple[int, int, int], size: tuple[int, int]) -> np.ndarray:
    """White 'END' on a dimmed version of the clip color."""
    dim = tuple(max(c // 3, 20) for c in bg_color)
    img = Image.new("RGB", size, dim)
    draw = ImageDraw.Draw(img)
    font = load_font(48)
    bbox = draw.textbbox((0, 0), "END", font=font)
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    draw.text(((size[0] - tw) / 2, (size[1] - th) / 2), "END", fill=(255, 255, 255), font=font)
    return np.array(img)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, duration, size in CLIPS:
        out = OUTPUT_DIR / f"{name}.mp4"
        if out.exists():
            print(f"  skip {name} (exists)")
            continue

        body_dur = max(duration - 0.5, 0.5)
        body = ColorClip(size=size, color=color, duration=body_dur)
        end_clip = ImageClip(_make_end_frame(color, size), duration=0.5).with_start(body_dur)

        final = CompositeVideoClip([body, end_clip], size=size)
        final.write_videofile(str(out), fps=FPS, codec="libx264", audio=False, logger=None)
        print(f"  wrote {name} ({duration}s, {size[0]}x{size[1]})")

    print(f"\nDone. {len(CLIPS)} clips in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
