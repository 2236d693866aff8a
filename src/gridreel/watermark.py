"""Watermark stage — burn each clip's name into its bottom-right corner.

Every clip is letterboxed onto the canvas at the common frame rate so
the segments can later be joined by stream copy. The name is a Pillow
label patch laid over the video. Audio is dropped.
All-or-nothing: the first failure aborts the stage.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from PIL import Image

from .config import RenderSettings
from .console import cprint, escape
from .engine import EngineInput, MediaEngine, Resolution
from .filtergraph import FilterGraph, fps, overlay, pad, pixel_format, scale, setsar
from .inventory import Clip
from .labels import render_label, save_label


def watermark_label(clip: Clip, resolution: Resolution, settings: RenderSettings) -> Image.Image:
    """The clip's name patch, font scaled to the canvas height."""
    style = settings.text
    margin = style.watermark_margin
    size = max(12, round(style.watermark_size * resolution.height / 1080))
    return render_label(
        clip.name, size, style, padding=style.box_border,
        max_width=resolution.width - 2 * margin,
        max_height=resolution.height - 2 * margin,
    )


def watermark_graph(
    clip: Clip,
    resolution: Resolution,
    settings: RenderSettings,
    label: Image.Image | None = None,
) -> FilterGraph:
    """Letterbox input 0 to the canvas, then overlay the label (input 1) bottom-right."""
    w, h = resolution.width, resolution.height
    if label is None:
        label = watermark_label(clip, resolution, settings)
    label_w, label_h = label.size
    margin = settings.text.watermark_margin

    graph = FilterGraph(output="wm")
    graph.add(
        ["0:v"],
        [scale(w, h, fit="decrease"), pad(w, h), setsar(1), fps(settings.fps)],
        ["base"],
    )
    graph.add(
        ["base", "1:v"],
        [
            overlay(max(0, w - label_w - margin), max(0, h - label_h - margin)),
            pixel_format(settings.encoder.pix_fmt),
        ],
        ["wm"],
    )
    return graph


def watermark_output_path(work_dir: Path, clip: Clip) -> Path:
    return Path(work_dir) / f"wm-{clip.ordinal:03d}.mp4"


def _watermark_one(clip, resolution, engine, work_dir, settings):
    t0 = time.monotonic()
    label = watermark_label(clip, resolution, settings)
    label_path = save_label(label, Path(work_dir) / f"wm-{clip.ordinal:03d}-label.png")
    graph = watermark_graph(clip, resolution, settings, label)
    out = engine.render(
        graph,
        [EngineInput(clip.path), EngineInput(label_path)],
        watermark_output_path(work_dir, clip),
        settings.encoder,
    )
    elapsed = time.monotonic() - t0
    cprint(f"  DONE   [{clip.ordinal}] {escape(clip.name)} — {elapsed:.1f}s wall")
    return out


def watermark_clips(
    clips: list[Clip],
    resolution: Resolution,
    engine: MediaEngine,
    work_dir: Path,
    settings: RenderSettings,
    workers: int = 1,
) -> list[Path]:
    """Watermark every clip; returns outputs in clip order.

    Args:
        workers: Concurrent engine invocations. 1 = sequential. Output
            order never depends on completion order.

    On any failure or interrupt, pending clips are cancelled and
    renders already running are aborted before the error propagates.
    """
    effective_workers = max(1, min(workers, len(clips)))
    if effective_workers == 1:
        return [
            _watermark_one(c, resolution, engine, work_dir, settings)
            for c in clips
        ]

    results: list[Path | None] = [None] * len(clips)
    with ThreadPoolExecutor(max_workers=effective_workers) as pool:
        futures = {
            pool.submit(_watermark_one, c, resolution, engine, work_dir, settings): i
            for i, c in enumerate(clips)
        }
        try:
            for future in as_completed(futures):
                results[futures[future]] = future.result()  # propagate exceptions
        except BaseException:
            for future in futures:
                future.cancel()
            engine.abort()
            raise
    return results
