"""Grid compositor — every clip at once, each stretched to the mean duration.

Layout (columns x rows) is a step function of the clip count:

    N      1    2    3-4  5-6  7-9  10-16  >16
    grid   1x1  2x1  2x2  3x2  3x3  4x4    ceil(sqrt N) square

Each cell is padded by GRID_PADDING on all sides. Inside a cell, the
top LABEL_BAND pixels carry the clip name (a Pillow label patch laid
over the cell); the video is letterboxed into the rest. All dimensions
are rounded down to even.

Speed normalization: speed_factor = duration / mean. The clip's
timestamps are multiplied by 1 / speed_factor, so a 10s clip in a set
averaging 20s plays at half speed and lasts exactly 20s.
"""

import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from .common import even_floor
from .config import RenderSettings
from .engine import EngineInput, MediaEngine, Resolution
from .errors import GridLayoutError
from .filtergraph import (
    FilterGraph, color_source, fps, overlay, pad, pixel_format, scale,
    setpts, setsar, trim,
)
from .inventory import Clip
from .labels import render_label, save_label
from .probe import mean_duration

GRID_OUTPUT = "grid"

# (max clip count, columns, rows)
_LAYOUT_STEPS = (
    (1, 1, 1),
    (2, 2, 1),
    (4, 2, 2),
    (6, 3, 2),
    (9, 3, 3),
    (16, 4, 4),
)


@dataclass(frozen=True)
class GridLayout:
    columns: int
    rows: int

    @property
    def capacity(self) -> int:
        return self.columns * self.rows


@dataclass(frozen=True)
class CellGeometry:
    cell_width: int
    cell_height: int
    video_height: int


@dataclass(frozen=True)
class CellPlacement:
    index: int
    row: int
    col: int
    x: int
    y: int


@dataclass(frozen=True)
class GridPlan:
    """Everything the grid render needs, computed before any rendering."""

    layout: GridLayout
    geometry: CellGeometry
    placements: tuple[CellPlacement, ...]
    speed_factors: tuple[float, ...]
    mean_duration: float

    @property
    def pts_factors(self) -> tuple[float, ...]:
        """Timestamp multipliers, 1 / speed_factor per clip."""
        return tuple(1.0 / s for s in self.speed_factors)


def grid_layout(n: int) -> GridLayout:
    """Columns x rows for n clips. Always columns * rows >= n."""
    if n < 1:
        raise ValueError(f"grid_layout needs at least one clip, got {n}")
    for max_n, cols, rows in _LAYOUT_STEPS:
        if n <= max_n:
            return GridLayout(cols, rows)
    side = math.ceil(math.sqrt(n))
    return GridLayout(side, side)


def cell_geometry(
    resolution: Resolution,
    layout: GridLayout,
    padding: int,
    label_band: int,
) -> CellGeometry:
    """Per-cell pixel sizes, all even.

    Raises:
        GridLayoutError: Canvas too small for the layout.
    """
    cols, rows = layout.columns, layout.rows
    cell_w = even_floor((resolution.width - (cols + 1) * padding) // cols)
    cell_h = even_floor((resolution.height - (rows + 1) * padding) // rows)
    video_h = even_floor(cell_h - label_band)
    if cell_w <= 0 or video_h <= 0:
        raise GridLayoutError(
            f"{resolution} canvas is too small for a {cols}x{rows} grid "
            f"(cell {cell_w}x{cell_h}, video height {video_h})"
        )
    return CellGeometry(cell_w, cell_h, video_h)


def cell_placement(index: int, layout: GridLayout, geometry: CellGeometry, padding: int) -> CellPlacement:
    """Row-major placement of the clip at 0-based index."""
    row, col = divmod(index, layout.columns)
    x = padding + col * (geometry.cell_width + padding)
    y = padding + row * (geometry.cell_height + padding)
    return CellPlacement(index, row, col, x, y)


def speed_factors(durations: list[float], mean: float) -> tuple[float, ...]:
    if mean <= 0:
        raise ValueError(f"mean duration must be positive, got {mean}")
    return tuple(d / mean for d in durations)


def plan_grid(
    clips: list[Clip],
    resolution: Resolution,
    settings: RenderSettings,
) -> GridPlan:
    """Compute layout, geometry, placements and speed factors for clips."""
    layout = grid_layout(len(clips))
    padding = settings.grid_padding
    geometry = cell_geometry(resolution, layout, padding, settings.label_band)
    mean = mean_duration(clips)
    return GridPlan(
        layout=layout,
        geometry=geometry,
        placements=tuple(
            cell_placement(i, layout, geometry, padding) for i in range(len(clips))
        ),
        speed_factors=speed_factors([c.duration for c in clips], mean),
        mean_duration=mean,
    )


# ── Filter graph ──────────────────────────────────────────────────


def cell_label(clip: Clip, plan: GridPlan, settings: RenderSettings) -> Image.Image:
    """Name patch sized to fit inside the cell's label band."""
    style = settings.text
    return render_label(
        clip.name, style.cell_label_size, style,
        padding=max(1, style.box_border // 2),
        max_width=plan.geometry.cell_width,
        max_height=settings.label_band,
    )


def _cell_filters(pts_factor, plan, settings):
    """Time-stretch, letterbox, add the label band on top."""
    geo = plan.geometry
    return [
        setpts(pts_factor),
        fps(settings.fps),
        trim(plan.mean_duration),
        scale(geo.cell_width, geo.video_height, fit="decrease"),
        pad(geo.cell_width, geo.video_height),
        pad(geo.cell_width, geo.cell_height, x=0, y=settings.label_band),
        setsar(1),
    ]


def _label_overlay(label: Image.Image, plan: GridPlan, settings: RenderSettings):
    """Overlay that centers the label patch in the band."""
    label_w, label_h = label.size
    x = max(0, (plan.geometry.cell_width - label_w) // 2)
    y = max(0, (settings.label_band - label_h) // 2)
    return overlay(x, y)


def build_grid_graph(
    clips: list[Clip],
    plan: GridPlan,
    resolution: Resolution,
    settings: RenderSettings,
    labels: list[Image.Image] | None = None,
) -> FilterGraph:
    """Per-clip cell chains, then sequential overlays onto a black canvas.

    Inputs 0..N-1 are the clips, N..2N-1 their label patches. With a
    single clip there is no canvas or positional overlay: the labeled
    cell is padded straight to the canvas size and becomes the grid
    output.
    """
    if labels is None:
        labels = [cell_label(c, plan, settings) for c in clips]
    n = len(clips)
    graph = FilterGraph(output=GRID_OUTPUT)
    pix_fmt = pixel_format(settings.encoder.pix_fmt)

    for i in range(n):
        graph.add([f"{i}:v"], _cell_filters(plan.pts_factors[i], plan, settings), [f"raw{i}"])

    if n == 1:
        placement = plan.placements[0]
        return graph.add(
            ["raw0", "1:v"],
            [
                _label_overlay(labels[0], plan, settings),
                pad(resolution.width, resolution.height, x=placement.x, y=placement.y),
                pix_fmt,
            ],
            [GRID_OUTPUT],
        )

    for i in range(n):
        graph.add(
            [f"raw{i}", f"{n + i}:v"], [_label_overlay(labels[i], plan, settings)], [f"cell{i}"],
        )

    graph.add(
        [],
        [color_source(
            "black", resolution.width, resolution.height,
            settings.fps, plan.mean_duration,
        )],
        ["bg"],
    )

    previous = "bg"
    last = n - 1
    for i, placement in enumerate(plan.placements):
        out = GRID_OUTPUT if i == last else f"stack{i}"
        filters = [overlay(placement.x, placement.y)]
        if i == last:
            filters.append(pix_fmt)
        graph.add([previous, f"cell{i}"], filters, [out])
        previous = out
    return graph


def render_grid(
    clips: list[Clip],
    plan: GridPlan,
    resolution: Resolution,
    engine: MediaEngine,
    work_dir: Path,
    settings: RenderSettings,
) -> Path:
    """Render the grid composite, exactly plan.mean_duration long."""
    labels = [cell_label(c, plan, settings) for c in clips]
    label_paths = [
        save_label(label, Path(work_dir) / "labels" / f"cell-{c.ordinal:03d}.png")
        for c, label in zip(clips, labels)
    ]
    graph = build_grid_graph(clips, plan, resolution, settings, labels)
    inputs = [EngineInput(c.path) for c in clips] + [EngineInput(p) for p in label_paths]
    return engine.render(
        graph, inputs, Path(work_dir) / "grid.mp4",
        settings.encoder, duration=plan.mean_duration,
    )
