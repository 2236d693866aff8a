"""Run orchestrator — inventory, probe, intro, watermark, grid, compress.

Stages run strictly in order. Structural errors (no clips, impossible
grid) surface before the first render; any engine failure afterwards
aborts the run. The scratch workspace is removed on every exit path.
"""

import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from .compress import CompressionResult, compress_to_budget, concatenate, format_mb
from .config import RunConfig
from .console import cprint, escape, info, success, warn
from .engine import MediaEngine, Resolution
from .grid import GridPlan, plan_grid, render_grid
from .intro import build_manifest, render_intro
from .inventory import Clip, scan_clips
from .probe import probe_clips
from .watermark import watermark_clips
from .workspace import temporary_workspace


@dataclass(frozen=True)
class RunPlan:
    clips: tuple[Clip, ...]
    resolution: Resolution
    grid: GridPlan
    manifest: str


@dataclass(frozen=True)
class RunResult:
    output: Path
    size: int
    within_budget: bool
    compression: CompressionResult


def prepare(config: RunConfig, engine: MediaEngine) -> RunPlan:
    """Scan and probe clips, then derive every render parameter."""
    clips = scan_clips(config.input_dir, output_name=Path(config.output).name)
    info(f"Found {len(clips)} clip(s) in {escape(str(config.input_dir))}")

    clips, resolution = probe_clips(clips, engine)
    for clip in clips:
        cprint(f"  [{clip.ordinal}] {clip.duration:.1f}s  {escape(clip.name)}")

    grid = plan_grid(clips, resolution, config.settings)
    return RunPlan(
        clips=tuple(clips),
        resolution=resolution,
        grid=grid,
        manifest=build_manifest(clips),
    )


def describe_plan(plan: RunPlan) -> None:
    """Print the derived parameters without rendering anything."""
    grid = plan.grid
    geo = grid.geometry
    cprint(f"\nCanvas: {plan.resolution}")
    cprint(f"\n{escape(plan.manifest)}\n")
    cprint(
        f"Grid: {grid.layout.columns}x{grid.layout.rows}, "
        f"cell {geo.cell_width}x{geo.cell_height}, video height {geo.video_height}, "
        f"mean {grid.mean_duration:.3f}s"
    )
    for clip, placement, factor in zip(plan.clips, grid.placements, grid.speed_factors):
        cprint(
            f"  [{clip.ordinal}] row {placement.row} col {placement.col} "
            f"at ({placement.x}, {placement.y})  speed {factor:.3f}  {escape(clip.name)}"
        )


def _stage(label: str):
    cprint(f"[bold]{label}[/]")
    return time.monotonic()


def run(config: RunConfig, engine: MediaEngine) -> RunResult:
    """Produce the compiled reel at config.output.

    Returns:
        RunResult with the final size and whether it met the budget.
    """
    t_start = time.monotonic()
    plan = prepare(config, engine)
    settings = config.settings
    clips = list(plan.clips)

    with temporary_workspace() as ws:
        t0 = _stage("Rendering intro")
        intro = render_intro(clips, plan.resolution, engine, ws.root, settings)
        cprint(f"  DONE   intro — {time.monotonic() - t0:.1f}s wall")

        t0 = _stage(f"Watermarking {len(clips)} clip(s)")
        marked = watermark_clips(
            clips, plan.resolution, engine, ws.subdir("clips"), settings,
            workers=config.workers,
        )
        cprint(f"  DONE   watermarks — {time.monotonic() - t0:.1f}s wall")

        layout = plan.grid.layout
        t0 = _stage(f"Rendering {layout.columns}x{layout.rows} grid")
        grid = render_grid(clips, plan.grid, plan.resolution, engine, ws.root, settings)
        cprint(f"  DONE   grid — {time.monotonic() - t0:.1f}s wall")

        t0 = _stage("Concatenating and fitting to size budget")
        joined = concatenate([intro, *marked, grid], engine, ws.root)
        compression = compress_to_budget(
            joined, config.max_size_bytes, engine, ws.root,
            settings.tiers, settings.encoder,
        )
        cprint(f"  DONE   {compression.chosen.name} — {time.monotonic() - t0:.1f}s wall")

        output = Path(config.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(compression.chosen.path, output)

    size = output.stat().st_size
    within = size <= config.max_size_bytes
    budget = format_mb(config.max_size_bytes)
    if within:
        success(
            f"\nDone: {escape(str(output))} — {format_mb(size)} "
            f"(budget {budget}, {time.monotonic() - t_start:.1f}s total)"
        )
    else:
        warn(f"{escape(str(output))} is {format_mb(size)}, over the {budget} budget")
        cprint(f"Done: {escape(str(output))} ({time.monotonic() - t_start:.1f}s total)")
    return RunResult(output=output, size=size, within_budget=within, compression=compression)
