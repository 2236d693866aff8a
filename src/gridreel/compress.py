"""Size-budget compressor.

Concatenates all segments by stream copy, then walks a linear state
machine, one size check per state:

    UNCOMPRESSED --over budget--> TIER 1 --over budget--> TIER 2 (final)

Each tier re-encodes the *original* concatenation at a smaller linear
scale with a slower preset. The first state within budget wins; the
last tier is accepted even if it is still too large.
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from .config import BYTES_PER_MB, CompressionTier, EncoderSettings
from .console import cprint
from .engine import EngineInput, MediaEngine
from .filtergraph import FilterGraph, pixel_format, scale


class CompressionState(Enum):
    UNCOMPRESSED = "uncompressed"
    TIER = "tier"
    DONE = "done"


@dataclass(frozen=True)
class Attempt:
    name: str
    path: Path
    size: int
    within_budget: bool


@dataclass(frozen=True)
class CompressionResult:
    chosen: Attempt
    attempts: tuple[Attempt, ...]

    @property
    def within_budget(self) -> bool:
        return self.chosen.within_budget


def format_mb(size: int) -> str:
    return f"{size / BYTES_PER_MB:.2f} MB"


def tier_graph(tier: CompressionTier, pix_fmt: str) -> FilterGraph:
    """Linear downscale by tier.scale, keeping both sides even."""
    factor = f"{tier.scale:g}"
    return FilterGraph(output="small").add(
        ["0:v"],
        [
            scale(f"trunc(iw*{factor}/2)*2", f"trunc(ih*{factor}/2)*2"),
            pixel_format(pix_fmt),
        ],
        ["small"],
    )


def concatenate(
    segments: list[Path],
    engine: MediaEngine,
    work_dir: Path,
) -> Path:
    """Join intro, watermarked clips and grid without re-encoding."""
    work_dir = Path(work_dir)
    return engine.concat(segments, work_dir / "concat.mp4", work_dir / "concat.txt")


def compress_to_budget(
    source: Path,
    max_bytes: int,
    engine: MediaEngine,
    work_dir: Path,
    tiers: tuple[CompressionTier, ...],
    encoder: EncoderSettings,
) -> CompressionResult:
    """Pick the first of (source, tier 1, tier 2, ...) that fits max_bytes.

    Every tier encodes from source, never from a previous tier.
    """
    attempts = []
    state = CompressionState.UNCOMPRESSED
    tier_index = 0
    current = None

    while state is not CompressionState.DONE:
        if state is CompressionState.UNCOMPRESSED:
            name, path = "uncompressed", Path(source)
        else:
            tier = tiers[tier_index]
            name = tier.name
            cprint(
                f"  COMPRESS  {name}: scale {tier.scale:.0%}, "
                f"preset {tier.preset}, crf {tier.crf}"
            )
            path = engine.render(
                tier_graph(tier, encoder.pix_fmt),
                [EngineInput(Path(source))],
                Path(work_dir) / f"compressed-{name}.mp4",
                replace(encoder, preset=tier.preset, crf=tier.crf),
            )
            tier_index += 1

        size = path.stat().st_size
        current = Attempt(name, path, size, size <= max_bytes)
        attempts.append(current)
        cprint(f"  SIZE      {name}: {format_mb(size)} (budget {format_mb(max_bytes)})")

        if current.within_budget or tier_index >= len(tiers):
            state = CompressionState.DONE
        else:
            state = CompressionState.TIER

    return CompressionResult(chosen=current, attempts=tuple(attempts))
