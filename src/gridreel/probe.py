"""Clip prober — durations for every clip, canvas size from the first.

A clip that cannot be probed never aborts the run: it gets
FALLBACK_DURATION, and an unreadable first clip gives the
FALLBACK_RESOLUTION canvas.
"""

from dataclasses import replace

from .common import even_floor, display_name
from .console import escape, warn
from .engine import MediaEngine, Resolution
from .errors import ProbeFailure
from .inventory import Clip

FALLBACK_DURATION = 10.0
FALLBACK_RESOLUTION = Resolution(1920, 1080)


def normalize_resolution(resolution: Resolution | None) -> Resolution:
    """Round both sides down to even; fall back if either becomes zero."""
    if resolution is None:
        return FALLBACK_RESOLUTION
    w, h = even_floor(resolution.width), even_floor(resolution.height)
    if w <= 0 or h <= 0:
        return FALLBACK_RESOLUTION
    return Resolution(w, h)


def probe_clips(
    clips: list[Clip],
    engine: MediaEngine,
) -> tuple[list[Clip], Resolution]:
    """Return (clips with durations, canvas resolution).

    One query per clip, no retries. Order is preserved.
    """
    probed = []
    resolution = None
    for i, clip in enumerate(clips):
        try:
            result = engine.probe(clip.path)
        except ProbeFailure as e:
            warn(escape(str(e)))
            result = None

        duration = result.duration if result else None
        if duration is None:
            warn(
                f"{escape(display_name(clip.path))}: duration unknown, "
                f"using {FALLBACK_DURATION:g}s"
            )
            duration = FALLBACK_DURATION

        if i == 0:
            raw = result.resolution if result else None
            if raw is None:
                warn(f"resolution unknown, using {FALLBACK_RESOLUTION}")
            resolution = normalize_resolution(raw)

        probed.append(replace(clip, duration=duration))

    return probed, resolution or FALLBACK_RESOLUTION


def mean_duration(clips: list[Clip]) -> float:
    """Arithmetic mean of clip durations (fallback already applied)."""
    if not clips:
        raise ValueError("mean_duration of an empty clip list")
    return sum(c.duration for c in clips) / len(clips)
