"""Run configuration and render settings.

RunConfig is built once by the CLI and passed to every stage. Render
settings default to the house style (60fps x264, red labels on a
half-opaque black box) and can be overridden from a YAML file:

  video:
    fps: 60
    codec: libx264
    preset: medium
    crf: 23
  text:
    color: "#FF0000"
    box_color: "#000000"
    box_opacity: 0.5
    watermark_size: 36
  compression:
    - {scale: 0.8, preset: slow, crf: 28}
    - {scale: 0.6, preset: veryslow, crf: 30}
"""

from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from .common import parse_hex_color


DEFAULT_OUTPUT = "output.mp4"
DEFAULT_MAX_SIZE_MB = 10.0
DEFAULT_TIMEOUT = 3600.0

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class EncoderSettings:
    codec: str = "libx264"
    preset: str = "medium"
    crf: int = 23
    pix_fmt: str = "yuv420p"

    def ffmpeg_args(self) -> list[str]:
        return [
            "-c:v", self.codec,
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-pix_fmt", self.pix_fmt,
        ]


@dataclass(frozen=True)
class CompressionTier:
    """One re-encode attempt: linear scale factor plus encoder preset."""

    name: str
    scale: float
    preset: str
    crf: int


@dataclass(frozen=True)
class TextStyle:
    color: tuple[int, int, int] = (255, 0, 0)
    box_color: tuple[int, int, int] = (0, 0, 0)
    box_opacity: float = 0.5
    box_border: int = 8
    watermark_size: int = 36
    watermark_margin: int = 20
    cell_label_size: int = 24
    intro_size: int = 40


DEFAULT_TIERS = (
    CompressionTier("tier-1", scale=0.8, preset="slow", crf=28),
    CompressionTier("tier-2", scale=0.6, preset="veryslow", crf=30),
)


@dataclass(frozen=True)
class RenderSettings:
    fps: int = 60
    intro_duration: float = 5.0
    grid_padding: int = 20
    label_band: int = 50
    encoder: EncoderSettings = field(default_factory=EncoderSettings)
    text: TextStyle = field(default_factory=TextStyle)
    tiers: tuple[CompressionTier, ...] = DEFAULT_TIERS


@dataclass(frozen=True)
class RunConfig:
    input_dir: Path
    output: Path = Path(DEFAULT_OUTPUT)
    max_size_mb: float = DEFAULT_MAX_SIZE_MB
    verbose: bool = False
    workers: int = 1
    timeout: float | None = DEFAULT_TIMEOUT
    settings: RenderSettings = field(default_factory=RenderSettings)

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * BYTES_PER_MB)


# ── Settings file loading ─────────────────────────────────────────

_VIDEO_KEYS = {"fps", "codec", "preset", "crf"}
_TEXT_KEYS = {
    "color", "box_color", "box_opacity", "box_border",
    "watermark_size", "watermark_margin", "cell_label_size", "intro_size",
}
_TIER_KEYS = {"scale", "preset", "crf"}
_TOP_KEYS = {"video", "text", "compression"}


def _crf(section: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 51:
        raise ValueError(f"Settings: {section}.crf must be an integer in 0-51, got {value!r}")
    return value


def _check_keys(section: str, obj, allowed: set[str]) -> dict:
    if not isinstance(obj, dict):
        raise ValueError(f"Settings: '{section}' must be a mapping")
    unknown = set(obj) - allowed
    if unknown:
        raise ValueError(
            f"Settings: unknown key(s) in '{section}': {sorted(unknown)}. "
            f"Valid: {sorted(allowed)}"
        )
    return obj


def _positive_int(section: str, key: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Settings: {section}.{key} must be a positive integer, got {value!r}")
    return value


def load_settings(path: str | Path) -> RenderSettings:
    """Load, validate, and normalize a YAML render settings file.

    Missing sections keep their defaults. Colors are '#RRGGBB' strings.

    Raises:
        ValueError: Unknown key, bad color, or out-of-range value.
        FileNotFoundError: Missing settings file.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    _check_keys("<root>", raw, _TOP_KEYS)
    settings = RenderSettings()

    # Video / encoder.
    video = _check_keys("video", raw.get("video", {}), _VIDEO_KEYS)
    encoder = settings.encoder
    if "codec" in video:
        encoder = replace(encoder, codec=str(video["codec"]))
    if "preset" in video:
        encoder = replace(encoder, preset=str(video["preset"]))
    if "crf" in video:
        encoder = replace(encoder, crf=_crf("video", video["crf"]))
    fps = _positive_int("video", "fps", video["fps"]) if "fps" in video else settings.fps

    # Text style.
    text_raw = _check_keys("text", raw.get("text", {}), _TEXT_KEYS)
    text = settings.text
    for key in ("color", "box_color"):
        if key in text_raw:
            text = replace(text, **{key: parse_hex_color(str(text_raw[key]))})
    if "box_opacity" in text_raw:
        opacity = float(text_raw["box_opacity"])
        if not 0.0 <= opacity <= 1.0:
            raise ValueError(f"Settings: text.box_opacity must be in [0, 1], got {opacity}")
        text = replace(text, box_opacity=opacity)
    for key in ("box_border", "watermark_size", "watermark_margin",
                "cell_label_size", "intro_size"):
        if key in text_raw:
            text = replace(text, **{key: _positive_int("text", key, text_raw[key])})

    # Compression tiers: replaces the default list entirely.
    tiers = settings.tiers
    if "compression" in raw:
        tier_list = raw["compression"]
        if not isinstance(tier_list, list) or not tier_list:
            raise ValueError("Settings: 'compression' must be a non-empty list of tiers")
        parsed = []
        for i, tier in enumerate(tier_list):
            _check_keys(f"compression[{i}]", tier, _TIER_KEYS)
            scale = float(tier.get("scale", 1.0))
            if not 0.0 < scale <= 1.0:
                raise ValueError(f"Settings: compression[{i}].scale must be in (0, 1], got {scale}")
            parsed.append(CompressionTier(
                name=f"tier-{i + 1}",
                scale=scale,
                preset=str(tier.get("preset", encoder.preset)),
                crf=_crf(f"compression[{i}]", tier.get("crf", encoder.crf)),
            ))
        tiers = tuple(parsed)

    return replace(settings, fps=fps, encoder=encoder, text=text, tiers=tiers)
