"""gridreel.common — shared utilities.

Contains: color parsing, font loading, even-number rounding, and
display-name derivation.
"""

from pathlib import Path

from PIL import ImageFont


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred, DejaVu Sans as fallback, Pillow's own font last.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/dejavu/DejaVuSans.ttf"),
    Path("/Library/Fonts/Arial.ttf"),
    Path("C:/Windows/Fonts/arial.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6 or any(c not in "0123456789abcdefABCDEF" for c in hex_str):
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


# ── Geometry ───────────────────────────────────────────────────────

def even_floor(value: float) -> int:
    """Round down to the nearest even integer (x264 needs even dimensions)."""
    n = int(value)
    if n > value:  # int() truncates toward zero for negatives
        n -= 1
    return n - (n % 2)


# ── Names ──────────────────────────────────────────────────────────

def display_name(path: str | Path) -> str:
    """File name without its final extension: 'a/Scene.01.mov' -> 'Scene.01'."""
    return Path(path).stem


# ── Font loading ───────────────────────────────────────────────────

def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size.

    Inter.ttc is a font collection; index 0 is Regular.
    """
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default font.
    return ImageFont.load_default(size=size)
