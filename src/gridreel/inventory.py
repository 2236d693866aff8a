"""Clip inventory — find the clips to compile in one directory.

Non-recursive. Hidden files are ignored, as are the output file
itself and the tool's reserved default output names, so re-running
inside the clip directory never picks up a previous compilation.
"""

from dataclasses import dataclass
from pathlib import Path

from .common import display_name
from .errors import InvalidInputDirectoryError, NoClipsFoundError

MEDIA_EXTENSIONS = {".mov", ".mp4", ".avi", ".mkv"}

RESERVED_OUTPUT_NAMES = {"output.mp4", "compiled.mp4", "compilation.mp4"}


@dataclass(frozen=True)
class Clip:
    """One input clip. duration is None until probed."""

    path: Path
    ordinal: int
    duration: float | None = None

    @property
    def name(self) -> str:
        return display_name(self.path)


def validate_input_dir(input_dir: str | Path) -> Path:
    """Return input_dir as a Path, or raise if it is not a readable directory."""
    p = Path(input_dir)
    if not p.exists():
        raise InvalidInputDirectoryError(f"'{input_dir}' does not exist")
    if not p.is_dir():
        raise InvalidInputDirectoryError(f"'{input_dir}' is not a directory")
    try:
        next(p.iterdir(), None)
    except PermissionError as e:
        raise InvalidInputDirectoryError(f"'{input_dir}' is not readable") from e
    return p


def is_media_file(path: Path) -> bool:
    return path.suffix.lower() in MEDIA_EXTENSIONS


def scan_clips(
    input_dir: str | Path,
    output_name: str | None = None,
) -> list[Clip]:
    """List media files in input_dir, sorted by full path, numbered from 1.

    Args:
        input_dir: Directory to scan (immediate entries only).
        output_name: File name of the configured output; excluded along
            with RESERVED_OUTPUT_NAMES.

    Raises:
        InvalidInputDirectoryError: input_dir missing or unreadable.
        NoClipsFoundError: No eligible media files.
    """
    directory = validate_input_dir(input_dir)
    excluded = set(RESERVED_OUTPUT_NAMES)
    if output_name:
        excluded.add(output_name)

    paths = sorted(
        (
            entry for entry in directory.iterdir()
            if entry.is_file()
            and not entry.name.startswith(".")
            and is_media_file(entry)
            and entry.name not in excluded
        ),
        key=str,
    )
    if not paths:
        exts = ", ".join(sorted(MEDIA_EXTENSIONS))
        raise NoClipsFoundError(f"no {exts} files in '{directory}'")

    return [Clip(path=p, ordinal=i) for i, p in enumerate(paths, start=1)]
