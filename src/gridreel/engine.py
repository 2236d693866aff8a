"""Media engine boundary — every ffmpeg invocation goes through here.

The pipeline talks to a MediaEngine: probe a file, render a filter
graph from inputs to one output, concatenate segments without
re-encoding. abort() kills whatever is still running.

FFmpegEngine implements it with the ffmpeg binary that imageio-ffmpeg
locates. Probing runs `ffmpeg -i` on that same binary and reads the
banner with moviepy's info parser (imageio-ffmpeg does not bundle ffprobe).
"""

import math
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import imageio_ffmpeg
from moviepy.video.io.ffmpeg_reader import FFmpegInfosParser

from .config import EncoderSettings
from .console import dprint, is_verbose, print_command
from .errors import MediaEngineInvocationError, MissingDependencyError, ProbeFailure
from .filtergraph import FilterGraph

REQUIRED_FILTERS = ("overlay", "setpts", "scale", "pad", "trim", "fps")


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def __str__(self):
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class ProbeResult:
    duration: float | None
    resolution: Resolution | None


@dataclass(frozen=True)
class EngineInput:
    """One input file plus the options that precede its -i."""

    path: Path
    options: tuple[str, ...] = field(default_factory=tuple)


class MediaEngine(Protocol):
    def probe(self, path: Path) -> ProbeResult: ...

    def render(
        self,
        graph: FilterGraph,
        inputs: list[EngineInput],
        output: Path,
        encoder: EncoderSettings,
        duration: float | None = None,
    ) -> Path: ...

    def concat(self, parts: list[Path], output: Path, list_file: Path) -> Path: ...

    def abort(self) -> None: ...


def _finite_positive(value) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def concat_list_entry(path: Path) -> str:
    """One line of an ffmpeg concat-demuxer list file."""
    quoted = str(Path(path).resolve()).replace("'", "'\\''")
    return f"file '{quoted}'"


class FFmpegEngine:
    """MediaEngine backed by the ffmpeg command-line tool.

    Args:
        executable: ffmpeg path. Defaults to imageio-ffmpeg's binary
            (honors the IMAGEIO_FFMPEG_EXE environment variable).
        timeout: Seconds allowed per invocation; None waits forever.
    """

    def __init__(self, executable: str | None = None, timeout: float | None = None):
        if executable is None:
            try:
                executable = imageio_ffmpeg.get_ffmpeg_exe()
            except RuntimeError as e:
                raise MissingDependencyError(f"ffmpeg not found: {e}") from e
        self.executable = executable
        self.timeout = timeout
        self._lock = threading.Lock()
        self._running: set[subprocess.Popen] = set()
        self._aborted = False

    # ── Pre-flight ───────────────────────────────────────────────

    def check(self) -> None:
        """Verify the binary runs and provides every filter the pipeline uses."""
        cmd = [self.executable, "-hide_banner", "-filters"]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, check=True, timeout=60,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise MissingDependencyError(f"cannot run {self.executable}: {e}") from e

        available = set()
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 2:
                available.add(parts[1])
        missing = [name for name in REQUIRED_FILTERS if name not in available]
        if missing:
            raise MissingDependencyError(
                f"{self.executable} lacks required filter(s): {', '.join(missing)}"
            )

    # ── Probing ──────────────────────────────────────────────────

    def probe(self, path: Path) -> ProbeResult:
        """Query duration and video size. Raises ProbeFailure if unreadable.

        Uses this engine's own binary, so probing and rendering always
        agree on which ffmpeg reads the file.
        """
        if not Path(path).is_file():
            raise ProbeFailure(f"cannot read metadata of {path}: no such file")
        cmd = [self.executable, "-hide_banner", "-i", str(Path(path).resolve())]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeFailure(f"cannot run {self.executable} on {path}: {e}") from e
        # ffmpeg exits non-zero here (no output file); the banner is on stderr.
        try:
            infos = FFmpegInfosParser(result.stderr, str(path)).parse()
        except Exception as e:  # the parser raises several kinds on unreadable input
            raise ProbeFailure(f"cannot read metadata of {path}: {e}") from e

        duration = _finite_positive(infos.get("duration"))
        resolution = None
        size = infos.get("video_size")
        if infos.get("video_found") and size and len(size) == 2:
            w, h = (int(v) for v in size)
            if w > 0 and h > 0:
                resolution = Resolution(w, h)
        return ProbeResult(duration=duration, resolution=resolution)

    # ── Rendering ────────────────────────────────────────────────

    def _run(self, cmd: list[str], label: str) -> None:
        print_command(label, cmd)
        with self._lock:
            if self._aborted:
                raise MediaEngineInvocationError(f"{label}: aborted", command=cmd)
            try:
                proc = subprocess.Popen(
                    cmd, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE, text=True, errors="replace",
                )
            except OSError as e:
                raise MediaEngineInvocationError(
                    f"{label}: could not start ffmpeg: {e}", command=cmd,
                ) from e
            self._running.add(proc)

        try:
            _, stderr = proc.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            proc.communicate()
            raise MediaEngineInvocationError(
                f"{label}: timed out after {self.timeout:g}s", command=cmd,
            ) from e
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            with self._lock:
                self._running.discard(proc)

        if proc.returncode != 0:
            reason = "aborted" if self._aborted else "ffmpeg failed"
            raise MediaEngineInvocationError(
                f"{label}: {reason}",
                command=cmd, returncode=proc.returncode, stderr=stderr,
            )
        if stderr.strip():
            dprint(stderr.rstrip(), markup=False)

    def abort(self) -> None:
        """Kill every running ffmpeg process and refuse to start new ones."""
        with self._lock:
            self._aborted = True
            running = list(self._running)
        for proc in running:
            proc.kill()

    def _base_cmd(self) -> list[str]:
        loglevel = "info" if is_verbose() else "error"
        return [self.executable, "-y", "-hide_banner", "-loglevel", loglevel, "-nostdin"]

    def render(
        self,
        graph: FilterGraph,
        inputs: list[EngineInput],
        output: Path,
        encoder: EncoderSettings,
        duration: float | None = None,
    ) -> Path:
        """Run one filter graph over inputs and encode its output pad, audio stripped."""
        cmd = self._base_cmd()
        for inp in inputs:
            cmd += [*inp.options, "-i", str(inp.path)]
        cmd += [
            "-filter_complex", graph.serialize(),
            "-map", f"[{graph.output}]",
            *encoder.ffmpeg_args(),
            "-an",
        ]
        if duration is not None:
            cmd += ["-t", f"{duration:.6f}"]
        cmd += ["-movflags", "+faststart", str(output)]

        Path(output).parent.mkdir(parents=True, exist_ok=True)
        self._run(cmd, f"render {Path(output).name}")
        return Path(output)

    def concat(self, parts: list[Path], output: Path, list_file: Path) -> Path:
        """Join segments with the concat demuxer (stream copy, no re-encode)."""
        if not parts:
            raise ValueError("Nothing to concatenate")
        Path(list_file).write_text(
            "".join(concat_list_entry(p) + "\n" for p in parts)
        )
        cmd = self._base_cmd() + [
            "-f", "concat", "-safe", "0",
            "-i", str(list_file),
            "-c", "copy",
            "-movflags", "+faststart",
            str(output),
        ]
        self._run(cmd, f"concat {len(parts)} segments")
        return Path(output)
