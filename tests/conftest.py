"""Shared test fixtures for gridreel tests."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

import imageio_ffmpeg
import pytest

from gridreel.engine import ProbeResult, Resolution
from gridreel.errors import MediaEngineInvocationError, ProbeFailure

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def make_clip(tmp_path):
    """Factory: write a small solid-color clip (10fps, libx264) and return its path."""
    clip_dir = tmp_path / "clips"
    clip_dir.mkdir(exist_ok=True)

    def _make(name="clip.mp4", duration=1.0, size=(320, 240), color="blue"):
        out = clip_dir / name
        subprocess.run(
            [
                _FFMPEG, "-y",
                "-f", "lavfi",
                "-i", f"color=c={color}:s={size[0]}x{size[1]}:d={duration}:r=10",
                "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
                str(out),
            ],
            check=True,
            capture_output=True,
        )
        return out

    return _make


# ── Fake engine ───────────────────────────────────────────────────


@dataclass
class RenderCall:
    graph: object
    inputs: list
    output: Path
    encoder: object
    duration: float | None


class FakeEngine:
    """MediaEngine stand-in: records requests and writes placeholder files.

    Args:
        durations: file name -> probed duration (missing = None).
        resolution: resolution reported for every probe.
        fail_probe: file names whose probe raises ProbeFailure.
        fail_render: substrings; a render whose output name contains one fails.
        sizes: output file name -> bytes written (default 1000).
    """

    def __init__(self, durations=None, resolution=Resolution(1280, 720),
                 fail_probe=(), fail_render=(), sizes=None):
        self.durations = durations or {}
        self.resolution = resolution
        self.fail_probe = set(fail_probe)
        self.fail_render = tuple(fail_render)
        self.sizes = sizes or {}
        self.probes = []
        self.renders = []
        self.concats = []
        self.aborted = False

    def probe(self, path):
        name = Path(path).name
        self.probes.append(name)
        if name in self.fail_probe:
            raise ProbeFailure(f"cannot read metadata of {name}")
        return ProbeResult(self.durations.get(name), self.resolution)

    def _write(self, output):
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(b"\0" * self.sizes.get(output.name, 1000))
        return output

    def render(self, graph, inputs, output, encoder, duration=None):
        graph.serialize()  # every graph handed to the engine must serialize
        self.renders.append(RenderCall(graph, list(inputs), Path(output), encoder, duration))
        if any(s in Path(output).name for s in self.fail_render):
            raise MediaEngineInvocationError(
                f"render {Path(output).name}: ffmpeg failed", returncode=1,
            )
        return self._write(output)

    def concat(self, parts, output, list_file):
        for p in parts:
            assert Path(p).exists(), f"concat input missing: {p}"
        self.concats.append([Path(p) for p in parts])
        return self._write(output)

    def abort(self):
        self.aborted = True

    def rendered_names(self):
        return [call.output.name for call in self.renders]


@pytest.fixture
def make_engine():
    """Factory for FakeEngine instances."""
    return FakeEngine


@pytest.fixture
def clip_dir(tmp_path):
    """Factory: directory of placeholder clip files (content never decoded)."""

    def _make(*names):
        d = tmp_path / "input"
        d.mkdir(exist_ok=True)
        for name in names:
            (d / name).write_bytes(b"placeholder")
        return d

    return _make
