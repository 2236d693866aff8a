"""Tests for clip probing and fallbacks."""

import pytest

from gridreel.engine import FFmpegEngine, Resolution
from gridreel.errors import ProbeFailure
from gridreel.inventory import scan_clips
from gridreel.probe import (
    FALLBACK_DURATION,
    FALLBACK_RESOLUTION,
    mean_duration,
    normalize_resolution,
    probe_clips,
)


class TestProbeClips:
    def test_durations_and_first_clip_resolution(self, clip_dir, make_engine):
        d = clip_dir("a.mp4", "b.mp4")
        engine = make_engine(
            durations={"a.mp4": 12.5, "b.mp4": 7.0},
            resolution=Resolution(1280, 720),
        )
        clips, resolution = probe_clips(scan_clips(d), engine)
        assert [c.duration for c in clips] == [12.5, 7.0]
        assert resolution == Resolution(1280, 720)
        assert engine.probes == ["a.mp4", "b.mp4"]  # one query each, in order

    def test_missing_duration_falls_back(self, clip_dir, make_engine):
        d = clip_dir("a.mp4", "b.mp4")
        engine = make_engine(durations={"a.mp4": 4.0})
        clips, _ = probe_clips(scan_clips(d), engine)
        assert clips[1].duration == FALLBACK_DURATION == 10.0

    def test_probe_failure_is_not_fatal(self, clip_dir, make_engine):
        d = clip_dir("a.mp4", "broken.mp4", "c.mp4")
        engine = make_engine(
            durations={"a.mp4": 5.0, "c.mp4": 15.0}, fail_probe={"broken.mp4"},
        )
        clips, _ = probe_clips(scan_clips(d), engine)
        assert [c.duration for c in clips] == [5.0, 10.0, 15.0]

    def test_first_clip_failure_uses_fallback_resolution(self, clip_dir, make_engine):
        d = clip_dir("a.mp4", "b.mp4")
        engine = make_engine(durations={"b.mp4": 3.0}, fail_probe={"a.mp4"})
        clips, resolution = probe_clips(scan_clips(d), engine)
        assert resolution == FALLBACK_RESOLUTION == Resolution(1920, 1080)
        assert clips[0].duration == FALLBACK_DURATION

    def test_unknown_resolution_uses_fallback(self, clip_dir, make_engine):
        d = clip_dir("a.mp4")
        engine = make_engine(durations={"a.mp4": 3.0}, resolution=None)
        _, resolution = probe_clips(scan_clips(d), engine)
        assert resolution == FALLBACK_RESOLUTION

    def test_odd_resolution_made_even(self, clip_dir, make_engine):
        d = clip_dir("a.mp4")
        engine = make_engine(durations={"a.mp4": 3.0}, resolution=Resolution(1281, 721))
        _, resolution = probe_clips(scan_clips(d), engine)
        assert resolution == Resolution(1280, 720)


class TestNormalizeResolution:
    def test_even_unchanged(self):
        assert normalize_resolution(Resolution(640, 360)) == Resolution(640, 360)

    def test_degenerate_falls_back(self):
        assert normalize_resolution(Resolution(1, 1)) == FALLBACK_RESOLUTION


class TestMeanDuration:
    def test_mean(self, clip_dir, make_engine):
        d = clip_dir("a.mp4", "b.mp4", "c.mp4")
        engine = make_engine(durations={"a.mp4": 10.0, "b.mp4": 20.0, "c.mp4": 30.0})
        clips, _ = probe_clips(scan_clips(d), engine)
        assert mean_duration(clips) == 20.0

    def test_mean_includes_fallback(self, clip_dir, make_engine):
        d = clip_dir("a.mp4", "b.mp4")
        engine = make_engine(durations={"a.mp4": 20.0})
        clips, _ = probe_clips(scan_clips(d), engine)
        assert mean_duration(clips) == 15.0

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            mean_duration([])


class TestFFmpegProbe:
    """Real probing through moviepy's ffmpeg info parser."""

    def test_probe_real_clip(self, make_clip):
        path = make_clip("real.mp4", duration=2.0, size=(320, 240))
        result = FFmpegEngine().probe(path)
        assert result.resolution == Resolution(320, 240)
        assert 1.5 < result.duration < 2.5

    def test_probe_missing_file_raises(self, tmp_path):
        with pytest.raises(ProbeFailure):
            FFmpegEngine().probe(tmp_path / "missing.mp4")
