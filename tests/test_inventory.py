"""Tests for clip discovery and ordering."""

import pytest

from gridreel.errors import InvalidInputDirectoryError, NoClipsFoundError
from gridreel.inventory import Clip, scan_clips


class TestScanClips:
    def test_sorted_by_path_and_numbered(self, clip_dir):
        d = clip_dir("c.mp4", "a.mov", "b.mkv")
        clips = scan_clips(d)
        assert [c.path.name for c in clips] == ["a.mov", "b.mkv", "c.mp4"]
        assert [c.ordinal for c in clips] == [1, 2, 3]
        assert all(c.duration is None for c in clips)

    def test_extension_case_insensitive(self, clip_dir):
        d = clip_dir("A.MOV", "b.Mp4", "c.AVI")
        assert len(scan_clips(d)) == 3

    def test_ignores_non_media_and_hidden(self, clip_dir):
        d = clip_dir("notes.txt", "cover.png", ".hidden.mp4", "scene.mp4")
        assert [c.path.name for c in scan_clips(d)] == ["scene.mp4"]

    def test_excludes_output_and_reserved_names(self, clip_dir):
        d = clip_dir("reel.mp4", "output.mp4", "compiled.mp4", "scene.mov")
        clips = scan_clips(d, output_name="reel.mp4")
        assert [c.path.name for c in clips] == ["scene.mov"]

    def test_not_recursive(self, clip_dir):
        d = clip_dir("top.mp4")
        sub = d / "nested"
        sub.mkdir()
        (sub / "deep.mp4").write_bytes(b"x")
        assert [c.path.name for c in scan_clips(d)] == ["top.mp4"]

    def test_directory_named_like_media_skipped(self, clip_dir):
        d = clip_dir("real.mp4")
        (d / "folder.mp4").mkdir()
        assert [c.path.name for c in scan_clips(d)] == ["real.mp4"]

    def test_only_excluded_files_raises(self, clip_dir):
        d = clip_dir("output.mp4", "readme.md")
        with pytest.raises(NoClipsFoundError):
            scan_clips(d)

    def test_empty_directory_raises(self, tmp_path):
        with pytest.raises(NoClipsFoundError):
            scan_clips(tmp_path)

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(InvalidInputDirectoryError, match="does not exist"):
            scan_clips(tmp_path / "missing")

    def test_file_instead_of_directory_raises(self, tmp_path):
        f = tmp_path / "clip.mp4"
        f.write_bytes(b"x")
        with pytest.raises(InvalidInputDirectoryError, match="not a directory"):
            scan_clips(f)


class TestClip:
    def test_name_strips_extension(self, tmp_path):
        assert Clip(path=tmp_path / "Harbor.mov", ordinal=1).name == "Harbor"

    def test_immutable(self, tmp_path):
        clip = Clip(path=tmp_path / "a.mp4", ordinal=1)
        with pytest.raises(AttributeError):
            clip.duration = 3.0
