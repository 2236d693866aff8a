"""Tests for the scratch workspace lifecycle."""

import os
import signal

import pytest

from gridreel.workspace import temporary_workspace


class TestTemporaryWorkspace:
    def test_removed_on_success(self):
        with temporary_workspace() as ws:
            root = ws.root
            (ws.root / "a.mp4").write_bytes(b"x")
            ws.subdir("clips").joinpath("b.mp4").write_bytes(b"y")
            assert root.is_dir()
        assert not root.exists()

    def test_removed_on_error(self):
        with pytest.raises(RuntimeError):
            with temporary_workspace() as ws:
                root = ws.root
                (ws.root / "a.mp4").write_bytes(b"x")
                raise RuntimeError("boom")
        assert not root.exists()

    def test_removed_on_keyboard_interrupt(self):
        with pytest.raises(KeyboardInterrupt):
            with temporary_workspace() as ws:
                root = ws.root
                raise KeyboardInterrupt
        assert not root.exists()

    def test_sigterm_becomes_interrupt_and_cleans_up(self):
        with pytest.raises(KeyboardInterrupt):
            with temporary_workspace() as ws:
                root = ws.root
                os.kill(os.getpid(), signal.SIGTERM)
        assert not root.exists()

    def test_sigterm_handler_restored(self):
        before = signal.getsignal(signal.SIGTERM)
        with temporary_workspace():
            assert signal.getsignal(signal.SIGTERM) is not before
        assert signal.getsignal(signal.SIGTERM) is before

    def test_private_directory_per_run(self):
        with temporary_workspace() as a, temporary_workspace() as b:
            assert a.root != b.root
