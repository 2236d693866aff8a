"""Temporary workspace — one private scratch directory per run.

Every intermediate file lives under it. The directory is removed when
the `with` block exits, whether by success, error, Ctrl-C, or SIGTERM
(converted to KeyboardInterrupt while the workspace is open).
"""

import signal
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path


class Workspace:
    def __init__(self, root: Path):
        self.root = Path(root)

    def subdir(self, name: str) -> Path:
        p = self.root / name
        p.mkdir(parents=True, exist_ok=True)
        return p


def _interrupt(signum, frame):
    raise KeyboardInterrupt(f"received signal {signum}")


@contextmanager
def temporary_workspace(prefix: str = "gridreel-"):
    """Yield a Workspace; its directory tree is always removed afterwards."""
    restore = None
    if threading.current_thread() is threading.main_thread():
        restore = signal.signal(signal.SIGTERM, _interrupt)
    try:
        with tempfile.TemporaryDirectory(prefix=prefix) as tmp:
            yield Workspace(Path(tmp))
    finally:
        if restore is not None:
            signal.signal(signal.SIGTERM, restore)
