"""Error kinds raised by the reel pipeline.

Pre-flight and structural errors abort before any rendering starts.
ProbeFailure is the only kind recovered locally (fallback values).
"""


class GridReelError(Exception):
    """Base class for all fatal pipeline errors."""

    category = "error"


class MissingDependencyError(GridReelError):
    category = "missing dependency"


class InvalidInputDirectoryError(GridReelError):
    category = "invalid input directory"


class NoClipsFoundError(GridReelError):
    category = "no clips found"


class GridLayoutError(GridReelError):
    category = "grid layout"


class ArgumentParseError(GridReelError):
    category = "usage"


class ProbeFailure(GridReelError):
    """Metadata query failed. Callers substitute fallback values."""

    category = "probe"


class MediaEngineInvocationError(GridReelError):
    """An ffmpeg invocation failed, timed out, or could not start."""

    category = "media engine"

    def __init__(self, message: str, command=None, returncode=None, stderr: str = ""):
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self):
        msg = super().__str__()
        if self.returncode is not None:
            msg += f" (exit code {self.returncode})"
        tail = self.stderr.strip().splitlines()[-5:]
        if tail:
            msg += "\n" + "\n".join(f"  | {line}" for line in tail)
        return msg
