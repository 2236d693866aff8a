"""CLI for compiling a directory of clips into one reel.

Usage:
    # Compile with defaults (output.mp4, 10 MB budget)
    gridreel clips/

    # Custom output and budget, verbose engine commands
    gridreel -o reel.mp4 -s 25 -v clips/

    # Watermark 4 clips at a time, custom style file
    gridreel -j 4 -c style.yaml clips/

    # Show intro text, grid layout and speed factors without rendering
    gridreel --plan clips/

Exit codes: 0 success, 1 fatal error, 2 usage error, 130 interrupted.
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import (
    DEFAULT_MAX_SIZE_MB, DEFAULT_OUTPUT, DEFAULT_TIMEOUT, RenderSettings, RunConfig,
    load_settings,
)
from .console import error, eprint, set_verbose
from .engine import FFmpegEngine
from .errors import ArgumentParseError, GridReelError
from .pipeline import describe_plan, prepare, run

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad arguments."""

    def error(self, message):
        raise ArgumentParseError(message)


def _positive_float(text):
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: '{text}'")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {text}")
    return value


def _positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: '{text}'")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {text}")
    return value


def _timeout(text):
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: '{text}'")
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="gridreel",
        description=(
            "Compile the clips in a directory into one video: scene list "
            "intro, each clip labeled with its name, then a grid of all clips."
        ),
    )
    parser.add_argument(
        "input_dir",
        help="Directory containing .mov/.mp4/.avi/.mkv clips",
    )
    parser.add_argument(
        "-o", "--output", default=DEFAULT_OUTPUT,
        help=f"Output file (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "-s", "--size", type=_positive_float, default=DEFAULT_MAX_SIZE_MB,
        metavar="MB",
        help=f"Target maximum output size in MB (default: {DEFAULT_MAX_SIZE_MB:g})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Print every ffmpeg command and its log",
    )
    parser.add_argument(
        "-j", "--workers", type=_positive_int, default=1,
        help="Clips to watermark concurrently (default: 1)",
    )
    parser.add_argument(
        "-t", "--timeout", type=_timeout, default=DEFAULT_TIMEOUT,
        metavar="SECONDS",
        help=f"Limit per ffmpeg invocation, 0 = none (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "-c", "--config", default=None, metavar="FILE",
        help="YAML render settings (colors, encoder, compression tiers)",
    )
    parser.add_argument(
        "--plan", action="store_true",
        help="Probe clips and print the derived layout; don't render",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


def config_from_args(parsed) -> RunConfig:
    settings = load_settings(parsed.config) if parsed.config else RenderSettings()
    return RunConfig(
        input_dir=Path(parsed.input_dir),
        output=Path(parsed.output),
        max_size_mb=parsed.size,
        verbose=parsed.verbose,
        workers=parsed.workers,
        timeout=parsed.timeout or None,
        settings=settings,
    )


def main(args=None) -> int:
    parser = build_parser()
    try:
        parsed = parser.parse_args(args)
    except ArgumentParseError as e:
        parser.print_usage(sys.stderr)
        error(e.category, str(e))
        return EXIT_USAGE

    set_verbose(parsed.verbose)
    try:
        try:
            config = config_from_args(parsed)
        except (OSError, ValueError) as e:
            error("settings", str(e))
            return EXIT_FAILURE

        engine = FFmpegEngine(timeout=config.timeout)
        engine.check()
        if parsed.plan:
            describe_plan(prepare(config, engine))
            return EXIT_OK

        run(config, engine)
        return EXIT_OK
    except GridReelError as e:
        error(e.category, str(e))
        return EXIT_FAILURE
    except OSError as e:
        error("i/o", str(e))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        eprint("[red]interrupted[/]")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
