"""Structured ffmpeg filter graphs.

A graph is an ordered list of chains. Each chain reads zero or more
labeled pads, applies filters in sequence, and writes labeled pads:

    [0:v]setpts=PTS*2,scale=300:200[v0];[bg][v0]overlay=x=20:y=20[grid]

Graphs are built from Filter values and serialized only at the engine
boundary. Serialization applies ffmpeg's two escaping levels so that
arbitrary text (file names with quotes, colons, brackets) is safe:

  1. option value: backslash-escape  \\ ' :
  2. graph description: backslash-escape  \\ ' [ ] , ;
"""

from dataclasses import dataclass, field


_OPTION_SPECIAL = "\\':"
_GRAPH_SPECIAL = "\\'[],;"


def _backslash(text: str, special: str) -> str:
    return "".join("\\" + c if c in special else c for c in text)


def escape_value(value) -> str:
    """Escape a single option value for embedding in a filter graph."""
    if isinstance(value, float):
        text = f"{value:.6f}".rstrip("0").rstrip(".")
    else:
        text = str(value)
    return _backslash(_backslash(text, _OPTION_SPECIAL), _GRAPH_SPECIAL)


@dataclass(frozen=True)
class Filter:
    """One filter: name, positional args, then key=value options."""

    name: str
    args: tuple = ()
    options: tuple[tuple[str, object], ...] = ()

    def option(self, key: str, default=None):
        for k, v in self.options:
            if k == key:
                return v
        return default

    def serialize(self) -> str:
        parts = [escape_value(a) for a in self.args]
        parts += [f"{k}={escape_value(v)}" for k, v in self.options]
        if not parts:
            return self.name
        return f"{self.name}=" + ":".join(parts)


def _filter(name: str, *args, **options) -> Filter:
    opts = tuple((k, v) for k, v in options.items() if v is not None)
    return Filter(name, tuple(args), opts)


# ── Filter constructors ───────────────────────────────────────────


def scale(width, height, fit: str | None = None) -> Filter:
    """Scale to width x height. fit="decrease" keeps aspect ratio inside the box."""
    return _filter("scale", width, height, force_original_aspect_ratio=fit)


def pad(width, height, x="(ow-iw)/2", y="(oh-ih)/2", color="black") -> Filter:
    return _filter("pad", width, height, x, y, color)


def setpts(factor: float) -> Filter:
    """Multiply presentation timestamps by factor (>1 slows down)."""
    return _filter("setpts", f"(PTS-STARTPTS)*{factor:.6f}")


def fps(rate: int) -> Filter:
    return _filter("fps", rate)


def setsar(ratio: int = 1) -> Filter:
    return _filter("setsar", ratio)


def pixel_format(pix_fmt: str) -> Filter:
    return _filter("format", pix_fmt)


def trim(duration: float) -> Filter:
    return _filter("trim", duration=duration)


def overlay(x: int, y: int) -> Filter:
    return _filter("overlay", x=x, y=y)


def color_source(color: str, width: int, height: int, rate: int, duration: float) -> Filter:
    """Solid-color source filter (no input pads)."""
    return _filter("color", c=color, s=f"{width}x{height}", r=rate, d=duration)


# ── Graph ─────────────────────────────────────────────────────────


@dataclass
class Chain:
    inputs: list[str]
    filters: list[Filter]
    outputs: list[str]

    def serialize(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        body = ",".join(f.serialize() for f in self.filters)
        return f"{ins}{body}{outs}"


@dataclass
class FilterGraph:
    """Ordered chains plus the label of the pad mapped to the output file."""

    output: str
    chains: list[Chain] = field(default_factory=list)

    def add(self, inputs: list[str], filters: list[Filter], outputs: list[str]) -> "FilterGraph":
        if not filters:
            raise ValueError("A filter chain needs at least one filter")
        self.chains.append(Chain(list(inputs), list(filters), list(outputs)))
        return self

    def filters_named(self, name: str) -> list[Filter]:
        return [f for chain in self.chains for f in chain.filters if f.name == name]

    def serialize(self) -> str:
        if not any(self.output in chain.outputs for chain in self.chains):
            raise ValueError(f"No chain produces the output label [{self.output}]")
        return ";".join(chain.serialize() for chain in self.chains)
