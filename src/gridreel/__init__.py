"""gridreel — compile a directory of clips into one reel.

Intro slide listing every scene, each clip watermarked with its name,
then a grid of all clips playing at once, re-encoded to fit a size
budget. All media work is done by ffmpeg; this package computes the
parameters and drives the invocations.
"""

__version__ = "0.1.0"
