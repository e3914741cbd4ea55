"""Lyryc - heuristic lyrics alignment for karaoke-style highlighting."""

__version__ = "0.3.0"
