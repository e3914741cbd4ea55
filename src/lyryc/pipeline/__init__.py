"""Pipeline subsystem facades.

These packages expose stable orchestration boundaries while core modules
continue to host the implementation details.
"""

from . import alignment, lyrics, playback

__all__ = ["alignment", "lyrics", "playback"]
