"""Configuration settings for Lyryc.

All times are seconds (float) unless a name says otherwise.
"""

import os
from pathlib import Path

from .exceptions import ConfigError

# Directories
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "lyryc"

# Lyrics database (can be overridden via environment variables)
LRCLIB_BASE_URL = os.getenv("LYRYC_LRCLIB_URL", "https://lrclib.net/api")
REQUEST_TIMEOUT = float(os.getenv("LYRYC_REQUEST_TIMEOUT", "10"))
USER_AGENT = "Lyryc/0.3.0 (https://github.com/lyryc/lyryc)"
STRATEGY_DELAY = 0.2  # pause between search strategies
STRATEGY_MAX_RETRIES = 3
STRATEGY_RETRY_DELAY = 1.0

# Line timing
DEFAULT_LINE_DURATION = 3.0  # last LRC line / lines without a successor
MIN_LINE_DURATION = 1.0
MAX_LINE_DURATION = 8.0
PLACEHOLDER_LINE_DURATION = 5.0  # seconds per line when the track length is unknown

# Audio features
FRAME_SIZE = 1024
HOP_SIZE = 512
N_MEL_BANDS = 26
N_MFCC = 13
TEXT_FEATURE_SIZE = 40
WORD_SEARCH_WINDOW = 0.2  # +/- window for energy nudging of word boundaries
MIN_REFINED_LINE_DURATION = 0.1

# Confidence
DEFAULT_CONFIDENCE = 0.5  # reported when no reference timings exist
CONFIDENCE_DEVIATION_CAP = 5.0
ORIGINAL_CONFIDENCE = 0.8  # database-timed lyrics
PLAIN_TEXT_CONFIDENCE = 0.3  # heuristically spread plain text
CONFIDENCE_THRESHOLD = float(os.getenv("LYRYC_CONFIDENCE_THRESHOLD", "0.6"))
ENABLE_AI_ALIGNMENT = os.getenv("LYRYC_ENABLE_AI_ALIGNMENT", "1") not in ("0", "false", "no")

# Playback clock
CLOCK_TICK_INTERVAL = 0.05
CLOCK_SYNC_INTERVAL = 1.0
DRIFT_THRESHOLD = 0.5

# Offsets
MAX_OFFSET = 30.0

# Cache settings
CACHE_TTL_SECONDS = 7 * 24 * 60 * 60
MAX_CACHE_ENTRIES = 1000


def validate_config() -> None:
    """Validate configuration values."""
    if not (0.0 <= CONFIDENCE_THRESHOLD <= 1.0):
        raise ConfigError("Confidence threshold must be between 0 and 1")

    if REQUEST_TIMEOUT <= 0:
        raise ConfigError("Invalid request timeout")

    if not (0 < MIN_LINE_DURATION <= MAX_LINE_DURATION):
        raise ConfigError("Invalid line duration bounds")

    if HOP_SIZE <= 0 or FRAME_SIZE < HOP_SIZE:
        raise ConfigError("Invalid frame/hop size")

    if CLOCK_TICK_INTERVAL <= 0 or CLOCK_SYNC_INTERVAL < CLOCK_TICK_INTERVAL:
        raise ConfigError("Invalid clock intervals")


def get_cache_dir() -> Path:
    """Get cache directory from environment or default."""
    cache_dir = os.getenv("LYRYC_CACHE_DIR")
    if cache_dir:
        return Path(cache_dir)
    return DEFAULT_CACHE_DIR


# Validate config on import
validate_config()
