"""Custom exceptions for Lyryc."""

class LyrycError(Exception):
    """Base exception for Lyryc."""
    pass

class ConfigError(LyrycError):
    """Invalid configuration value."""
    pass

class ValidationError(LyrycError):
    """Invalid input parameters."""
    pass

class LyricsError(LyrycError):
    """Error fetching or processing lyrics."""
    pass

class NetworkError(LyricsError):
    """Lyrics database unreachable after all retries and strategies."""
    pass

class RequestCancelled(LyrycError):
    """A newer request superseded this one."""
    pass

class RefinementUnavailable(LyrycError):
    """Audio-based timing refinement could not run or was not trusted."""
    pass

class CacheError(LyrycError):
    """Error with cache operations."""
    pass
