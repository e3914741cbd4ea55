"""Track title clean-up for lyrics database searches.

Player-reported titles often carry video decorations ("(Official Video)",
"【MV】", "- YouTube Music"), featuring credits and remix/version tags
that make exact database lookups miss.
"""

import re

from ..utils.logging import get_logger

logger = get_logger(__name__)

# Quoted titles win outright: 「title」 and 『title』
_QUOTED_TITLE_RES = [
    re.compile(r"「([^」]+)」"),
    re.compile(r"『([^』]+)』"),
]
# 【tag】title【tag】
_BRACKET_SANDWICH_RE = re.compile(r"【[^】]*】([^【】]+)【[^】]*】")
_BRACKET_RE = re.compile(r"【([^】]+)】")
_BRACKET_NOISE = ("cover", "mv", "video", "official")
_TRAILING_SEPARATOR_RE = re.compile(r"[\-/｜／|:：‐‑‒–—―]+.*$")

_CLEANUP_PATTERNS = [
    # platform suffixes
    r"\s*-\s*YouTube\s*Music\s*$",
    r"\s*-\s*YouTube\s*$",
    # video/audio decorations
    r"\s*\([^)]*(?:official|music|lyric)[^)]*(?:video|audio)[^)]*\)",
    r"\s*\[[^\]]*(?:official|music|lyric)[^\]]*(?:video|audio)[^\]]*\]",
    r"\s*【[^】]*(?:official|music|lyric)[^】]*(?:video|audio)[^】]*】",
    r"\s*\([^)]*\bmv\b[^)]*\)",
    r"\s*\[[^\]]*\bmv\b[^\]]*\]",
    r"\s*【[^】]*\bmv\b[^】]*】",
    r"\s*\((?:visualizer|video|audio|acoustic\s+video)\)",
    r"\.(?:flv|mp4|avi|mov|wmv|mkv)$",
    r"\s*\[[^\]]*(?:playlist|4k|hd)[^\]]*\]",
    r"\s*\([^)]*(?:english\s+sub|eng\s+sub|subtitle|lyrics?)[^)]*\)",
    # featuring credits
    r"\s*\([^)]*\bfeat\.[^)]*\)",
    r"\s*\[[^\]]*\bfeat\.[^\]]*\]",
    r"\s*\((?:ft\.|featuring)\s+[^)]*\)",
    r"\s+(?:feat|ft)\.?\s+[^()\[\]]*$",
    r"\s*\(prod\.\s*[^)]*\)",
    # remix / version / remaster tags
    r"\s*\([^)]*remix[^)]*\)",
    r"\s*\[[^\]]*remix[^\]]*\]",
    r"\s*\([^)]*version[^)]*\)",
    r"\s*\((?:demo|stripped|original|live)\)",
    r"\s*\[[^\]]*remaster[^\]]*\]",
    r"\s*\([^)]*remaster[^)]*\)",
    r"\s*-\s*(?:\d{4}\s+)?remaster.*$",
]
_CLEANUP_RES = [re.compile(p, re.IGNORECASE) for p in _CLEANUP_PATTERNS]

_CJK_RE = re.compile(r"[぀-ヿ㐀-鿿가-힯]")
_SPACED_DASH_RE = re.compile(r"^(?P<head>.+?)\s+[-–—]\s+(?P<tail>.+)$")


def _extract_quoted(name: str):
    for pattern in _QUOTED_TITLE_RES:
        match = pattern.search(name)
        if match and len(match.group(1).strip()) > 2:
            return match.group(1).strip()

    match = _BRACKET_SANDWICH_RE.search(name)
    if match and len(match.group(1).strip()) > 1:
        extracted = match.group(1).strip()
        trimmed = _TRAILING_SEPARATOR_RE.sub("", extracted).strip()
        return trimmed if len(trimmed) > 1 else extracted

    match = _BRACKET_RE.search(name)
    if match:
        extracted = match.group(1).strip()
        lowered = extracted.lower()
        if len(extracted) > 2 and not any(n in lowered for n in _BRACKET_NOISE):
            trimmed = _TRAILING_SEPARATOR_RE.sub("", extracted).strip()
            return trimmed if len(trimmed) > 1 else extracted
    return None


def clean_track_name(track_name: str) -> str:
    """Strip decorations from a player-reported title.

    Examples:
        "Song (feat. Someone)"                 -> "Song"
        "Song - 2011 Remaster"                 -> "Song"
        "【MV】曲名 (Official Video) - YouTube"  -> "曲名"
    """
    if not track_name:
        return ""

    quoted = _extract_quoted(track_name)
    if quoted:
        logger.debug(f"Extracted quoted title: '{quoted}'")
        return quoted

    cleaned = track_name
    for pattern in _CLEANUP_RES:
        candidate = pattern.sub("", cleaned).strip()
        if len(candidate) > 1:
            cleaned = candidate

    # leftover 【...】 decorations
    candidate = re.sub(r"【.*?】", "", cleaned).strip()
    if len(candidate) > 1:
        cleaned = candidate

    # "原題 - Romaji" keeps the native title
    match = _SPACED_DASH_RE.match(cleaned)
    if match and _CJK_RE.search(match.group("head")) and not _CJK_RE.search(match.group("tail")):
        cleaned = match.group("head").strip()

    if " | " in cleaned:
        first = cleaned.split(" | ")[0].strip()
        if len(first) > 2:
            cleaned = first

    for quote_open, quote_close in (('"', '"'), ("'", "'")):
        if len(cleaned) > 2 and cleaned.startswith(quote_open) and cleaned.endswith(quote_close):
            cleaned = cleaned[1:-1]

    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if cleaned != track_name:
        logger.debug(f"Cleaned track name: '{track_name}' -> '{cleaned}'")
    return cleaned


def remove_artist_from_track(track_name: str, artist_name: str) -> str:
    """Drop a leading ``Artist - `` or trailing `` - Artist`` from a title."""
    if not artist_name or not artist_name.strip():
        return track_name

    artist = re.escape(artist_name.strip())
    result = track_name
    for pattern in (rf"^{artist}\s*[-–—]\s*", rf"\s*[-–—]\s*{artist}\s*$"):
        candidate = re.sub(pattern, "", result, flags=re.IGNORECASE).strip()
        if candidate and len(candidate) < len(result):
            logger.debug(f"Removed artist '{artist_name}' from track: '{candidate}'")
            result = candidate
    return result
