"""Language detection and language-specific lyric post-processing."""

import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Set

from ..utils.logging import get_logger
from .models import LyricLine, WordTiming

logger = get_logger(__name__)

# Script-based detection, checked in order
_SCRIPT_PATTERNS = [
    ("ja", re.compile(r"[\u3040-\u309f\u30a0-\u30ff]")),  # kana
    ("ko", re.compile(r"[\uac00-\ud7af\u1100-\u11ff\u3130-\u318f]")),
    ("zh", re.compile(r"[\u4e00-\u9fff]")),  # han without kana
    ("ru", re.compile(r"[\u0400-\u04ff]")),
    ("ar", re.compile(r"[\u0600-\u06ff]")),
    ("hi", re.compile(r"[\u0900-\u097f]")),
    ("th", re.compile(r"[\u0e00-\u0e7f]")),
]

# Stop-word lists for Latin-script languages
_STOP_WORDS: Dict[str, Set[str]] = {
    "en": {"the", "and", "you", "is", "are", "of", "to", "in", "it", "my", "me",
           "i", "i'm", "your", "we", "with", "for", "on", "that", "what", "this"},
    "es": {"el", "la", "los", "las", "un", "una", "de", "del", "y", "con", "en",
           "por", "para", "que", "es", "son", "está", "están"},
    "fr": {"le", "la", "les", "un", "une", "de", "du", "des", "et", "avec",
           "dans", "par", "pour", "que", "est", "sont"},
    "de": {"der", "die", "das", "ein", "eine", "und", "mit", "in", "von", "für",
           "dass", "ist", "sind", "aber", "oder"},
    "it": {"il", "la", "lo", "gli", "le", "un", "una", "di", "del", "della", "e",
           "con", "in", "per", "che", "è", "sono"},
    "pt": {"o", "a", "os", "as", "um", "uma", "de", "do", "da", "e", "com", "em",
           "por", "para", "que", "é", "são"},
}
_LATIN_ORDER = ["es", "fr", "de", "it", "pt"]
_TOKEN_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?")
MIN_STOP_WORD_HITS = 2

SUPPORTED_LANGUAGES = ["en", "es", "fr", "de", "it", "pt", "fi", "ja", "ko", "zh", "ru", "ar", "hi", "th"]


@dataclass(frozen=True)
class TimingAdjustments:
    """Per-language word duration tweaks (seconds)."""

    complex_word_multiplier: float = 1.2
    punctuation_multiplier: float = 1.1
    min_word_duration: float = 0.2
    max_word_duration: float = 2.0


_DEFAULT_ADJUSTMENTS = TimingAdjustments()
_ADJUSTMENTS = {
    "ja": replace(_DEFAULT_ADJUSTMENTS, complex_word_multiplier=1.4, min_word_duration=0.3),
    "zh": replace(_DEFAULT_ADJUSTMENTS, complex_word_multiplier=1.3, min_word_duration=0.25),
    "de": replace(_DEFAULT_ADJUSTMENTS, complex_word_multiplier=1.5, max_word_duration=3.0),
    "fi": replace(_DEFAULT_ADJUSTMENTS, complex_word_multiplier=1.4, max_word_duration=2.5),
}

_KANJI_RE = re.compile(r"[\u4e00-\u9faf]")
_HAN_RE = re.compile(r"[\u4e00-\u9fff]")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9\s]")
_PUNCT_RE = re.compile(r"[.,!?;:()\[\]{}\"'…“”‘’]")
_HIRA_KATA_RE = re.compile(r"([\u3040-\u309f])([\u30a0-\u30ff])")
_CJK_STOP_RE = re.compile(r"([。！？])([^。！？\s])")


def detect_language(
    lines: Iterable[LyricLine], title: str = "", artist: str = ""
) -> str:
    """Guess the lyric language from script ranges and stop words.

    Scripts are checked first (kana, hangul, han, cyrillic, arabic,
    devanagari, thai). Latin text is scored against stop-word lists and a
    language wins only with at least MIN_STOP_WORD_HITS hits and more hits
    than English. Falls back to ``"en"``.
    """
    text = " ".join(line.text for line in lines)
    combined = f"{text} {title or ''} {artist or ''}".lower()

    for lang, pattern in _SCRIPT_PATTERNS:
        if pattern.search(combined):
            logger.debug(f"Detected language: {lang}")
            return lang

    tokens = _TOKEN_RE.findall(combined)
    if not tokens:
        return "en"

    hits = {
        lang: sum(1 for tok in tokens if tok in words)
        for lang, words in _STOP_WORDS.items()
    }
    best = "en"
    best_hits = hits["en"]
    for lang in _LATIN_ORDER:
        if hits[lang] >= MIN_STOP_WORD_HITS and hits[lang] > best_hits:
            best = lang
            best_hits = hits[lang]

    logger.debug(f"Detected language: {best} (stop-word hits {hits})")
    return best


def timing_adjustments(language: Optional[str]) -> TimingAdjustments:
    return _ADJUSTMENTS.get(language or "", _DEFAULT_ADJUSTMENTS)


def is_complex_word(word: str, language: Optional[str]) -> bool:
    if language == "ja":
        return bool(_KANJI_RE.search(word))
    if language == "zh":
        return bool(_HAN_RE.search(word))
    if language == "de":
        return len(word) > 8  # likely a compound
    if language == "ru":
        return len(word) > 7
    return len(word) > 6 or bool(_NON_ALNUM_RE.search(word))


def is_punctuated_word(word: str) -> bool:
    return bool(_PUNCT_RE.search(word))


def enhance_text(text: str, language: Optional[str]) -> str:
    """Cosmetic spacing fixes for CJK text."""
    if language == "ja":
        return _HIRA_KATA_RE.sub(r"\1 \2", text)
    if language == "zh":
        return _CJK_STOP_RE.sub(r"\1 \2", text)
    return text


def apply_language_enhancements(
    lines: List[LyricLine],
    language: str,
    retime: Optional[Set[int]] = None,
) -> List[LyricLine]:
    """Apply text fixes to every line and re-time the words of ``retime`` lines.

    Only lines whose words were generated heuristically should be re-timed;
    word timings that came with the lyrics are left alone.
    """
    from .word_timing import apply_language_timing

    retime = retime or set()
    result: List[LyricLine] = []
    for i, line in enumerate(lines):
        if i in retime:
            line = apply_language_timing(line, language)
        words = None
        if line.words is not None:
            words = [WordTiming(enhance_text(w.word, language), w.start, w.end) for w in line.words]
        result.append(
            LyricLine(
                time=line.time,
                text=enhance_text(line.text, language),
                duration=line.duration,
                words=words,
            )
        )
    return result
