"""Coarse character-to-phoneme tables and text feature vectors.

These are not real pronunciation dictionaries; they only give each line a
rough numeric fingerprint to compare against audio frames.
"""

import re
from typing import Dict, List, Sequence

import numpy as np

from ..config import TEXT_FEATURE_SIZE
from ..utils.logging import get_logger
from .models import LyricLine

logger = get_logger(__name__)

PhonemeTable = Dict[str, List[str]]

_PHONEME_TABLES: Dict[str, PhonemeTable] = {
    "en": {
        "a": ["æ", "ə", "ɑ"],
        "e": ["ɛ", "i", "ə"],
        "i": ["ɪ", "aɪ"],
        "o": ["ɔ", "oʊ", "ə"],
        "u": ["ʊ", "u", "ʌ"],
    },
    "es": {
        "a": ["a"],
        "e": ["e"],
        "i": ["i"],
        "o": ["o"],
        "u": ["u"],
        "r": ["r", "rr"],
        "ñ": ["ɲ"],
    },
    "fr": {
        "a": ["a", "ɑ"],
        "e": ["e", "ɛ", "ə"],
        "i": ["i"],
        "o": ["o", "ɔ"],
        "u": ["u"],
        "é": ["e"],
        "è": ["ɛ"],
    },
    "de": {
        "a": ["a", "ɑ"],
        "e": ["e", "ɛ", "ə"],
        "i": ["i", "ɪ"],
        "o": ["o", "ɔ"],
        "u": ["u", "ʊ"],
        "ü": ["y", "ʏ"],
        "ö": ["ø", "œ"],
        "ä": ["ɛ"],
    },
    "ja": {
        "あ": ["a"],
        "い": ["i"],
        "う": ["u"],
        "え": ["e"],
        "お": ["o"],
        "か": ["ka"],
        "が": ["ga"],
    },
    "ko": {
        "ㅏ": ["a"],
        "ㅓ": ["ʌ"],
        "ㅗ": ["o"],
        "ㅜ": ["u"],
        "ㅡ": ["ɯ"],
        "ㅣ": ["i"],
    },
    "zh": {
        "a": ["a"],
        "e": ["ə"],
        "i": ["i"],
        "o": ["o"],
        "u": ["u"],
        "ü": ["y"],
    },
    "ru": {
        "а": ["a"],
        "е": ["je", "e"],
        "и": ["i"],
        "о": ["o"],
        "у": ["u"],
        "ы": ["ɨ"],
        "э": ["e"],
        "ю": ["ju"],
        "я": ["ja"],
    },
    "ar": {
        "ا": ["a", "ɑ"],
        "ي": ["i", "j"],
        "و": ["u", "w"],
        "ة": ["a", "at"],
    },
    "hi": {
        "अ": ["ə"],
        "आ": ["a"],
        "इ": ["ɪ"],
        "ई": ["i"],
        "उ": ["ʊ"],
        "ऊ": ["u"],
    },
}

DEFAULT_PHONEME_LANGUAGE = "en"


def supported_phoneme_languages() -> List[str]:
    return list(_PHONEME_TABLES)


def get_phoneme_table(language: str) -> PhonemeTable:
    """Phoneme table for ``language``, English when there is none."""
    return _PHONEME_TABLES.get(language, _PHONEME_TABLES[DEFAULT_PHONEME_LANGUAGE])


def word_to_phonemes(word: str, table: PhonemeTable) -> List[str]:
    """Expand each character through the table; unknown characters map to themselves."""
    phonemes: List[str] = []
    for char in word.lower():
        phonemes.extend(table.get(char, [char]))
    return phonemes


def phonemes_to_features(phonemes: Sequence[str]) -> np.ndarray:
    return np.array([ord(p[0]) / 127.0 for p in phonemes if p], dtype=np.float64)


def line_features(text: str, table: PhonemeTable, size: int = TEXT_FEATURE_SIZE) -> np.ndarray:
    """Fixed-size feature vector for one line, zero padded."""
    vector = np.zeros(size, dtype=np.float64)
    index = 0
    for word in re.split(r"\s+", text.lower()):
        if not word:
            continue
        feats = phonemes_to_features(word_to_phonemes(word, table))
        take = min(len(feats), size - index)
        vector[index:index + take] = feats[:take]
        index += len(feats)
        if index >= size:
            break
    return vector


def text_features(
    lines: Sequence[LyricLine], language: str = DEFAULT_PHONEME_LANGUAGE
) -> np.ndarray:
    """Stack per-line feature vectors into a ``(lines, TEXT_FEATURE_SIZE)`` array."""
    table = get_phoneme_table(language)
    if not lines:
        return np.zeros((0, TEXT_FEATURE_SIZE), dtype=np.float64)
    return np.vstack([line_features(line.text, table) for line in lines])
