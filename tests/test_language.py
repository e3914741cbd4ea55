"""Tests for language detection and language-specific post-processing."""

import pytest

from lyryc.core.language import (
    apply_language_enhancements,
    detect_language,
    enhance_text,
    is_complex_word,
    timing_adjustments,
)
from lyryc.core.models import LyricLine
from lyryc.core.word_timing import ensure_word_timings


def _lines(*texts):
    return [LyricLine(time=float(i), text=t, duration=1.0) for i, t in enumerate(texts)]


class TestDetectLanguage:
    @pytest.mark.parametrize("text,expected", [
        ("きみのこえがきこえる", "ja"),
        ("夜に駆けるよ", "ja"),
        ("사랑해요 너를", "ko"),
        ("我爱你中国", "zh"),
        ("Я тебя люблю", "ru"),
        ("أحبك كثيرا", "ar"),
        ("मैं तुमसे प्यार करता हूँ", "hi"),
        ("ฉันรักเธอ", "th"),
    ])
    def test_scripts(self, text, expected):
        assert detect_language(_lines(text)) == expected

    def test_spanish_stop_words(self):
        lines = _lines("la vida es un sueño", "y el amor de mi corazón")
        assert detect_language(lines) == "es"

    def test_german_stop_words(self):
        lines = _lines("ich liebe dich und die Nacht", "das ist mein Lied")
        assert detect_language(lines) == "de"

    def test_english_is_not_misread(self):
        lines = _lines("Is this the real life?", "Is this just fantasy?", "Open your eyes")
        assert detect_language(lines) == "en"

    def test_single_stop_word_is_not_enough(self):
        assert detect_language(_lines("oh la oh yeah")) == "en"

    def test_default_and_title(self):
        assert detect_language([]) == "en"
        assert detect_language(_lines("oh oh"), title="夜に駆ける") == "ja"


class TestHelpers:
    def test_timing_adjustments(self):
        assert timing_adjustments("ja").min_word_duration == pytest.approx(0.3)
        assert timing_adjustments("de").complex_word_multiplier == pytest.approx(1.5)
        assert timing_adjustments("xx") == timing_adjustments(None)

    def test_is_complex_word(self):
        assert is_complex_word("漢字", "ja")
        assert not is_complex_word("ひらがな", "ja")
        assert is_complex_word("Donaudampfschiff", "de")
        assert not is_complex_word("Haus", "de")
        assert is_complex_word("beautiful", "en")
        assert is_complex_word("don't", "en")

    def test_enhance_text_japanese(self):
        assert enhance_text("きみのメロディ", "ja") == "きみの メロディ"

    def test_enhance_text_chinese(self):
        assert enhance_text("我爱你。你爱我", "zh") == "我爱你。 你爱我"
        assert enhance_text("我爱你。 你爱我", "zh") == "我爱你。 你爱我"

    def test_enhance_text_other_languages_untouched(self):
        assert enhance_text("hello。world", "en") == "hello。world"


class TestApplyLanguageEnhancements:
    def test_retimes_only_selected_lines(self):
        lines = ensure_word_timings(_lines("Ich liebe Donaudampfschifffahrt", "und die Nacht"))
        result = apply_language_enhancements(lines, "de", retime={0})

        assert result[1].words == lines[1].words
        assert result[0].words != lines[0].words
        assert result[0].words[0].start == pytest.approx(0.0)
        assert result[0].words[-1].end == pytest.approx(1.0)

    def test_text_fixes_apply_to_words(self):
        lines = ensure_word_timings(_lines("きみのメロディ"))
        result = apply_language_enhancements(lines, "ja")
        assert result[0].text == "きみの メロディ"
        assert result[0].words[0].word == "きみの メロディ"
