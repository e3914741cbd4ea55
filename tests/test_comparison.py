"""Tests for alignment comparison metrics."""

import math

import pytest

from lyryc.core.comparison import compare_alignments, compare_lrc
from lyryc.core.models import AlignedLine, LyricLine


def _aligned(times):
    return [AlignedLine(time=t, text=f"line {i}", duration=1.0) for i, t in enumerate(times)]


class TestCompareAlignments:
    def test_identical_alignment_is_zero(self):
        lines = _aligned([0.0, 1.5, 4.0, 9.25])
        metrics = compare_alignments(lines, lines)

        assert metrics.mae == 0
        assert metrics.rmse == 0
        assert metrics.mean_offset == 0
        assert metrics.matched == 4

    def test_constant_offset(self):
        metrics = compare_alignments(_aligned([1.0, 2.0, 3.0]), _aligned([0.5, 1.5, 2.5]))

        assert metrics.mae == pytest.approx(0.5)
        assert metrics.rmse == pytest.approx(0.5)
        assert metrics.mean_offset == pytest.approx(0.5)

    def test_signed_differences(self):
        metrics = compare_alignments(_aligned([1.0, 3.0]), _aligned([2.0, 2.0]))

        assert metrics.mae == pytest.approx(1.0)
        assert metrics.rmse == pytest.approx(1.0)
        assert metrics.mean_offset == pytest.approx(0.0)

    def test_rmse_weighs_outliers(self):
        metrics = compare_alignments(_aligned([0.0, 0.0, 3.0]), _aligned([0.0, 0.0, 0.0]))
        assert metrics.mae == pytest.approx(1.0)
        assert metrics.rmse == pytest.approx(math.sqrt(3.0))

    def test_compares_common_prefix(self):
        metrics = compare_alignments(_aligned([1.0, 2.0, 3.0]), _aligned([1.0, 2.5]))
        assert metrics.matched == 2
        assert metrics.mae == pytest.approx(0.25)

    def test_empty_overlap(self):
        metrics = compare_alignments([], _aligned([1.0]))
        assert metrics.to_dict() == {"mae": 0.0, "rmse": 0.0, "mean_offset": 0.0, "matched": 0}

    def test_accepts_lyric_lines(self):
        produced = [LyricLine(time=1.0, text="a"), LyricLine(time=2.0, text="b")]
        metrics = compare_alignments(produced, _aligned([0.0, 2.0]))
        assert metrics.mean_offset == pytest.approx(0.5)


def test_compare_lrc():
    produced = "[00:01.20]a\n[00:02.00]b"
    reference = "[00:01.00]a\n[00:02.00]b"
    metrics = compare_lrc(produced, reference)

    assert metrics.matched == 2
    assert metrics.mean_offset == pytest.approx(0.1)
