"""Timing comparison between two alignments of the same lyrics."""

import math
from typing import Sequence, Union

from ..utils.logging import get_logger
from .lrc import parse_lrc_to_aligned
from .models import AlignedLine, AlignmentMetrics, LyricLine

logger = get_logger(__name__)

TimedLine = Union[AlignedLine, LyricLine]


def compare_alignments(
    produced: Sequence[TimedLine], reference: Sequence[TimedLine]
) -> AlignmentMetrics:
    """Compare line start times pairwise by index.

    Lines are matched by position only, up to the shorter sequence, so both
    sides must describe the same lines in the same order. Differences are
    ``produced - reference``; a positive ``mean_offset`` means the produced
    lines come in late. No overlap gives all-zero metrics.

    Args:
        produced: Alignment under test
        reference: Trusted alignment

    Returns:
        AlignmentMetrics with mae, rmse, mean_offset and matched count
    """
    matched = min(len(produced), len(reference))
    if matched == 0:
        return AlignmentMetrics(mae=0.0, rmse=0.0, mean_offset=0.0, matched=0)

    diffs = [produced[i].time - reference[i].time for i in range(matched)]
    mae = sum(abs(d) for d in diffs) / matched
    rmse = math.sqrt(sum(d * d for d in diffs) / matched)
    mean_offset = sum(diffs) / matched

    if len(produced) != len(reference):
        logger.debug(
            f"Line count mismatch ({len(produced)} vs {len(reference)}); "
            f"compared first {matched}"
        )
    return AlignmentMetrics(mae=mae, rmse=rmse, mean_offset=mean_offset, matched=matched)


def compare_lrc(produced_text: str, reference_text: str) -> AlignmentMetrics:
    """Parse two LRC payloads and compare them."""
    return compare_alignments(
        parse_lrc_to_aligned(produced_text), parse_lrc_to_aligned(reference_text)
    )
