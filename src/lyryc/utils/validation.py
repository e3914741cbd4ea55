"""Validation utilities."""

import math
from typing import Optional

from ..config import MAX_OFFSET
from ..exceptions import ValidationError


def validate_duration(value: Optional[float], name: str = "duration") -> Optional[float]:
    """Reject NaN and negative durations; None passes through as unknown."""
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"{name} must be finite")
    if value < 0:
        raise ValidationError(f"{name} cannot be negative ({value:.2f}s)")
    return value


def validate_line_bounds(min_duration: float, max_duration: float) -> None:
    """Validate min/max line duration bounds."""
    validate_duration(min_duration, "min_line_duration")
    validate_duration(max_duration, "max_line_duration")
    if min_duration > max_duration:
        raise ValidationError(
            f"min_line_duration ({min_duration:.2f}s) exceeds "
            f"max_line_duration ({max_duration:.2f}s)"
        )


def validate_offset(offset: float) -> float:
    """Validate a user timing offset."""
    if math.isnan(offset) or abs(offset) > MAX_OFFSET:
        raise ValidationError(
            f"Timing offset must be between -{MAX_OFFSET:g} and +{MAX_OFFSET:g} seconds"
        )
    return offset
