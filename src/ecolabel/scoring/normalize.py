"""Normalization of cost-like metrics onto a 0-100 scale."""

import logging
import math
from typing import Any

logger = logging.getLogger(__name__)


def normalize(value: Any, minimum: float, maximum: float) -> float:
    """Map a metric where lower is better onto 0-100.

    ``minimum`` scores 100 and ``maximum`` scores 0; values outside the band
    are clamped. A degenerate band (``minimum == maximum``) scores 50, and a
    missing or NaN value scores 0.
    """
    if minimum == maximum:
        return 50.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan

    if math.isnan(number):
        logger.warning("Missing metric value %r, scoring as worst case", value)
        return 0.0

    score = (maximum - number) / (maximum - minimum) * 100
    return max(0.0, min(100.0, score))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))
