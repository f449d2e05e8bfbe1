"""EcoScore computation from a raw audit report."""

import dataclasses
import logging
import math
from typing import Optional

from ..exceptions import EcoLabelError, InvalidScoreError
from ..models import CO2Estimate, EcoData, RawAuditReport
from .co2 import estimate_co2
from .normalize import normalize, round_half_up

logger = logging.getLogger(__name__)

# Weights sum to 1.0
WEIGHT_PERFORMANCE = 0.4
WEIGHT_BYTES = 0.2
WEIGHT_BOOTUP = 0.15
WEIGHT_HOSTING = 0.1
WEIGHT_IMAGES = 0.1
WEIGHT_CLS = 0.05

MAX_BYTES = 1_000_000
MAX_BOOTUP_MS = 1000
MAX_CLS = 0.25

DEFAULT_PERFORMANCE_SCORE = 0.5


def estimate_performance_score(report: RawAuditReport) -> float:
    """Estimate a 0-1 performance score from Core Web Vitals.

    Starts from 0.5 and adds credit for each good metric that is present.
    """
    score = DEFAULT_PERFORMANCE_SCORE

    fcp = report.first_contentful_paint_ms
    if fcp is not None:
        if fcp < 1800:
            score += 0.15
        elif fcp < 3000:
            score += 0.10

    lcp = report.largest_contentful_paint_ms
    if lcp is not None:
        if lcp < 2500:
            score += 0.15
        elif lcp < 4000:
            score += 0.10

    fid = report.max_potential_fid_ms
    if fid is not None and fid < 100:
        score += 0.10

    cls = report.cumulative_layout_shift
    if cls is not None and cls < 0.1:
        score += 0.10

    return max(0.0, min(1.0, score))


def resolve_performance_score(report: RawAuditReport) -> float:
    """Return the report's performance score, estimating it when absent."""
    if report.has_performance_score:
        return float(report.performance_score)
    if report.has_web_vitals:
        estimated = estimate_performance_score(report)
        logger.info("No performance score in report, estimated %.2f from web vitals", estimated)
        return estimated
    logger.warning("No performance data in report, using default %.2f", DEFAULT_PERFORMANCE_SCORE)
    return DEFAULT_PERFORMANCE_SCORE


def _metric(name: str, value: Optional[float]) -> float:
    """A non-negative metric value. Missing or non-finite values count as 0."""
    if value is None:
        return 0.0
    value = float(value)
    if not math.isfinite(value):
        logger.warning("Ignoring non-finite %s: %s", name, value)
        return 0.0
    if value < 0:
        logger.warning("Clamping negative %s to 0: %s", name, value)
        return 0.0
    return value


def compute_eco_score(report: RawAuditReport) -> EcoData:
    """Compute the EcoScore for a single page.

    Args:
        report: Metrics from the performance audit

    Returns:
        EcoData with the score, its components and a CO2 estimate
        (``co2`` is None if the estimate failed)

    Raises:
        InvalidScoreError: if the score is NaN or outside 0-100
    """
    performance = resolve_performance_score(report) * 100
    total_bytes = _metric("total byte weight", report.total_byte_weight)
    bootup_time = _metric("bootup time", report.bootup_time_ms)
    hosting_green = 100 if report.uses_green_hosting else 0
    image_optimization = 100 if report.uses_optimized_images else 0
    cls = _metric("cumulative layout shift", report.cumulative_layout_shift)

    raw_score = (
        performance * WEIGHT_PERFORMANCE
        + normalize(total_bytes, 0, MAX_BYTES) * WEIGHT_BYTES
        + normalize(bootup_time, 0, MAX_BOOTUP_MS) * WEIGHT_BOOTUP
        + hosting_green * WEIGHT_HOSTING
        + image_optimization * WEIGHT_IMAGES
        + normalize(cls, 0, MAX_CLS) * WEIGHT_CLS
    )
    if not math.isfinite(raw_score):
        raise InvalidScoreError(f"EcoScore is {raw_score}")

    eco_score = round_half_up(raw_score)
    if not 0 <= eco_score <= 100:
        raise InvalidScoreError(f"EcoScore {eco_score} is outside 0-100")

    eco_data = EcoData(
        eco_score=eco_score,
        performance=performance,
        total_bytes=total_bytes,
        bootup_time=bootup_time,
        hosting_green=hosting_green,
        image_optimization=image_optimization,
        cls=cls,
    )
    return dataclasses.replace(eco_data, co2=safe_estimate_co2(eco_data))


def safe_estimate_co2(eco_data: EcoData) -> Optional[CO2Estimate]:
    """Run the CO2 estimate, logging and returning None on failure."""
    try:
        return estimate_co2(eco_data)
    except (EcoLabelError, ArithmeticError, TypeError, ValueError) as e:
        logger.error("CO2 estimation failed: %s", e)
        return None
