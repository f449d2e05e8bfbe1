"""Extraction of EcoScore inputs from Lighthouse result documents."""

import math
from typing import Any, Optional

from .models import RawAuditReport


def _section(parent: dict[str, Any], name: str) -> dict[str, Any]:
    value = parent.get(name)
    return value if isinstance(value, dict) else {}


def _number(value: Any) -> Optional[float]:
    # NaN, infinities and booleans count as missing
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _numeric_value(audits: dict[str, Any], name: str) -> Optional[float]:
    return _number(_section(audits, name).get("numericValue"))


def _passed(audits: dict[str, Any], name: str) -> Optional[bool]:
    audit = audits.get(name)
    if not isinstance(audit, dict):
        return None
    return audit.get("score") == 1


def parse_lighthouse_report(lhr: dict[str, Any]) -> RawAuditReport:
    """Map a Lighthouse result (``lhr``) onto a RawAuditReport.

    Works with both the Lighthouse CLI output and the ``lighthouseResult``
    of a PageSpeed Insights response. Missing categories or audits become
    ``None`` so the scoring code can fall back.
    """
    categories = _section(lhr, "categories")
    audits = _section(lhr, "audits")

    fid = _numeric_value(audits, "max-potential-fid")
    if fid is None:
        fid = _numeric_value(audits, "total-blocking-time")

    return RawAuditReport(
        performance_score=_number(_section(categories, "performance").get("score")),
        total_byte_weight=_numeric_value(audits, "total-byte-weight"),
        bootup_time_ms=_numeric_value(audits, "bootup-time"),
        uses_green_hosting=_passed(audits, "uses-green-hosting"),
        uses_optimized_images=_passed(audits, "uses-optimized-images"),
        cumulative_layout_shift=_numeric_value(audits, "cumulative-layout-shift"),
        first_contentful_paint_ms=_numeric_value(audits, "first-contentful-paint"),
        largest_contentful_paint_ms=_numeric_value(audits, "largest-contentful-paint"),
        max_potential_fid_ms=fid,
        source=lhr,
    )
