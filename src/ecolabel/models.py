"""Data models for EcoLabel audit results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Grade(Enum):
    """Letter grade on the six-band EU-style scale."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


@dataclass(frozen=True)
class EcoLabel:
    """Grade plus the label and color used to present it."""
    grade: Grade
    label: str
    color: str

    def to_dict(self) -> dict[str, str]:
        return {"grade": self.grade.value, "label": self.label, "color": self.color}


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_flag(value: Any) -> Optional[bool]:
    # Lighthouse style audits use score == 1 for "passed"
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1 or value == 100
    return bool(value)


@dataclass(frozen=True)
class RawAuditReport:
    """Metrics extracted from a performance audit.

    Every field may be absent (``None``). The scoring code checks
    ``has_performance_score`` and ``has_web_vitals`` to decide whether a
    performance score has to be estimated.
    """
    performance_score: Optional[float] = None  # 0-1
    total_byte_weight: Optional[float] = None  # bytes
    bootup_time_ms: Optional[float] = None
    uses_green_hosting: Optional[bool] = None
    uses_optimized_images: Optional[bool] = None
    cumulative_layout_shift: Optional[float] = None
    # Only used to estimate a missing performance score
    first_contentful_paint_ms: Optional[float] = None
    largest_contentful_paint_ms: Optional[float] = None
    max_potential_fid_ms: Optional[float] = None
    source: Optional[dict[str, Any]] = field(default=None, repr=False, compare=False)

    @property
    def has_performance_score(self) -> bool:
        return self.performance_score is not None

    @property
    def has_web_vitals(self) -> bool:
        return any(
            v is not None
            for v in (
                self.first_contentful_paint_ms,
                self.largest_contentful_paint_ms,
                self.max_potential_fid_ms,
                self.cumulative_layout_shift,
            )
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawAuditReport":
        """Build a report from a flat camelCase metrics mapping."""
        return cls(
            performance_score=data.get("performanceScore"),
            total_byte_weight=_first_present(data, "totalByteWeight", "totalBytes"),
            bootup_time_ms=_first_present(data, "bootupTimeMs", "bootupTime"),
            uses_green_hosting=_as_flag(_first_present(data, "usesGreenHosting", "hostingGreen")),
            uses_optimized_images=_as_flag(
                _first_present(data, "usesOptimizedImages", "imageOptimization")
            ),
            cumulative_layout_shift=_first_present(data, "cumulativeLayoutShift", "cls"),
            first_contentful_paint_ms=_first_present(data, "firstContentfulPaintMs", "fcp"),
            largest_contentful_paint_ms=_first_present(data, "largestContentfulPaintMs", "lcp"),
            max_potential_fid_ms=_first_present(data, "maxPotentialFidMs", "fid"),
        )


@dataclass(frozen=True)
class CO2Estimate:
    """Estimated carbon footprint of a single page visit."""
    total_co2_kg: float
    data_co2_kg: float
    bootup_co2_kg: float
    data_size_mb: float
    equivalent_trees: float
    equivalent_cars_km: float
    per_visit_kg: float

    def to_dict(self) -> dict[str, float]:
        return {
            "totalCO2_kg": self.total_co2_kg,
            "dataCO2_kg": self.data_co2_kg,
            "bootupCO2_kg": self.bootup_co2_kg,
            "dataSizeMB": self.data_size_mb,
            "equivalentTrees": self.equivalent_trees,
            "equivalentCarsKm": self.equivalent_cars_km,
            "perVisit_kg": self.per_visit_kg,
        }


@dataclass(frozen=True)
class EcoData:
    """EcoScore and the components it was computed from."""
    eco_score: int  # 0-100
    performance: float  # 0-100
    total_bytes: float
    bootup_time: float  # ms
    hosting_green: int  # 0 or 100
    image_optimization: int  # 0 or 100
    cls: float
    co2: Optional[CO2Estimate] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ecoScore": self.eco_score,
            "performance": self.performance,
            "totalBytes": self.total_bytes,
            "bootupTime": self.bootup_time,
            "hostingGreen": self.hosting_green,
            "imageOptimization": self.image_optimization,
            "cls": self.cls,
            "co2": self.co2.to_dict() if self.co2 else None,
        }


@dataclass(frozen=True)
class PageAnalysis:
    """Result of analyzing a single URL."""
    url: str
    eco_data: EcoData
    eco_label: EcoLabel
    analyzed_at: str
    filename: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "ecoData": self.eco_data.to_dict(),
            "ecoLabel": self.eco_label.to_dict(),
            "analyzedAt": self.analyzed_at,
            "filename": self.filename,
        }


@dataclass(frozen=True)
class PageError:
    """A URL that could not be analyzed."""
    url: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "error": self.error}


@dataclass(frozen=True)
class WebsiteReport:
    """Aggregated result of a multi-page analysis."""
    domain: str
    analyzed_at: str
    aggregated_eco_data: EcoData
    eco_label: EcoLabel
    pages: list[PageAnalysis] = field(default_factory=list)
    errors: list[PageError] = field(default_factory=list)

    @property
    def successful_analyses(self) -> int:
        return len(self.pages)

    @property
    def failed_analyses(self) -> int:
        return len(self.errors)

    @property
    def analyzed_pages(self) -> int:
        return self.successful_analyses + self.failed_analyses

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "analyzedAt": self.analyzed_at,
            "analyzedPages": self.analyzed_pages,
            "successfulAnalyses": self.successful_analyses,
            "failedAnalyses": self.failed_analyses,
            "aggregatedEcoData": self.aggregated_eco_data.to_dict(),
            "ecoLabel": self.eco_label.to_dict(),
            "pages": [p.to_dict() for p in self.pages],
            "errors": [e.to_dict() for e in self.errors],
        }
