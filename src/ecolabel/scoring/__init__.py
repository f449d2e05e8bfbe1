"""EcoScore, CO2 and grade computation."""

from .normalize import normalize, round_half_up
from .co2 import estimate_co2
from .ecoscore import compute_eco_score, estimate_performance_score, resolve_performance_score
from .grade import classify
from .aggregate import aggregate

__all__ = [
    "normalize",
    "round_half_up",
    "estimate_co2",
    "compute_eco_score",
    "estimate_performance_score",
    "resolve_performance_score",
    "classify",
    "aggregate",
]
