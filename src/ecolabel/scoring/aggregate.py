"""Aggregation of per-page EcoData into a site-wide result."""

import dataclasses
from collections.abc import Sequence

from ..exceptions import EmptyInputError
from ..models import EcoData
from .ecoscore import safe_estimate_co2
from .normalize import round_half_up


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def _all_pass(values: list[int]) -> int:
    # One failing page fails the whole site
    return 100 if all(v == 100 for v in values) else 0


def aggregate(pages: Sequence[EcoData]) -> EcoData:
    """Combine the EcoData of several pages into one representative record.

    Numeric fields are averaged. Green hosting and image optimization only
    pass if every page passes. CO2 is re-estimated from the aggregated
    values rather than averaged.

    Raises:
        EmptyInputError: if ``pages`` is empty
    """
    if not pages:
        raise EmptyInputError("No pages to aggregate")

    aggregated = EcoData(
        eco_score=round_half_up(_mean([p.eco_score for p in pages])),
        performance=_mean([p.performance for p in pages]),
        total_bytes=_mean([p.total_bytes for p in pages]),
        bootup_time=_mean([p.bootup_time for p in pages]),
        hosting_green=_all_pass([p.hosting_green for p in pages]),
        image_optimization=_all_pass([p.image_optimization for p in pages]),
        cls=_mean([p.cls for p in pages]),
    )
    return dataclasses.replace(aggregated, co2=safe_estimate_co2(aggregated))
