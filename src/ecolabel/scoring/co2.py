"""CO2 footprint estimation from page weight and script bootup time."""

import logging
import math
from typing import Any, Optional

from ..exceptions import InvalidInputError
from ..models import CO2Estimate, EcoData

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1048576
KWH_PER_GB_TRANSFER = 0.81
CO2_PER_KWH = 475  # grams
GREEN_HOSTING_FACTOR = 0.05  # residual grid share for green hosts
CPU_MULTIPLIER = 1.5
PROCESSING_KWH_PER_GB = 0.1

CO2_PER_MB_NORMAL = KWH_PER_GB_TRANSFER * (1 / 1024) * CO2_PER_KWH  # g/MB
PROCESSING_CO2_PER_MB = (PROCESSING_KWH_PER_GB * CO2_PER_KWH) / 1024  # g/MB

KG_CO2_PER_TREE_YEAR = 0.021
G_CO2_PER_CAR_KM = 120

MIN_TOTAL_BYTES = 1000
MIN_BOOTUP_TIME_MS = 10
MIN_TOTAL_CO2_KG = 1e-10


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def estimate_co2(eco_data: Optional[EcoData]) -> CO2Estimate:
    """Estimate the CO2 emitted by one visit of a page.

    Data transfer emissions scale with the page weight and are cut to
    ``GREEN_HOSTING_FACTOR`` on green hosting. Processing emissions scale
    with both page weight and script bootup time.

    Args:
        eco_data: Scored page (or aggregate) to estimate

    Returns:
        CO2Estimate with all values >= 0

    Raises:
        InvalidInputError: if ``eco_data`` is None
    """
    if eco_data is None:
        raise InvalidInputError("No EcoData to estimate CO2 from")

    total_bytes = _as_number(eco_data.total_bytes)
    bootup_time = _as_number(eco_data.bootup_time)
    hosting_green = _as_number(eco_data.hosting_green)

    # Trivial pages still cost something
    if total_bytes < MIN_TOTAL_BYTES:
        logger.debug("totalBytes %.0f below floor, using %d", total_bytes, MIN_TOTAL_BYTES)
        total_bytes = MIN_TOTAL_BYTES
    if bootup_time < MIN_BOOTUP_TIME_MS:
        logger.debug("bootupTime %.1fms below floor, using %dms", bootup_time, MIN_BOOTUP_TIME_MS)
        bootup_time = MIN_BOOTUP_TIME_MS

    co2_per_mb = CO2_PER_MB_NORMAL * GREEN_HOSTING_FACTOR if hosting_green > 0 else CO2_PER_MB_NORMAL

    data_size_mb = total_bytes / BYTES_PER_MB
    data_co2_g = data_size_mb * co2_per_mb
    bootup_co2_g = data_size_mb * PROCESSING_CO2_PER_MB * (bootup_time / 1000) * CPU_MULTIPLIER
    total_co2_g = data_co2_g + bootup_co2_g

    data_co2_kg = max(0.0, data_co2_g / 1000)
    bootup_co2_kg = max(0.0, bootup_co2_g / 1000)
    total_co2_kg = max(0.0, total_co2_g / 1000)

    if total_co2_kg == 0 and total_co2_g > 0:
        logger.warning("CO2 total underflowed to zero, using %g kg", MIN_TOTAL_CO2_KG)
        total_co2_kg = MIN_TOTAL_CO2_KG

    return CO2Estimate(
        total_co2_kg=total_co2_kg,
        data_co2_kg=data_co2_kg,
        bootup_co2_kg=bootup_co2_kg,
        data_size_mb=max(0.0, data_size_mb),
        equivalent_trees=total_co2_kg / KG_CO2_PER_TREE_YEAR,
        equivalent_cars_km=max(0.0, total_co2_g / G_CO2_PER_CAR_KM),
        per_visit_kg=total_co2_kg,
    )
