"""Fair rent from the base rate and additive adjustments."""

from __future__ import annotations

import math
from typing import Any, Optional

from ..errors import InvalidInputRange
from ..models import AreaScale, CoefficientTable, PropertyQuery, QueryBounds

BROADBAND_REFERENCE_MBPS = 80.0

_DEFAULT_AREA_SCALE = AreaScale()


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


def broadband_adjustment(
    speed: float,
    slope: float = 0.00005,
    reference: float = BROADBAND_REFERENCE_MBPS,
) -> float:
    """Proportional uplift for broadband faster than *reference* Mbps.

    Slower connections never subtract value.
    """
    return max(0.0, slope * (speed - reference))


def bedroom_adjustment(beds: int, beta: float = 0.03) -> float:
    """Proportional uplift per bedroom beyond the first."""
    return beta * max(0, beds - 1)


def area_scale_factor(area: float, scale: Optional[AreaScale] = None) -> float:
    """Multiplier for diminishing value per m² as homes get larger.

    Flat at ``max_factor`` up to ``lower_threshold``, flat at ``min_factor``
    from ``upper_threshold``, linear in between.
    """
    s = scale or _DEFAULT_AREA_SCALE
    if area <= s.lower_threshold:
        return s.max_factor
    if area >= s.upper_threshold:
        return s.min_factor
    slope = (s.min_factor - s.max_factor) / (s.upper_threshold - s.lower_threshold)
    return s.max_factor + slope * (area - s.lower_threshold)


def validate_query(query: PropertyQuery, bounds: Optional[QueryBounds] = None) -> PropertyQuery:
    """Check the numeric fields of *query*; raise :class:`InvalidInputRange`."""
    b = bounds or QueryBounds()
    checks = (
        ("area", query.area, b.area_min, b.area_max),
        ("beds", query.beds, b.beds_min, b.beds_max),
        ("broadband", query.broadband, b.broadband_min, math.inf),
    )
    for name, value, low, high in checks:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidInputRange(name, value, f"[{low}, {high}]")
        if not low <= value <= high:
            raise InvalidInputRange(name, value, f"[{low}, {high}]")
    if isinstance(query.beds, float) and not query.beds.is_integer():
        raise InvalidInputRange("beds", query.beds, "whole numbers")
    additive = query.additive or 0.0
    if not math.isfinite(additive):
        raise InvalidInputRange("additive", additive, "finite numbers")
    return query


def calc_fair_rent_with_details(
    coeff: CoefficientTable, query: PropertyQuery
) -> tuple[int, dict[str, Any]]:
    """Fair rent plus the intermediate terms that produced it.

    Unknown location, condition or EPC keys raise
    :class:`~letting_scope.errors.UnknownCategoryKey`.
    """
    base_value = coeff.base_rate * query.area

    location_adj = coeff.lookup("location", query.location)
    condition_adj = coeff.lookup("condition", query.condition)
    epc_adj = coeff.lookup("epc", query.epc)
    bedroom_adj = bedroom_adjustment(query.beds, coeff.bedroom_beta)
    broadband_adj = broadband_adjustment(
        query.broadband, coeff.broadband_slope, coeff.broadband_reference
    )

    total = (
        location_adj
        + condition_adj
        + epc_adj
        + bedroom_adj
        + broadband_adj
        + (query.additive or 0.0)
    )
    # The scale dampens the combined adjustment, not each term.
    adjusted = base_value * (1 + total * coeff.adjustment_scale)

    scale = area_scale_factor(query.area, coeff.area_scale)
    final = adjusted * scale * coeff.calibration_factor
    fair_rent = max(0, round_half_away(final))

    return fair_rent, {
        "base_value": base_value,
        "location_adjustment": location_adj,
        "condition_adjustment": condition_adj,
        "epc_adjustment": epc_adj,
        "bedroom_adjustment": bedroom_adj,
        "broadband_adjustment": broadband_adj,
        "additive": query.additive or 0.0,
        "total_adjustment": total,
        "adjusted_value": adjusted,
        "area_scale_factor": scale,
        "final_value": final,
    }


def calc_fair_rent(coeff: CoefficientTable, query: PropertyQuery) -> int:
    """Fair monthly rent in pounds, rounded to the nearest pound."""
    rent, _ = calc_fair_rent_with_details(coeff, query)
    return rent
