"""Gap between fair rent and what landlords actually advertise."""

from __future__ import annotations

from typing import Optional

from ..models import DelusionParameters
from .fair_rent import round_half_away


def calc_delusion(params: Optional[DelusionParameters] = None) -> tuple[float, str]:
    """Return ``(multiplier, label)`` for the given sentiment parameters.

    The factors are summed at face value. Negative inputs are allowed and
    pull the multiplier below 1.
    """
    p = params or DelusionParameters()
    value = p.anchoring + p.btr + p.cap + p.demand + p.agent + p.scarcity
    return 1 + value, f"{round_half_away(value * 100)}% over-list"


def asking_price(fair_rent: int, multiplier: float) -> int:
    """Likely advertised rent for a property with the given fair rent."""
    return round_half_away(fair_rent * multiplier)
