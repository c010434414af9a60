"""Rent valuation: base rate calibration, fair rent and market delusion."""

from .base_rate import calibrate, estimate_base_rate, estimate_base_rate_details, valid_rates
from .delusion import asking_price, calc_delusion
from .engine import ValuationEngine
from .fair_rent import (
    area_scale_factor,
    bedroom_adjustment,
    broadband_adjustment,
    calc_fair_rent,
    calc_fair_rent_with_details,
    round_half_away,
    validate_query,
)
from .tenancy import (
    affordability,
    council_tax,
    disposable_income,
    energy_bill,
    net_income,
    pro_rata_rent,
    rent_increase,
)

__all__ = [
    "ValuationEngine",
    "calibrate",
    "estimate_base_rate",
    "estimate_base_rate_details",
    "valid_rates",
    "calc_fair_rent",
    "calc_fair_rent_with_details",
    "area_scale_factor",
    "bedroom_adjustment",
    "broadband_adjustment",
    "round_half_away",
    "validate_query",
    "calc_delusion",
    "asking_price",
    "pro_rata_rent",
    "rent_increase",
    "affordability",
    "disposable_income",
    "net_income",
    "energy_bill",
    "council_tax",
]
