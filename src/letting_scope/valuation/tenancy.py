"""Everyday tenancy arithmetic: pro-rata rent, rent increases, affordability and bills."""

from __future__ import annotations

import math
from datetime import date
from typing import Optional

from ..errors import InvalidInputRange, UnknownCategoryKey
from ..models import (
    AffordabilityResult,
    CouncilTaxResult,
    DisposableIncomeResult,
    EnergyBillResult,
    ProRataResult,
    RentIncreaseResult,
)

DAYS_PER_MONTH = 30.44
INCREASE_FLOOR_PERCENT = 6.0
INCREASE_CAP_PERCENT = 24.0
TENANT_INCOME_MULTIPLE = 30
GUARANTOR_INCOME_MULTIPLE = 36
AVERAGE_CREDIT_MONTHLY = 150.0

# UK income tax, 2024/25: (threshold, band width or None for open, rate)
_TAX_BANDS: tuple[tuple[float, float | None, float], ...] = (
    (12570, 37700, 0.20),
    (50270, 100000, 0.40),
    (150000, None, 0.45),
)

# Typical annual usage by household size: (electricity kWh, gas kWh)
HOUSEHOLD_USAGE: dict[str, tuple[float, float]] = {
    "1-2": (1800, 7500),
    "2-3": (2700, 11500),
    "4-5": (4100, 17000),
}
ELECTRICITY_UNIT_RATE = 0.2396
ELECTRICITY_STANDING_DAILY = 0.6417
GAS_UNIT_RATE = 0.0609
GAS_STANDING_DAILY = 0.3180

EPC_ENERGY_MULTIPLIERS: dict[str, float] = {
    "A": 0.8,
    "B": 0.9,
    "C": 1.0,
    "D": 1.1,
    "E": 1.2,
    "F": 1.3,
    "G": 1.4,
}

# City of Edinburgh 2024/25, water and sewerage included
COUNCIL_TAX_BANDS: dict[str, float] = {
    "A": 1329.39,
    "B": 1550.95,
    "C": 1772.52,
    "D": 1994.08,
    "E": 2569.91,
    "F": 3141.73,
    "G": 3745.71,
    "H": 4639.62,
}


def _require_positive(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise InvalidInputRange(name, value, "(0, inf)")


def pro_rata_rent(
    monthly_rent: float,
    start: date,
    end: date,
    days_per_month: float = DAYS_PER_MONTH,
) -> ProRataResult:
    """Rent due for an occupancy from *start* to *end*, both days inclusive."""
    _require_positive("monthly_rent", monthly_rent)
    if end <= start:
        raise InvalidInputRange("end", end.isoformat(), f"after {start.isoformat()}")
    days = (end - start).days + 1
    daily = monthly_rent / days_per_month
    return ProRataResult(
        start=start,
        end=end,
        days=days,
        daily_rent=daily,
        total_due=round(daily * days, 2),
    )


def rent_increase(
    current_rent: float,
    open_market_rent: float,
    floor_percent: float = INCREASE_FLOOR_PERCENT,
    cap_percent: float = INCREASE_CAP_PERCENT,
) -> RentIncreaseResult:
    """Permitted rent increase given the open-market rent.

    No increase while the market gap is at or below *floor_percent*. Above
    it the rent rises by the floor plus a third of the remaining gap, with
    the gap capped at *cap_percent*. The new rent is rounded down to the
    pound.
    """
    _require_positive("current_rent", current_rent)
    _require_positive("open_market_rent", open_market_rent)
    diff_percent = (open_market_rent - current_rent) / current_rent * 100
    if diff_percent <= floor_percent:
        return RentIncreaseResult(
            current_rent=current_rent,
            open_market_rent=open_market_rent,
            market_difference_percent=diff_percent,
            allowed=False,
            capped=False,
            new_rent=current_rent,
            increase_amount=0.0,
        )
    used = min(diff_percent, cap_percent)
    new_rent = math.floor(current_rent * (100 + floor_percent + (used - floor_percent) / 3) / 100)
    return RentIncreaseResult(
        current_rent=current_rent,
        open_market_rent=open_market_rent,
        market_difference_percent=diff_percent,
        allowed=True,
        capped=diff_percent > cap_percent,
        new_rent=float(new_rent),
        increase_amount=new_rent - current_rent,
    )


def affordability(
    monthly_rent: float,
    annual_income: float,
    tenant_multiple: float = TENANT_INCOME_MULTIPLE,
    guarantor_multiple: float = GUARANTOR_INCOME_MULTIPLE,
) -> AffordabilityResult:
    """Standard income-multiple affordability check."""
    _require_positive("monthly_rent", monthly_rent)
    _require_positive("annual_income", annual_income)
    tenant_required = monthly_rent * tenant_multiple
    return AffordabilityResult(
        monthly_rent=monthly_rent,
        annual_income=annual_income,
        tenant_income_required=tenant_required,
        guarantor_income_required=monthly_rent * guarantor_multiple,
        max_affordable_rent=round(annual_income / tenant_multiple, 2),
        affordable=annual_income >= tenant_required,
    )


def net_income(gross_income: float) -> float:
    """Gross annual income less income tax."""
    net = gross_income
    for threshold, width, rate in _TAX_BANDS:
        if gross_income > threshold:
            taxable = gross_income - threshold
            if width is not None:
                taxable = min(taxable, width)
            net -= taxable * rate
    return net


def disposable_income(
    gross_income: float,
    essential_percent: float = 20.0,
    credit_monthly: float = AVERAGE_CREDIT_MONTHLY,
) -> DisposableIncomeResult:
    """Annual income left after tax, essential spending and credit repayments."""
    _require_positive("gross_income", gross_income)
    if essential_percent < 0 or essential_percent > 100:
        raise InvalidInputRange("essential_percent", essential_percent, "[0, 100]")
    if credit_monthly < 0:
        raise InvalidInputRange("credit_monthly", credit_monthly, "[0, inf)")
    net = net_income(gross_income)
    essential = essential_percent / 100 * net
    credit = credit_monthly * 12
    return DisposableIncomeResult(
        gross_income=gross_income,
        net_income=net,
        essential_expenditure=essential,
        credit_commitments=credit,
        disposable_income=net - essential - credit,
    )


def council_tax(band: str) -> CouncilTaxResult:
    """Annual and monthly council tax for an Edinburgh band (A-H)."""
    key = band.upper() if isinstance(band, str) else band
    if key not in COUNCIL_TAX_BANDS:
        raise UnknownCategoryKey("council tax band", band)
    annual = COUNCIL_TAX_BANDS[key]
    return CouncilTaxResult(band=key, annual=annual, monthly=annual / 12)


def energy_bill(
    household_size: str = "2-3",
    epc: Optional[str] = None,
    council_tax_band: Optional[str] = None,
) -> EnergyBillResult:
    """Estimated yearly gas and electricity bill for a household.

    Usage comes from ``HOUSEHOLD_USAGE``; both fuels pay a unit rate plus a
    daily standing charge for 365 days. An EPC letter scales the total
    (A 0.8x to G 1.4x); without one no multiplier applies. A council tax
    band, when given, is attached so callers can show combined figures.
    """
    if household_size not in HOUSEHOLD_USAGE:
        raise UnknownCategoryKey("household size", household_size)
    if epc is None:
        multiplier = 1.0
    else:
        letter = epc.upper() if isinstance(epc, str) else epc
        if letter not in EPC_ENERGY_MULTIPLIERS:
            raise UnknownCategoryKey("epc", epc)
        multiplier = EPC_ENERGY_MULTIPLIERS[letter]
    electricity_kwh, gas_kwh = HOUSEHOLD_USAGE[household_size]
    electricity = electricity_kwh * ELECTRICITY_UNIT_RATE + ELECTRICITY_STANDING_DAILY * 365
    gas = gas_kwh * GAS_UNIT_RATE + GAS_STANDING_DAILY * 365
    annual = (electricity + gas) * multiplier
    return EnergyBillResult(
        household_size=household_size,
        electricity_kwh=electricity_kwh,
        gas_kwh=gas_kwh,
        electricity_annual=electricity,
        gas_annual=gas,
        epc_multiplier=multiplier,
        annual=annual,
        monthly=annual / 12,
        council_tax=council_tax(council_tax_band) if council_tax_band is not None else None,
    )
