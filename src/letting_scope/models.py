"""Data models for calibration records, coefficients and valuation results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .errors import InvalidInputRange, UnknownCategoryKey

CATEGORY_KINDS = ("location", "condition", "epc")

CategoryValue = Union[str, enum.Enum]


@dataclass
class ListingRecord:
    """One observed letting from the calibration dataset."""

    agreed_rent: Any
    area: Any
    beds: int | None = None
    location: str | None = None
    condition: str | None = None
    epc: str | None = None
    broadband: float | None = None
    id: str | None = None
    timestamp: str | None = None

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> "ListingRecord":
        """Build from the dataset JSON shape (camelCase) or snake_case keys.

        Numeric fields are passed through untouched so that the estimator,
        not the loader, decides what counts as a valid rent or area.
        """
        rent = item.get("agreedRent", item.get("agreed_rent"))
        return cls(
            agreed_rent=rent,
            area=item.get("area"),
            beds=item.get("beds"),
            location=item.get("location"),
            condition=item.get("condition"),
            epc=item.get("epc"),
            broadband=item.get("broadband"),
            id=None if item.get("id") is None else str(item.get("id")),
            timestamp=item.get("timestamp"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agreedRent": self.agreed_rent,
            "area": self.area,
            "beds": self.beds,
            "location": self.location,
            "condition": self.condition,
            "epc": self.epc,
            "broadband": self.broadband,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class AreaScale:
    """Piecewise-linear de-rating of value per m² for larger homes."""

    lower_threshold: float = 40.0
    upper_threshold: float = 100.0
    max_factor: float = 1.05
    min_factor: float = 0.75


@dataclass(frozen=True)
class CoefficientTable:
    """Adjustment weights for the fair rent model.

    Instances are immutable snapshots. A recalibration produces a new table
    via :meth:`with_base_rate`; nothing edits a table in place, so one
    instance can be shared by any number of concurrent readers.
    """

    base_rate: float
    bedroom_beta: float
    condition: Mapping[str, float]
    location: Mapping[str, float]
    epc: Mapping[str, float]
    broadband_slope: float
    calibration_factor: float = 1.0
    adjustment_scale: float = 0.75
    broadband_reference: float = 80.0
    area_scale: AreaScale = field(default_factory=AreaScale)
    location_groups: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0 <= self.adjustment_scale <= 1:
            raise InvalidInputRange("adjustment_scale", self.adjustment_scale, "[0, 1]")
        for name in ("condition", "location", "epc"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        groups = {g: tuple(names) for g, names in dict(self.location_groups).items()}
        object.__setattr__(self, "location_groups", MappingProxyType(groups))

    def adjustments(self, kind: str) -> Mapping[str, float]:
        """Return the adjustment map for ``location``, ``condition`` or ``epc``."""
        if kind not in CATEGORY_KINDS:
            raise ValueError(f"Unknown category kind: {kind!r}")
        return getattr(self, kind)

    def lookup(self, kind: str, key: CategoryValue) -> float:
        """Adjustment for *key*; unknown keys raise :class:`UnknownCategoryKey`."""
        name = key.value if isinstance(key, enum.Enum) else key
        table = self.adjustments(kind)
        try:
            return table[name]
        except (KeyError, TypeError):
            raise UnknownCategoryKey(kind, name) from None

    def choices(self, kind: str) -> list[str]:
        """Valid keys for a category, in table order (worst to best for conditions)."""
        return list(self.adjustments(kind))

    def with_base_rate(self, base_rate: float) -> "CoefficientTable":
        return replace(self, base_rate=float(base_rate))

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_rate": self.base_rate,
            "bedroom_beta": self.bedroom_beta,
            "condition": dict(self.condition),
            "location": dict(self.location),
            "epc": dict(self.epc),
            "broadband_slope": self.broadband_slope,
            "broadband_reference": self.broadband_reference,
            "calibration_factor": self.calibration_factor,
            "adjustment_scale": self.adjustment_scale,
            "area_scale": {
                "lower_threshold": self.area_scale.lower_threshold,
                "upper_threshold": self.area_scale.upper_threshold,
                "max_factor": self.area_scale.max_factor,
                "min_factor": self.area_scale.min_factor,
            },
        }


@dataclass
class PropertyQuery:
    """A property to value."""

    area: float
    beds: int
    location: CategoryValue
    condition: CategoryValue
    epc: CategoryValue
    broadband: float
    additive: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        def _plain(v: CategoryValue) -> str:
            return v.value if isinstance(v, enum.Enum) else v

        return {
            "area": self.area,
            "beds": self.beds,
            "location": _plain(self.location),
            "condition": _plain(self.condition),
            "epc": _plain(self.epc),
            "broadband": self.broadband,
            "additive": self.additive,
        }


@dataclass
class QueryBounds:
    """Accepted ranges for :class:`PropertyQuery` numeric fields."""

    area_min: float = 10.0
    area_max: float = 500.0
    beds_min: int = 1
    beds_max: int = 10
    broadband_min: float = 0.0


@dataclass
class DelusionParameters:
    """Market sentiment knobs, summed at face value."""

    anchoring: float = 0.05
    btr: float = 0.01
    cap: float = 0.01
    demand: float = 0.01
    agent: float = 0.0
    scarcity: float = 0.02

    def to_dict(self) -> dict[str, float]:
        return {
            "anchoring": self.anchoring,
            "btr": self.btr,
            "cap": self.cap,
            "demand": self.demand,
            "agent": self.agent,
            "scarcity": self.scarcity,
        }


@dataclass
class CalibrationOutcome:
    """Result of a calibration run.

    ``calibrated`` is False when the estimator refused the dataset and
    ``table`` is the fallback passed in, unchanged.
    """

    table: CoefficientTable
    calibrated: bool
    base_rate: float
    details: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "calibrated": self.calibrated,
            "base_rate": self.base_rate,
            "details": self.details,
            "reason": self.reason,
        }


@dataclass
class Valuation:
    """Fair rent and expected asking price for one query."""

    query: PropertyQuery
    fair_rent: int
    delusion_multiplier: float
    delusion_label: str
    asking_price: int
    base_rate: float
    total_adjustment: float
    area_scale_factor: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query.to_dict(),
            "fair_rent": self.fair_rent,
            "delusion_multiplier": self.delusion_multiplier,
            "delusion_label": self.delusion_label,
            "asking_price": self.asking_price,
            "base_rate": self.base_rate,
            "total_adjustment": self.total_adjustment,
            "area_scale_factor": self.area_scale_factor,
        }


@dataclass
class ProRataResult:
    """Rent due for a part-month occupancy."""

    start: date
    end: date
    days: int
    daily_rent: float
    total_due: float


@dataclass
class RentIncreaseResult:
    """Permitted increase given the open-market rent."""

    current_rent: float
    open_market_rent: float
    market_difference_percent: float
    allowed: bool
    capped: bool
    new_rent: float
    increase_amount: float


@dataclass
class AffordabilityResult:
    """Income checks for a monthly rent."""

    monthly_rent: float
    annual_income: float
    tenant_income_required: float
    guarantor_income_required: float
    max_affordable_rent: float
    affordable: bool


@dataclass
class DisposableIncomeResult:
    """Annual disposable income after tax, essentials and credit."""

    gross_income: float
    net_income: float
    essential_expenditure: float
    credit_commitments: float
    disposable_income: float


@dataclass
class CouncilTaxResult:
    """Council tax for one band, water and sewerage included."""

    band: str
    annual: float
    monthly: float


@dataclass
class EnergyBillResult:
    """Estimated household gas and electricity costs."""

    household_size: str
    electricity_kwh: float
    gas_kwh: float
    electricity_annual: float
    gas_annual: float
    epc_multiplier: float
    annual: float
    monthly: float
    council_tax: Optional[CouncilTaxResult] = None

    @property
    def combined_annual(self) -> float:
        if self.council_tax is None:
            return self.annual
        return self.annual + self.council_tax.annual

    @property
    def combined_monthly(self) -> float:
        return self.combined_annual / 12
