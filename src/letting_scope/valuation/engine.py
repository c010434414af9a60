"""Valuation engine: owns the current coefficient table and values properties."""

from __future__ import annotations

import logging
from typing import Iterable, List

from ..config import get_coefficient_table, get_delusion_params, get_query_bounds
from ..models import (
    CalibrationOutcome,
    CoefficientTable,
    DelusionParameters,
    PropertyQuery,
    QueryBounds,
    Valuation,
)
from .base_rate import RecordLike, calibrate
from .delusion import asking_price, calc_delusion
from .fair_rent import calc_fair_rent_with_details, validate_query

logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Fair rent and asking price for properties.

    Holds a single coefficient table reference. ``refresh`` swaps in a newly
    calibrated table in one assignment; each valuation reads the reference
    once, so valuations running during a refresh see either the old or the
    new table, never a mix.
    """

    def __init__(
        self,
        table: CoefficientTable | None = None,
        delusion: DelusionParameters | None = None,
        bounds: QueryBounds | None = None,
        config: dict | None = None,
    ) -> None:
        cfg = config or {}
        self._table = table or get_coefficient_table(cfg)
        self.delusion = delusion or get_delusion_params(cfg)
        self.bounds = bounds or get_query_bounds(cfg)

    @property
    def table(self) -> CoefficientTable:
        return self._table

    def replace_table(self, table: CoefficientTable) -> None:
        """Swap in a new table wholesale."""
        self._table = table

    def refresh(self, records: Iterable[RecordLike]) -> CalibrationOutcome:
        """Recalibrate the base rate from *records*.

        Keeps the current table when the data is unusable; check
        ``outcome.calibrated`` to tell the two apart.
        """
        outcome = calibrate(records, fallback=self._table)
        if outcome.calibrated:
            self._table = outcome.table
        return outcome

    def valuate(
        self,
        query: PropertyQuery,
        delusion: DelusionParameters | None = None,
    ) -> Valuation:
        """Validate *query* and compute fair rent and likely asking price."""
        return self._valuate(self._table, query, delusion)

    def valuate_many(self, queries: List[PropertyQuery]) -> List[Valuation]:
        """Value multiple properties against the same table."""
        table = self._table
        return [self._valuate(table, q, None) for q in queries]

    def _valuate(
        self,
        table: CoefficientTable,
        query: PropertyQuery,
        delusion: DelusionParameters | None,
    ) -> Valuation:
        validate_query(query, self.bounds)
        fair, details = calc_fair_rent_with_details(table, query)
        multiplier, label = calc_delusion(delusion or self.delusion)
        logger.debug("Valued %s at %d (adjustment %.4f)", query.location, fair, details["total_adjustment"])
        return Valuation(
            query=query,
            fair_rent=fair,
            delusion_multiplier=multiplier,
            delusion_label=label,
            asking_price=asking_price(fair, multiplier),
            base_rate=table.base_rate,
            total_adjustment=details["total_adjustment"],
            area_scale_factor=details["area_scale_factor"],
        )