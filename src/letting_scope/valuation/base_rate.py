"""Base rate (£/m²) calibration from observed lettings."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, Optional, Union

from ..errors import InsufficientCalibrationData
from ..models import CalibrationOutcome, CoefficientTable, ListingRecord

logger = logging.getLogger(__name__)

MIN_VALID_RATES = 10
IQR_MULTIPLIER = 1.5

RecordLike = Union[ListingRecord, Mapping[str, Any]]


def _positive_number(value: Any) -> Optional[float]:
    """Return *value* as a float if it is a finite number > 0, else None.

    Booleans and numeric strings are rejected, not coerced.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _as_record(item: RecordLike) -> Optional[ListingRecord]:
    if isinstance(item, ListingRecord):
        return item
    if isinstance(item, Mapping):
        return ListingRecord.from_dict(item)
    return None


def valid_rates(records: Iterable[RecordLike]) -> list[float]:
    """Map usable records to rent per m², dropping anything unusable."""
    rates: list[float] = []
    for item in records:
        record = _as_record(item)
        if record is None:
            continue
        rent = _positive_number(record.agreed_rent)
        area = _positive_number(record.area)
        if rent is None or area is None:
            continue
        rate = rent / area
        if not math.isfinite(rate):
            continue
        rates.append(rate)
    return rates


def _median(sorted_values: list[float]) -> float:
    mid = len(sorted_values) // 2
    if len(sorted_values) % 2 == 0:
        low, high = sorted_values[mid - 1], sorted_values[mid]
        total = low + high
        if math.isfinite(total):
            return total / 2
        return low / 2 + high / 2
    return sorted_values[mid]


def estimate_base_rate_details(
    records: Iterable[RecordLike],
) -> tuple[float, dict[str, Any]]:
    """Estimate the base rate with the statistics behind it.

    1. Keep records with numeric, finite, positive rent and area.
    2. Fewer than ``MIN_VALID_RATES`` rates: raise.
    3. Sort; take quartiles at indices ``n // 4`` and ``3 * n // 4`` (no
       interpolation) and drop rates outside ``1.5 * IQR`` of them.
    4. Return the median of what is left.

    Raises :class:`InsufficientCalibrationData` when there is too little data
    before or after outlier removal.
    """
    items = list(records)
    rates = valid_rates(items)
    n = len(rates)
    logger.debug("Calibration input: %d records, %d valid rates", len(items), n)
    if n < MIN_VALID_RATES:
        raise InsufficientCalibrationData(n, stage="validation", minimum=MIN_VALID_RATES)

    rates.sort()
    q1 = rates[n // 4]
    q3 = rates[(n * 3) // 4]
    iqr = q3 - q1
    lower = q1 - IQR_MULTIPLIER * iqr
    upper = q3 + IQR_MULTIPLIER * iqr

    kept = [r for r in rates if lower <= r <= upper]
    # q1 and q3 always lie inside their own bounds, so this only guards
    # against a non-finite rate slipping past valid_rates.
    if not kept:
        raise InsufficientCalibrationData(n, stage="outliers", minimum=MIN_VALID_RATES)

    median = _median(kept)
    details: dict[str, Any] = {
        "record_count": len(items),
        "valid_count": n,
        "excluded_count": len(items) - n,
        "q1": q1,
        "q3": q3,
        "iqr": iqr,
        "lower_bound": lower,
        "upper_bound": upper,
        "retained_count": len(kept),
        "outliers_removed": n - len(kept),
        "median": median,
    }
    logger.debug(
        "IQR bounds [%.3f, %.3f], removed %d outliers",
        lower,
        upper,
        n - len(kept),
    )
    return median, details


def estimate_base_rate(records: Iterable[RecordLike]) -> float:
    """Median £/m² of the dataset after IQR outlier removal."""
    rate, _ = estimate_base_rate_details(records)
    return rate


def calibrate(
    records: Iterable[RecordLike],
    fallback: CoefficientTable,
) -> CalibrationOutcome:
    """Derive a new coefficient table from *records*.

    On success the result is *fallback* with only ``base_rate`` replaced.
    When the data is unusable the fallback table is returned untouched and
    ``calibrated`` is False; the reason is logged, not raised.
    """
    try:
        rate, details = estimate_base_rate_details(records)
    except InsufficientCalibrationData as e:
        logger.warning("Calibration skipped, keeping base rate %.2f: %s", fallback.base_rate, e)
        return CalibrationOutcome(
            table=fallback,
            calibrated=False,
            base_rate=fallback.base_rate,
            details={"valid_count": e.valid_count, "stage": e.stage},
            reason=str(e),
        )
    logger.info(
        "Calibrated base rate %.3f from %d rates (%d outliers removed)",
        rate,
        details["valid_count"],
        details["outliers_removed"],
    )
    return CalibrationOutcome(
        table=fallback.with_base_rate(rate),
        calibrated=True,
        base_rate=rate,
        details=details,
    )
