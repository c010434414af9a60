"""Base connector interface for calibration datasets."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..models import ListingRecord

logger = logging.getLogger(__name__)


@dataclass
class DatasetResult:
    """Result of a dataset fetch."""

    records: list[ListingRecord]
    raw_payloads: list[dict]
    source: str
    errors: list[str]

    @property
    def ok(self) -> bool:
        return not self.errors


class DatasetConnector(ABC):
    """
    Abstract interface for sources of historical lettings.
    Implementations: JSON over HTTP, JSON file on disk.
    """

    @abstractmethod
    def fetch(self) -> DatasetResult:
        """
        Fetch the dataset.
        Failures are reported in ``errors`` rather than raised, so callers can
        fall back to their current coefficient table.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Identifier for this data source."""
        ...

    def _normalize(self, data: Any) -> tuple[list[ListingRecord], list[dict], list[str]]:
        """Turn a decoded JSON document into records.

        Accepts a bare array or an object wrapping one under ``listings``,
        ``data`` or ``results``. Non-object items are skipped.
        """
        items = data
        if isinstance(data, dict):
            items = next(
                (data[k] for k in ("listings", "data", "results") if isinstance(data.get(k), list)),
                None,
            )
        if not isinstance(items, list):
            return [], [], [f"{self.source_name}: expected a JSON array of listings"]

        records: list[ListingRecord] = []
        raw: list[dict] = []
        skipped = 0
        for item in items:
            if not isinstance(item, dict):
                skipped += 1
                continue
            raw.append(item)
            records.append(ListingRecord.from_dict(item))
        if skipped:
            logger.warning("%s: skipped %d non-object items", self.source_name, skipped)
        return records, raw, []
