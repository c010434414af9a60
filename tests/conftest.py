"""Pytest fixtures."""

import pytest

from letting_scope.coefficients import default_coefficients
from letting_scope.models import CoefficientTable, ListingRecord, PropertyQuery


@pytest.fixture
def default_table() -> CoefficientTable:
    """The shipped coefficient table."""
    return default_coefficients()


@pytest.fixture
def leith_query() -> PropertyQuery:
    """60 m² two-bed in Leith, the valuator's default form values."""
    return PropertyQuery(
        area=60,
        beds=2,
        location="Leith",
        condition="Average",
        epc="C",
        broadband=80,
        additive=0,
    )


@pytest.fixture
def outlier_records() -> list[ListingRecord]:
    """Ten lettings of 1 m² each, so rate == rent; one extreme outlier."""
    rents = [10, 20, 30, 40, 50, 60, 70, 80, 90, 1000]
    return [
        ListingRecord(agreed_rent=rent, area=1, beds=1, location="Leith", condition="Average", epc="C", broadband=80)
        for rent in rents
    ]


@pytest.fixture
def dataset_payload() -> list[dict]:
    """Dataset as served by /rent-data.json, including unusable rows."""
    rows = [
        {"id": str(i), "agreedRent": rent, "area": area, "beds": 2, "location": "Leith",
         "condition": "Average", "epc": "C", "broadband": 80}
        for i, (rent, area) in enumerate([
            (950, 55), (1100, 60), (1200, 70), (875, 50), (1300, 75),
            (1000, 58), (1150, 66), (990, 57), (1250, 72), (1050, 61),
            (1400, 80), (900, 52),
        ])
    ]
    rows.append({"id": "bad-1", "agreedRent": None, "area": 60})
    rows.append({"id": "bad-2", "agreedRent": "1200", "area": 60})
    rows.append({"id": "bad-3", "agreedRent": 1200, "area": 0})
    return rows
