"""Tests for the fair rent calculator."""

import math
from dataclasses import replace

import pytest

from letting_scope.coefficients import category_enum
from letting_scope.errors import InvalidInputRange, UnknownCategoryKey
from letting_scope.models import AreaScale, CoefficientTable, PropertyQuery
from letting_scope.valuation import (
    area_scale_factor,
    bedroom_adjustment,
    broadband_adjustment,
    calc_fair_rent,
    calc_fair_rent_with_details,
    round_half_away,
    validate_query,
)


class TestAdjustments:
    """Tests for the individual adjustment terms."""

    def test_bedroom_adjustment_starts_after_first_bed(self) -> None:
        assert bedroom_adjustment(1) == 0
        assert bedroom_adjustment(0) == 0
        assert bedroom_adjustment(2) == pytest.approx(0.03)
        assert bedroom_adjustment(3) == pytest.approx(0.06)
        assert bedroom_adjustment(10) == pytest.approx(0.27)

    def test_broadband_zero_at_or_below_reference(self) -> None:
        for speed in (0, 10, 50, 79.9, 80):
            assert broadband_adjustment(speed) == 0.0

    def test_broadband_above_reference(self) -> None:
        assert broadband_adjustment(1080) == pytest.approx(0.05)
        assert broadband_adjustment(180, slope=0.001) == pytest.approx(0.1)

    def test_broadband_monotonic(self) -> None:
        speeds = [s * 12.5 for s in range(0, 200)]
        values = [broadband_adjustment(s) for s in speeds]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_area_scale_fixed_points(self) -> None:
        assert area_scale_factor(10) == 1.05
        assert area_scale_factor(40) == 1.05
        assert area_scale_factor(100) == 0.75
        assert area_scale_factor(500) == 0.75

    def test_area_scale_interpolates(self) -> None:
        assert area_scale_factor(60) == pytest.approx(0.95)
        assert area_scale_factor(70) == pytest.approx(0.90)
        assert area_scale_factor(90) == pytest.approx(0.80)

    def test_area_scale_continuous_and_non_increasing(self) -> None:
        assert area_scale_factor(40 + 1e-9) == pytest.approx(1.05)
        assert area_scale_factor(100 - 1e-9) == pytest.approx(0.75)
        areas = [20 + i * 0.5 for i in range(0, 200)]
        values = [area_scale_factor(a) for a in areas]
        assert all(b <= a for a, b in zip(values, values[1:]))

    def test_area_scale_custom_curve(self) -> None:
        scale = AreaScale(lower_threshold=50, upper_threshold=150, max_factor=1.2, min_factor=0.8)
        assert area_scale_factor(50, scale) == 1.2
        assert area_scale_factor(100, scale) == pytest.approx(1.0)
        assert area_scale_factor(200, scale) == 0.8

    def test_round_half_away_from_zero(self) -> None:
        assert round_half_away(2.5) == 3
        assert round_half_away(-2.5) == -3
        assert round_half_away(1001.87) == 1002
        assert round_half_away(0.49) == 0
        assert round_half_away(0.49999999999999994) == 0
        assert round_half_away(-0.49999999999999994) == 0
        assert round_half_away(4503599627370495.5) == 4503599627370496


class TestCalcFairRent:
    """Tests for the full fair rent calculation."""

    def test_leith_two_bed(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        assert calc_fair_rent(default_table, leith_query) == 1002

    def test_leith_intermediate_terms(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        rent, d = calc_fair_rent_with_details(default_table, leith_query)
        assert d["base_value"] == pytest.approx(1002)
        assert d["location_adjustment"] == 0.03
        assert d["condition_adjustment"] == 0.0
        assert d["epc_adjustment"] == 0.01
        assert d["bedroom_adjustment"] == pytest.approx(0.03)
        assert d["broadband_adjustment"] == 0.0
        assert d["total_adjustment"] == pytest.approx(0.07)
        assert d["adjusted_value"] == pytest.approx(1054.605)
        assert d["area_scale_factor"] == pytest.approx(0.95)
        assert d["final_value"] == pytest.approx(1001.87475)
        assert rent == 1002

    def test_returns_int(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        assert isinstance(calc_fair_rent(default_table, leith_query), int)

    def test_fast_broadband_adds_value(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        assert calc_fair_rent(default_table, replace(leith_query, broadband=1080)) == 1038

    def test_slow_broadband_never_subtracts(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        assert calc_fair_rent(default_table, replace(leith_query, broadband=0)) == 1002

    def test_large_premium_flat(self, default_table: CoefficientTable) -> None:
        query = PropertyQuery(
            area=120, beds=3, location="New Town", condition="High", epc="A", broadband=500
        )
        assert calc_fair_rent(default_table, query) == 1966

    def test_small_poor_studio(self, default_table: CoefficientTable) -> None:
        query = PropertyQuery(
            area=30, beds=1, location="Granton", condition="Poor", epc="G", broadband=10
        )
        assert calc_fair_rent(default_table, query) == 447

    def test_additive_composes_like_modelled_factors(
        self, default_table: CoefficientTable, leith_query: PropertyQuery
    ) -> None:
        # Leith Walk is Leith + 0.01
        walk = replace(leith_query, location="Leith Walk")
        leith_plus = replace(leith_query, additive=0.01)
        assert calc_fair_rent(default_table, walk) == calc_fair_rent(default_table, leith_plus)

    def test_scale_dampens_summed_adjustment(
        self, default_table: CoefficientTable, leith_query: PropertyQuery
    ) -> None:
        flat = replace(default_table, adjustment_scale=0.0)
        # 1002 * 0.95
        assert calc_fair_rent(flat, leith_query) == 952

    def test_calibration_factor_applied_last(
        self, default_table: CoefficientTable, leith_query: PropertyQuery
    ) -> None:
        table = replace(default_table, calibration_factor=0.9)
        assert calc_fair_rent(table, leith_query) == 902

    def test_uses_table_base_rate(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        doubled = default_table.with_base_rate(default_table.base_rate * 2)
        assert calc_fair_rent(doubled, leith_query) == 2004

    def test_never_negative(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        assert calc_fair_rent(default_table, replace(leith_query, additive=-10)) == 0

    def test_unknown_location_raises(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        with pytest.raises(UnknownCategoryKey) as exc:
            calc_fair_rent(default_table, replace(leith_query, location="Atlantis"))
        assert exc.value.kind == "location"
        assert exc.value.key == "Atlantis"
        assert "Unknown location" in str(exc.value)

    def test_unknown_condition_raises(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        with pytest.raises(UnknownCategoryKey):
            calc_fair_rent(default_table, replace(leith_query, condition="Palatial"))

    def test_unknown_epc_raises(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        with pytest.raises(KeyError):
            calc_fair_rent(default_table, replace(leith_query, epc="Z"))

    def test_lookup_is_case_sensitive(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        with pytest.raises(UnknownCategoryKey):
            calc_fair_rent(default_table, replace(leith_query, location="leith"))

    def test_enum_members_accepted(self, default_table: CoefficientTable, leith_query: PropertyQuery) -> None:
        Location = category_enum(default_table, "location")
        Condition = category_enum(default_table, "condition")
        Epc = category_enum(default_table, "epc")
        query = replace(
            leith_query,
            location=Location.LEITH,
            condition=Condition("Average"),
            epc=Epc.C,
        )
        assert calc_fair_rent(default_table, query) == 1002


class TestValidateQuery:
    """Tests for input range validation."""

    def test_valid_query_passes(self, leith_query: PropertyQuery) -> None:
        assert validate_query(leith_query) is leith_query

    @pytest.mark.parametrize(
        "field,value",
        [
            ("area", 9.9),
            ("area", 500.1),
            ("area", math.nan),
            ("beds", 0),
            ("beds", 11),
            ("beds", 2.5),
            ("broadband", -1),
            ("broadband", math.inf),
        ],
    )
    def test_out_of_range_raises(self, leith_query: PropertyQuery, field: str, value: float) -> None:
        with pytest.raises(InvalidInputRange) as exc:
            validate_query(replace(leith_query, **{field: value}))
        assert exc.value.field == field

    def test_bounds_are_inclusive(self, leith_query: PropertyQuery) -> None:
        validate_query(replace(leith_query, area=10, beds=1, broadband=0))
        validate_query(replace(leith_query, area=500, beds=10))

    def test_is_value_error(self, leith_query: PropertyQuery) -> None:
        with pytest.raises(ValueError):
            validate_query(replace(leith_query, area=1))
