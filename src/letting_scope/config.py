"""Configuration loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from .coefficients import (
    DEFAULT_ADJUSTMENT_SCALE,
    DEFAULT_BASE_RATE,
    DEFAULT_BEDROOM_BETA,
    DEFAULT_BROADBAND_REFERENCE,
    DEFAULT_BROADBAND_SLOPE,
    DEFAULT_CALIBRATION_FACTOR,
    DEFAULT_CONDITION,
    DEFAULT_EPC,
    DEFAULT_LOCATION_GROUPS,
    flatten_location_groups,
)
from .errors import ConfigError
from .models import AreaScale, CoefficientTable, DelusionParameters, QueryBounds

DATASET_URL_ENV = "LETTING_SCOPE_DATASET_URL"


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load config from YAML file."""
    path = Path(config_path) if config_path else Path(__file__).parent.parent.parent / "config.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _number(section: dict[str, Any], key: str, default: float, name: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"{name}.{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name}.{key} must be a number, got {value!r}") from None


def _adjustment_map(value: Any, name: str) -> dict[str, float]:
    if not isinstance(value, dict) or not value:
        raise ConfigError(f"{name} must be a non-empty mapping")
    out: dict[str, float] = {}
    for key in value:
        out[str(key)] = _number(value, key, 0.0, name)
    return out


def get_coefficient_table(config: dict[str, Any]) -> CoefficientTable:
    """Build the coefficient table, falling back to the shipped defaults.

    ``condition``, ``epc`` and ``locations`` replace the default maps
    wholesale when present; scalars override one at a time.
    """
    co = config.get("coefficients") or {}
    name = "coefficients"

    condition = _adjustment_map(co["condition"], f"{name}.condition") if "condition" in co else DEFAULT_CONDITION
    epc = _adjustment_map(co["epc"], f"{name}.epc") if "epc" in co else DEFAULT_EPC

    groups_cfg = co.get("locations", DEFAULT_LOCATION_GROUPS)
    if not isinstance(groups_cfg, dict) or not groups_cfg:
        raise ConfigError(f"{name}.locations must be a mapping of group -> {{location: adjustment}}")
    groups = {
        str(group): _adjustment_map(entries, f"{name}.locations.{group}")
        for group, entries in groups_cfg.items()
    }
    location, location_groups = flatten_location_groups(groups)

    sc = co.get("area_scale") or {}
    area_scale = AreaScale(
        lower_threshold=_number(sc, "lower_threshold", 40.0, f"{name}.area_scale"),
        upper_threshold=_number(sc, "upper_threshold", 100.0, f"{name}.area_scale"),
        max_factor=_number(sc, "max_factor", 1.05, f"{name}.area_scale"),
        min_factor=_number(sc, "min_factor", 0.75, f"{name}.area_scale"),
    )
    if area_scale.upper_threshold <= area_scale.lower_threshold:
        raise ConfigError(f"{name}.area_scale.upper_threshold must exceed lower_threshold")

    adjustment_scale = _number(co, "adjustment_scale", DEFAULT_ADJUSTMENT_SCALE, name)
    if not 0 <= adjustment_scale <= 1:
        raise ConfigError(f"{name}.adjustment_scale must be within [0, 1], got {adjustment_scale}")

    return CoefficientTable(
        base_rate=_number(co, "base_rate", DEFAULT_BASE_RATE, name),
        bedroom_beta=_number(co, "bedroom_beta", DEFAULT_BEDROOM_BETA, name),
        condition=condition,
        location=location,
        epc=epc,
        broadband_slope=_number(co, "broadband_slope", DEFAULT_BROADBAND_SLOPE, name),
        calibration_factor=_number(co, "calibration_factor", DEFAULT_CALIBRATION_FACTOR, name),
        adjustment_scale=adjustment_scale,
        broadband_reference=_number(co, "broadband_reference", DEFAULT_BROADBAND_REFERENCE, name),
        area_scale=area_scale,
        location_groups=location_groups,
    )


def get_delusion_params(config: dict[str, Any]) -> DelusionParameters:
    """Extract default market delusion parameters from config."""
    d = config.get("delusion") or {}
    defaults = DelusionParameters()
    return DelusionParameters(
        anchoring=_number(d, "anchoring", defaults.anchoring, "delusion"),
        btr=_number(d, "btr", defaults.btr, "delusion"),
        cap=_number(d, "cap", defaults.cap, "delusion"),
        demand=_number(d, "demand", defaults.demand, "delusion"),
        agent=_number(d, "agent", defaults.agent, "delusion"),
        scarcity=_number(d, "scarcity", defaults.scarcity, "delusion"),
    )


def get_query_bounds(config: dict[str, Any]) -> QueryBounds:
    """Extract accepted property query ranges from config."""
    qb = config.get("query_bounds") or {}
    return QueryBounds(
        area_min=_number(qb, "area_min", 10, "query_bounds"),
        area_max=_number(qb, "area_max", 500, "query_bounds"),
        beds_min=int(_number(qb, "beds_min", 1, "query_bounds")),
        beds_max=int(_number(qb, "beds_max", 10, "query_bounds")),
        broadband_min=_number(qb, "broadband_min", 0, "query_bounds"),
    )


def get_dataset_settings(config: dict[str, Any]) -> dict[str, Any]:
    """Dataset source settings. ``LETTING_SCOPE_DATASET_URL`` overrides ``url``."""
    ds = config.get("dataset") or {}
    return {
        "url": os.environ.get(DATASET_URL_ENV) or ds.get("url") or None,
        "path": ds.get("path") or None,
        "timeout_seconds": _number(ds, "timeout_seconds", 30, "dataset"),
    }


def get_tenancy_settings(config: dict[str, Any]) -> dict[str, float]:
    """Constants for the pro-rata, rent increase and affordability calculators."""
    t = config.get("tenancy") or {}
    return {
        "days_per_month": _number(t, "days_per_month", 30.44, "tenancy"),
        "increase_floor_percent": _number(t, "increase_floor_percent", 6, "tenancy"),
        "increase_cap_percent": _number(t, "increase_cap_percent", 24, "tenancy"),
        "tenant_income_multiple": _number(t, "tenant_income_multiple", 30, "tenancy"),
        "guarantor_income_multiple": _number(t, "guarantor_income_multiple", 36, "tenancy"),
        "average_credit_monthly": _number(t, "average_credit_monthly", 150, "tenancy"),
    }
