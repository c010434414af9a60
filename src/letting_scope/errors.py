"""Exceptions raised by the valuation engine."""

from __future__ import annotations

from typing import Any


class LettingScopeError(Exception):
    """Base class for all letting_scope errors."""


class InsufficientCalibrationData(LettingScopeError):
    """Too few usable rates to calibrate a base rate.

    Callers are expected to keep their previous coefficient table and log
    this, not surface it to the end user.
    """

    def __init__(self, valid_count: int, stage: str = "validation", minimum: int = 10) -> None:
        self.valid_count = valid_count
        self.stage = stage
        self.minimum = minimum
        if stage == "outliers":
            msg = "No rates left after IQR outlier removal"
        else:
            msg = f"Only {valid_count} valid rates, need at least {minimum}"
        super().__init__(msg)


class UnknownCategoryKey(LettingScopeError, KeyError):
    """A location, condition or EPC key missing from the coefficient table."""

    def __init__(self, kind: str, key: Any) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"Unknown {kind}: {key!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidInputRange(LettingScopeError, ValueError):
    """A numeric input outside its documented bounds."""

    def __init__(self, field: str, value: Any, bounds: str) -> None:
        self.field = field
        self.value = value
        self.bounds = bounds
        super().__init__(f"{field}={value!r} outside {bounds}")


class ConfigError(LettingScopeError):
    """Malformed configuration value."""
