"""Shared utilities for pandas conversion operations."""

from decimal import Decimal


def decimal_to_float(value: Decimal) -> float:
    """Convert Decimal to float for pandas compatibility."""
    return float(value)


def missing_columns(columns, required) -> set[str]:
    """Return the required column names absent from ``columns``."""
    return set(required) - set(columns)
