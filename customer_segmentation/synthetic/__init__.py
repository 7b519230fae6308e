"""Synthetic data generation and validation utilities.

This package produces realistic-but-fake sales exports to exercise the
segmentation pipeline without accessing production data.
"""

from .generator import OrderLineConfig, generate_order_lines
from .validation import (
    ValidationResult,
    check_consistent_order_headers,
    check_duplicate_lines_present,
    check_non_negative_sales,
    check_ship_after_order,
    check_temporal_coverage,
)

__all__ = [
    "OrderLineConfig",
    "generate_order_lines",
    "ValidationResult",
    "check_consistent_order_headers",
    "check_duplicate_lines_present",
    "check_non_negative_sales",
    "check_ship_after_order",
    "check_temporal_coverage",
]
