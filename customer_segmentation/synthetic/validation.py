from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from customer_segmentation.foundation.orders import OrderRecord


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    message: str = ""


def check_non_negative_sales(lines: Sequence[OrderRecord]) -> ValidationResult:
    for idx, line in enumerate(lines):
        if line.sales < 0:
            return ValidationResult(False, f"sales must be >= 0 at index {idx}")
    return ValidationResult(True, "sales are non-negative")


def check_ship_after_order(lines: Sequence[OrderRecord]) -> ValidationResult:
    for idx, line in enumerate(lines):
        if line.ship_date < line.order_date:
            return ValidationResult(
                False, f"ship_date precedes order_date at index {idx}"
            )
    return ValidationResult(True, "ship dates follow order dates")


def check_consistent_order_headers(lines: Sequence[OrderRecord]) -> ValidationResult:
    """Lines sharing an order id must agree on customer and dates."""
    headers: dict[str, tuple[str, date, date]] = {}
    for idx, line in enumerate(lines):
        header = (line.customer_name, line.order_date, line.ship_date)
        seen = headers.setdefault(line.order_id, header)
        if seen != header:
            return ValidationResult(
                False, f"order {line.order_id} has inconsistent header at index {idx}"
            )
    return ValidationResult(True, f"{len(headers)} orders have consistent headers")


def check_duplicate_lines_present(
    lines: Sequence[OrderRecord], *, min_avg_lines_per_order: float = 1.0
) -> ValidationResult:
    if not lines:
        return ValidationResult(False, "no order lines to assess")

    lines_per_order: dict[str, int] = defaultdict(int)
    for line in lines:
        lines_per_order[line.order_id] += 1

    avg = sum(lines_per_order.values()) / len(lines_per_order)
    if avg <= min_avg_lines_per_order:
        return ValidationResult(
            False, f"average lines/order too low: {avg:.2f} <= {min_avg_lines_per_order}"
        )
    return ValidationResult(True, f"average lines/order ok: {avg:.2f}")


def check_temporal_coverage(
    lines: Sequence[OrderRecord], start: date, end: date
) -> ValidationResult:
    for idx, line in enumerate(lines):
        if not start <= line.order_date <= end:
            return ValidationResult(
                False, f"order_date {line.order_date} outside [{start}, {end}] at index {idx}"
            )
    return ValidationResult(True, "all order dates within window")
