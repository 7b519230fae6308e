"""Segment population summary.

Rolls classified customers up to one row per segment: how many customers
fell into it and their average monetary value.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from customer_segmentation.foundation.segments import (
    FALLBACK_SEGMENT,
    SEGMENT_RULES,
    ClassifiedCustomer,
    CustomerSegment,
)

# Report order: rule-table order, fallback last
SEGMENT_ORDER: tuple[CustomerSegment, ...] = tuple(
    segment for segment, _ in SEGMENT_RULES
) + (FALLBACK_SEGMENT,)


@dataclass(frozen=True)
class SegmentSummary:
    """Population and value of a single segment.

    Attributes
    ----------
    segment:
        The customer segment
    customer_count:
        Number of customers assigned to the segment
    average_monetary:
        Mean monetary value of those customers, rounded to whole units
    """

    segment: CustomerSegment
    customer_count: int
    average_monetary: Decimal

    def __post_init__(self) -> None:
        if self.customer_count < 1:
            raise ValueError(
                f"Customer count must be positive: {self.customer_count} (segment={self.segment.value})"
            )


def summarize_segments(
    rfm_analysis: Sequence[ClassifiedCustomer],
) -> list[SegmentSummary]:
    """Count customers and average their monetary value per segment.

    Only segments with at least one customer are returned, in rule-table
    order with ``CANNOT_BE_DEFINED`` last.

    Examples
    --------
    >>> from decimal import Decimal
    >>> from customer_segmentation.foundation.rfm import ScoredAggregate
    >>> from customer_segmentation.foundation.segments import classify_customers
    >>> scores = [
    ...     ScoredAggregate("A", 0, 5, Decimal("300"), 4, 4, 4),
    ...     ScoredAggregate("B", 3, 4, Decimal("201"), 4, 4, 4),
    ... ]
    >>> [(s.segment.value, s.customer_count, s.average_monetary)
    ...  for s in summarize_segments(classify_customers(scores))]
    [('LOYAL', 2, Decimal('251'))]
    """
    totals: dict[CustomerSegment, list] = {}
    for customer in rfm_analysis:
        bucket = totals.setdefault(customer.segment, [0, Decimal("0")])
        bucket[0] += 1
        bucket[1] += customer.monetary

    summaries: list[SegmentSummary] = []
    for segment in SEGMENT_ORDER:
        if segment not in totals:
            continue
        count, monetary_total = totals[segment]
        summaries.append(
            SegmentSummary(
                segment=segment,
                customer_count=count,
                average_monetary=(monetary_total / count).quantize(
                    Decimal("1"), rounding=ROUND_HALF_UP
                ),
            )
        )
    return summaries
