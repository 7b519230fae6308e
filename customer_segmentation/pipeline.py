"""End-to-end RFM segmentation over a snapshot of order records.

The stages run strictly forward and each returns an immutable collection:

    order lines -> unique orders -> customer aggregates -> scores -> segments

Quartile scoring ranks the whole customer population, so the full set of
aggregates is materialised before any customer is scored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from customer_segmentation.analyses.dataset_profile import DatasetProfile, profile_orders
from customer_segmentation.analyses.segment_summary import (
    SegmentSummary,
    summarize_segments,
)
from customer_segmentation.foundation.orders import (
    DeduplicatedOrder,
    OrderRecord,
    deduplicate_orders,
)
from customer_segmentation.foundation.rfm import (
    ScoredAggregate,
    calculate_customer_aggregates,
    calculate_rfm_scores,
)
from customer_segmentation.foundation.segments import (
    ClassifiedCustomer,
    classify_customers,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RFMSegmentation:
    """Results of one segmentation run.

    Attributes
    ----------
    reference_date:
        Latest order date in the dataset; ``None`` when there was no data
    unique_orders:
        One record per order identifier, sorted by order id
    rfm_scores:
        Scored customers, sorted by customer name
    rfm_analysis:
        Scored customers with their segment, sorted by customer name
    profile:
        Record counts and date window of the input
    """

    reference_date: Optional[date]
    unique_orders: tuple[DeduplicatedOrder, ...] = field(default_factory=tuple)
    rfm_scores: tuple[ScoredAggregate, ...] = field(default_factory=tuple)
    rfm_analysis: tuple[ClassifiedCustomer, ...] = field(default_factory=tuple)
    profile: Optional[DatasetProfile] = None

    @property
    def is_empty(self) -> bool:
        """True when the input held no orders."""
        return self.reference_date is None

    def score_for(self, customer_name: str) -> ScoredAggregate:
        """Look up the scores of one customer.

        Raises
        ------
        KeyError
            If the customer does not appear in the dataset.
        """
        for score in self.rfm_scores:
            if score.customer_name == customer_name:
                return score
        raise KeyError(customer_name)

    def summary(self) -> list[SegmentSummary]:
        """Segment counts and average monetary value of ``rfm_analysis``."""
        return summarize_segments(self.rfm_analysis)


def run_rfm_segmentation(records: Iterable[OrderRecord]) -> RFMSegmentation:
    """Deduplicate, aggregate, score and classify a set of order lines.

    The run is pure: the same input (in the same order) always yields the
    same result, and an empty input yields an empty result with
    ``reference_date=None`` rather than an error.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> result = run_rfm_segmentation([
    ...     OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 3), Decimal("100")),
    ...     OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 3), Decimal("999")),
    ...     OrderRecord("2", "A", date(2013, 6, 1), date(2013, 6, 4), Decimal("50")),
    ...     OrderRecord("3", "B", date(2013, 12, 31), date(2014, 1, 2), Decimal("10")),
    ... ])
    >>> len(result.unique_orders)
    3
    >>> result.score_for("A").monetary
    Decimal('150')
    """
    records = list(records)
    unique_orders = deduplicate_orders(records)
    profile = profile_orders(records, unique_orders)

    aggregation = calculate_customer_aggregates(unique_orders)
    if aggregation.is_empty:
        logger.warning("No order records supplied; segmentation is empty")
        return RFMSegmentation(reference_date=None, profile=profile)

    rfm_scores = calculate_rfm_scores(aggregation.aggregates)
    rfm_analysis = classify_customers(rfm_scores)

    logger.info(
        "Segmented %d customers from %d unique orders (%d raw lines)",
        len(rfm_analysis),
        len(unique_orders),
        len(records),
    )
    return RFMSegmentation(
        reference_date=aggregation.reference_date,
        unique_orders=tuple(unique_orders),
        rfm_scores=tuple(rfm_scores),
        rfm_analysis=tuple(rfm_analysis),
        profile=profile,
    )
