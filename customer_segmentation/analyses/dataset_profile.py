"""Sanity profile of an order dataset and score distributions.

Run before trusting a segmentation: how many raw lines were loaded, how many
orders they collapse to and which date window they cover.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional, Sequence

from customer_segmentation.foundation.orders import DeduplicatedOrder, OrderRecord
from customer_segmentation.foundation.rfm import MAX_SCORE, MIN_SCORE, ScoredAggregate

ScoreDimension = Literal["r", "f", "m"]


@dataclass(frozen=True)
class DatasetProfile:
    """Counts and date range of an order dataset.

    Attributes
    ----------
    total_records:
        Raw order lines loaded
    unique_orders:
        Distinct order identifiers after deduplication
    duplicate_lines:
        Lines dropped by deduplication
    customer_count:
        Distinct customers among the unique orders
    first_order_date:
        Earliest order date, ``None`` for an empty dataset
    last_order_date:
        Latest order date (the recency reference), ``None`` for an empty dataset
    """

    total_records: int
    unique_orders: int
    duplicate_lines: int
    customer_count: int
    first_order_date: Optional[date]
    last_order_date: Optional[date]

    def __post_init__(self) -> None:
        if self.unique_orders > self.total_records:
            raise ValueError(
                f"Unique orders ({self.unique_orders}) cannot exceed total records ({self.total_records})"
            )


def profile_orders(
    records: Sequence[OrderRecord],
    unique_orders: Sequence[DeduplicatedOrder],
) -> DatasetProfile:
    """Summarise raw lines and their deduplicated orders."""
    if not unique_orders:
        return DatasetProfile(
            total_records=len(records),
            unique_orders=0,
            duplicate_lines=len(records),
            customer_count=0,
            first_order_date=None,
            last_order_date=None,
        )

    order_dates = [order.order_date for order in unique_orders]
    return DatasetProfile(
        total_records=len(records),
        unique_orders=len(unique_orders),
        duplicate_lines=len(records) - len(unique_orders),
        customer_count=len({order.customer_name for order in unique_orders}),
        first_order_date=min(order_dates),
        last_order_date=max(order_dates),
    )


def _score_of(score: ScoredAggregate, dimension: ScoreDimension) -> int:
    if dimension == "r":
        return score.r_score
    if dimension == "f":
        return score.f_score
    if dimension == "m":
        return score.m_score
    raise ValueError(f"Unknown score dimension: {dimension!r} (expected 'r', 'f' or 'm')")


def score_distribution(
    rfm_scores: Sequence[ScoredAggregate], dimension: ScoreDimension
) -> dict[int, int]:
    """Count customers per score (1-4) for one dimension.

    Every score appears as a key, with zero when no customer holds it.
    """
    distribution = {value: 0 for value in range(MIN_SCORE, MAX_SCORE + 1)}
    for score in rfm_scores:
        distribution[_score_of(score, dimension)] += 1
    return distribution


def customers_with_score(
    rfm_scores: Sequence[ScoredAggregate], dimension: ScoreDimension, value: int
) -> list[ScoredAggregate]:
    """Return the customers holding ``value`` on ``dimension``."""
    return [score for score in rfm_scores if _score_of(score, dimension) == value]
