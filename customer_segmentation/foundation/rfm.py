"""RFM (Recency-Frequency-Monetary) aggregation and quartile scoring.

RFM analysis describes each customer along three dimensions:
- Recency: How many days before the latest order in the dataset did the
  customer last buy?
- Frequency: How many distinct orders did they place?
- Monetary: How much did they spend in total?

Scores are assigned by rank, not by value range: customers are sorted on a
metric and split into four near-equal groups (``NTILE(4)``), so every
dataset produces all four scores once it has at least four customers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

import pandas as pd  # Used for ordering customers before NTILE bucketing

from customer_segmentation.foundation.orders import DeduplicatedOrder

logger = logging.getLogger(__name__)

# Number of rank buckets per metric. Scores are single digits so that the
# combination code can be formed by plain concatenation.
NTILE_BUCKETS = 4

MIN_SCORE = 1
MAX_SCORE = NTILE_BUCKETS

# Monetary values are whole currency units
MONETARY_PRECISION = Decimal("1")


def round_monetary(value: Decimal) -> Decimal:
    """Round a sales total to whole units, halves away from zero.

    >>> round_monetary(Decimal("149.5"))
    Decimal('150')
    >>> round_monetary(Decimal("10.49"))
    Decimal('10')
    """
    return value.quantize(MONETARY_PRECISION, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CustomerAggregate:
    """Behavioural metrics for a single customer.

    Attributes
    ----------
    customer_name:
        Customer the metrics belong to
    last_order_date:
        Date of the customer's most recent order
    recency:
        Days between ``last_order_date`` and the dataset's latest order date
    frequency:
        Number of distinct orders placed by the customer
    monetary:
        Total sales, rounded to whole units
    """

    customer_name: str
    last_order_date: date
    recency: int
    frequency: int
    monetary: Decimal

    def __post_init__(self) -> None:
        """Validate customer metrics."""
        if self.recency < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.recency} (customer_name={self.customer_name})"
            )
        if self.frequency < 1:
            raise ValueError(
                f"Frequency must be positive: {self.frequency} (customer_name={self.customer_name})"
            )


@dataclass(frozen=True)
class CustomerAggregation:
    """Result of aggregating a deduplicated order set.

    Attributes
    ----------
    reference_date:
        Latest order date across the whole dataset, or ``None`` when there
        were no orders.
    aggregates:
        One :class:`CustomerAggregate` per customer, sorted by name.
    """

    reference_date: Optional[date]
    aggregates: tuple[CustomerAggregate, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.reference_date is None


@dataclass(frozen=True)
class ScoredAggregate:
    """Customer metrics together with their quartile scores.

    Attributes
    ----------
    customer_name:
        Customer the scores belong to
    recency, frequency, monetary:
        Metrics copied from the :class:`CustomerAggregate`
    r_score:
        Recency score (1-4, 4 = most recent)
    f_score:
        Frequency score (1-4, 4 = most orders)
    m_score:
        Monetary score (1-4, 4 = highest spend)
    """

    customer_name: str
    recency: int
    frequency: int
    monetary: Decimal
    r_score: int
    f_score: int
    m_score: int

    def __post_init__(self) -> None:
        """Validate score ranges."""
        for name in ("r_score", "f_score", "m_score"):
            value = getattr(self, name)
            if not MIN_SCORE <= value <= MAX_SCORE:
                raise ValueError(
                    f"{name} must be between {MIN_SCORE} and {MAX_SCORE}: {value} "
                    f"(customer_name={self.customer_name})"
                )

    @property
    def total_rfm_score(self) -> int:
        """Sum of the three scores (3-12)."""
        return self.r_score + self.f_score + self.m_score

    @property
    def rfm_score_combination(self) -> str:
        """Scores concatenated as R, F, M with no separator (e.g. ``"423"``)."""
        return f"{self.r_score}{self.f_score}{self.m_score}"


def calculate_customer_aggregates(
    orders: Sequence[DeduplicatedOrder],
) -> CustomerAggregation:
    """Calculate recency, frequency and monetary value per customer.

    Recency is measured against the latest order date of the *whole*
    dataset, so the customer who placed that order has recency 0. Customers
    are grouped on the exact ``customer_name`` string.

    Parameters
    ----------
    orders:
        Deduplicated orders (one per order identifier).

    Returns
    -------
    CustomerAggregation
        Aggregates sorted by customer name. When ``orders`` is empty the
        result has ``reference_date=None`` and no aggregates.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> from customer_segmentation.foundation.orders import OrderRecord, deduplicate_orders
    >>> orders = deduplicate_orders([
    ...     OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 2), Decimal("100")),
    ...     OrderRecord("2", "A", date(2013, 6, 1), date(2013, 6, 2), Decimal("50")),
    ...     OrderRecord("3", "B", date(2013, 12, 31), date(2014, 1, 2), Decimal("10")),
    ... ])
    >>> result = calculate_customer_aggregates(orders)
    >>> result.reference_date
    datetime.date(2013, 12, 31)
    >>> [(a.customer_name, a.recency, a.frequency, a.monetary) for a in result.aggregates]
    [('A', 213, 2, Decimal('150')), ('B', 0, 1, Decimal('10'))]
    """
    if not orders:
        logger.info("No orders supplied; customer aggregation is empty")
        return CustomerAggregation(reference_date=None)

    reference_date = max(order.order_date for order in orders)

    # Group by customer_name
    customer_data: dict[str, dict] = {}
    for order in orders:
        if order.customer_name not in customer_data:
            customer_data[order.customer_name] = {
                "last_order_date": order.order_date,
                "order_ids": set(),
                "total_sales": Decimal("0"),
            }

        data = customer_data[order.customer_name]
        if order.order_date > data["last_order_date"]:
            data["last_order_date"] = order.order_date
        data["order_ids"].add(order.order_id)
        data["total_sales"] += Decimal(str(order.sales))

    aggregates = [
        CustomerAggregate(
            customer_name=customer_name,
            last_order_date=data["last_order_date"],
            recency=(reference_date - data["last_order_date"]).days,
            frequency=len(data["order_ids"]),
            monetary=round_monetary(data["total_sales"]),
        )
        for customer_name, data in customer_data.items()
    ]
    aggregates.sort(key=lambda a: a.customer_name)

    logger.info(
        "Aggregated %d orders into %d customers (reference date %s)",
        len(orders),
        len(aggregates),
        reference_date.isoformat(),
    )
    return CustomerAggregation(
        reference_date=reference_date, aggregates=tuple(aggregates)
    )


def ntile(position: int, count: int, buckets: int = NTILE_BUCKETS) -> int:
    """Return the 1-based bucket for a 0-based ``position`` among ``count`` rows.

    Rows are split into ``buckets`` groups whose sizes differ by at most one.
    When ``count`` is not divisible by ``buckets`` the earliest buckets take
    the extra rows, so with 10 rows and 4 buckets the sizes are 3, 3, 2, 2.
    With fewer rows than buckets each row gets its own bucket, 1 upwards.

    >>> [ntile(p, 10) for p in range(10)]
    [1, 1, 1, 2, 2, 2, 3, 3, 4, 4]
    >>> [ntile(p, 2) for p in range(2)]
    [1, 2]
    """
    if buckets < 1:
        raise ValueError(f"Bucket count must be positive: {buckets}")
    if not 0 <= position < count:
        raise ValueError(f"Position {position} out of range for {count} rows")

    base, remainder = divmod(count, buckets)
    # Rows held by the leading buckets that absorbed one extra row each
    large_rows = remainder * (base + 1)
    if position < large_rows:
        return position // (base + 1) + 1
    return remainder + (position - large_rows) // base + 1


def _ntile_scores(df: pd.DataFrame, column: str, ascending: bool) -> pd.Series:
    """Assign NTILE buckets after ordering by ``column`` then customer name."""
    ordered = df.sort_values(
        [column, "customer_name"], ascending=[ascending, True], kind="mergesort"
    )
    count = len(ordered)
    buckets = [ntile(position, count) for position in range(count)]
    return pd.Series(buckets, index=ordered.index, dtype="int64")


def calculate_rfm_scores(
    aggregates: Sequence[CustomerAggregate],
) -> list[ScoredAggregate]:
    """Assign 1-4 quartile scores for recency, frequency and monetary value.

    Each metric is ranked independently over the whole customer population
    and cut into four buckets with :func:`ntile`:

    - Recency is ordered *descending* (oldest first), so the most recent
      customers land in bucket 4.
    - Frequency and monetary are ordered ascending, so the highest values
      land in bucket 4.

    Ties on a metric are broken by customer name ascending, which keeps the
    assignment deterministic; tied customers can still fall on either side
    of a bucket boundary.

    Parameters
    ----------
    aggregates:
        Customer metrics for the full population. Scoring a subset gives
        different results since buckets are relative.

    Returns
    -------
    list[ScoredAggregate]
        Scores for each customer, sorted by customer name.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> aggregates = [
    ...     CustomerAggregate("A", date(2013, 6, 1), 213, 2, Decimal("150")),
    ...     CustomerAggregate("B", date(2013, 12, 31), 0, 1, Decimal("10")),
    ... ]
    >>> [(s.customer_name, s.rfm_score_combination) for s in calculate_rfm_scores(aggregates)]
    [('A', '122'), ('B', '211')]
    """
    if not aggregates:
        return []

    names = [a.customer_name for a in aggregates]
    if len(set(names)) != len(names):
        raise ValueError("Customer aggregates must be unique per customer_name")

    df = pd.DataFrame(
        {
            "customer_name": names,
            "recency": [a.recency for a in aggregates],
            "frequency": [a.frequency for a in aggregates],
            "monetary": [float(a.monetary) for a in aggregates],
        }
    )

    # Recency: older orders first, so the most recent customers score 4
    df["r_score"] = _ntile_scores(df, "recency", ascending=False)
    df["f_score"] = _ntile_scores(df, "frequency", ascending=True)
    df["m_score"] = _ntile_scores(df, "monetary", ascending=True)

    scores: list[ScoredAggregate] = []
    for aggregate, row in zip(aggregates, df.itertuples(index=False)):
        scores.append(
            ScoredAggregate(
                customer_name=aggregate.customer_name,
                recency=aggregate.recency,
                frequency=aggregate.frequency,
                monetary=aggregate.monetary,
                r_score=int(row.r_score),
                f_score=int(row.f_score),
                m_score=int(row.m_score),
            )
        )

    scores.sort(key=lambda s: s.customer_name)
    return scores
