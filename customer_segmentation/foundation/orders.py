"""Order line records and order-level deduplication.

Sales exports carry one row per order *line*, so the same order identifier
appears once for every product on the order. RFM frequency counts orders,
not lines, which means the lines have to be collapsed to a single
representative record per order before any customer metrics are derived.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderRecord:
    """One transaction line as supplied by the ingestion layer.

    Attributes
    ----------
    order_id:
        Order identifier. Not unique across lines of the same order.
    customer_name:
        Customer the order belongs to. Matched exactly (case-sensitive).
    order_date:
        Calendar date the order was placed.
    ship_date:
        Calendar date the order shipped.
    sales:
        Sales amount for the line.

    Notes
    -----
    Records are assumed clean. Validation happens at the ingestion boundary
    (see :mod:`customer_segmentation.foundation.ingestion`).
    """

    order_id: str
    customer_name: str
    order_date: date
    ship_date: date
    sales: Decimal


@dataclass(frozen=True)
class DeduplicatedOrder:
    """The canonical record kept for a single order identifier.

    Attributes
    ----------
    record:
        The surviving order line.
    line_count:
        Number of input lines that shared the order identifier.
    """

    record: OrderRecord
    line_count: int = 1

    def __post_init__(self) -> None:
        if self.line_count < 1:
            raise ValueError(
                f"Line count must be positive: {self.line_count} (order_id={self.record.order_id})"
            )

    @property
    def order_id(self) -> str:
        return self.record.order_id

    @property
    def customer_name(self) -> str:
        return self.record.customer_name

    @property
    def order_date(self) -> date:
        return self.record.order_date

    @property
    def ship_date(self) -> date:
        return self.record.ship_date

    @property
    def sales(self) -> Decimal:
        return self.record.sales


def deduplicate_orders(records: Iterable[OrderRecord]) -> list[DeduplicatedOrder]:
    """Collapse order lines to one record per order identifier.

    Within each order the first line in input order survives; no other field
    is consulted when choosing it. The choice is therefore only as meaningful
    as the input ordering, but it is deterministic for a fixed ordering.

    Parameters
    ----------
    records:
        Raw order lines.

    Returns
    -------
    list[DeduplicatedOrder]
        One entry per distinct ``order_id``, sorted by ``order_id``.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> lines = [
    ...     OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 3), Decimal("100")),
    ...     OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 3), Decimal("999")),
    ...     OrderRecord("2", "A", date(2013, 6, 1), date(2013, 6, 2), Decimal("50")),
    ... ]
    >>> unique = deduplicate_orders(lines)
    >>> [(o.order_id, o.sales, o.line_count) for o in unique]
    [('1', Decimal('100'), 2), ('2', Decimal('50'), 1)]
    """
    kept: dict[str, OrderRecord] = {}
    line_counts: dict[str, int] = {}
    total_lines = 0
    for record in records:
        total_lines += 1
        if record.order_id not in kept:
            kept[record.order_id] = record
            line_counts[record.order_id] = 0
        line_counts[record.order_id] += 1

    unique_orders = [
        DeduplicatedOrder(record=record, line_count=line_counts[order_id])
        for order_id, record in kept.items()
    ]
    unique_orders.sort(key=lambda order: order.order_id)

    logger.debug(
        "Deduplicated %d order lines into %d unique orders",
        total_lines,
        len(unique_orders),
    )
    return unique_orders
