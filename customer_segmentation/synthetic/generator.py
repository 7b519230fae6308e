from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
import math
import random
from typing import List, Optional

from customer_segmentation.foundation.orders import OrderRecord


@dataclass(frozen=True)
class OrderLineConfig:
    """Configuration for synthetic order line generation.

    Attributes
    ----------
    mean_orders_per_customer: Average number of orders per customer over the window.
    max_lines_per_order: Upper bound on lines sharing one order id.
    mean_line_sales: Average sales amount of a line.
    sales_variability: Coefficient in (0, 1] controlling sales variance.
    max_ship_days: Orders ship between 0 and this many days after ordering.
    seed: Optional RNG seed for reproducibility.
    """

    mean_orders_per_customer: float = 3.0
    max_lines_per_order: int = 4
    mean_line_sales: float = 250.0
    sales_variability: float = 0.8
    max_ship_days: int = 7
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.mean_orders_per_customer <= 0:
            raise ValueError("mean_orders_per_customer must be positive")
        if self.max_lines_per_order < 1:
            raise ValueError("max_lines_per_order must be >= 1")
        if self.mean_line_sales <= 0:
            raise ValueError("mean_line_sales must be positive")
        if not 0 < self.sales_variability <= 1:
            raise ValueError("sales_variability must be in (0, 1]")
        if self.max_ship_days < 0:
            raise ValueError("max_ship_days must be >= 0")


def _order_count(rng: random.Random, mean_orders: float) -> int:
    # Geometric draw shifted to start at 1: every customer orders at least once
    p = 1.0 / max(mean_orders, 1.0)
    count = 1
    while rng.random() > p:
        count += 1
    return count


def _sample_sales(rng: random.Random, mean: float, variability: float) -> Decimal:
    sigma = variability
    mu = math.log(mean) - 0.5 * sigma * sigma
    amount = math.exp(rng.normalvariate(mu, sigma))
    return Decimal(str(round(max(amount, 0.01), 2)))


def generate_order_lines(
    n_customers: int,
    start: date,
    end: date,
    *,
    config: Optional[OrderLineConfig] = None,
) -> List[OrderRecord]:
    """Generate Superstore-like order lines for ``n_customers`` customers.

    Every order has between one and ``max_lines_per_order`` lines sharing
    its order id, customer and dates but carrying their own sales amount,
    the way a sales export lists one row per product.
    """

    if n_customers <= 0:
        return []
    if start > end:
        raise ValueError("start date must be <= end date")
    config = config or OrderLineConfig()
    rng = random.Random(config.seed)
    total_days = (end - start).days + 1

    lines: List[OrderRecord] = []
    order_seq = 1
    for i in range(n_customers):
        customer_name = f"Customer {i + 1:04d}"
        for _ in range(_order_count(rng, config.mean_orders_per_customer)):
            order_date = start + timedelta(days=rng.randrange(total_days))
            ship_date = order_date + timedelta(days=rng.randint(0, config.max_ship_days))
            order_id = f"ORD-{order_seq:06d}"
            order_seq += 1
            for _line in range(1 + rng.randrange(config.max_lines_per_order)):
                lines.append(
                    OrderRecord(
                        order_id=order_id,
                        customer_name=customer_name,
                        order_date=order_date,
                        ship_date=ship_date,
                        sales=_sample_sales(
                            rng, config.mean_line_sales, config.sales_variability
                        ),
                    )
                )

    # Exports are not grouped by customer; shuffle lines deterministically
    rng.shuffle(lines)
    return lines
