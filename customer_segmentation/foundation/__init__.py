"""Foundational building blocks for RFM customer segmentation.

This package exposes the order record contract, order deduplication,
RFM aggregation and quartile scoring, the segment rule table and the
ingestion boundary that turns raw rows into order records.
"""

from .ingestion import (
    IngestionConfig,
    MalformedRecordError,
    parse_order_record,
    parse_order_records,
    serial_to_date,
)
from .orders import DeduplicatedOrder, OrderRecord, deduplicate_orders
from .rfm import (
    CustomerAggregate,
    CustomerAggregation,
    ScoredAggregate,
    calculate_customer_aggregates,
    calculate_rfm_scores,
    ntile,
)
from .segments import (
    ClassifiedCustomer,
    CustomerSegment,
    SEGMENT_RULES,
    classify_combination,
    classify_customers,
)

__all__ = [
    "IngestionConfig",
    "MalformedRecordError",
    "parse_order_record",
    "parse_order_records",
    "serial_to_date",
    "DeduplicatedOrder",
    "OrderRecord",
    "deduplicate_orders",
    "CustomerAggregate",
    "CustomerAggregation",
    "ScoredAggregate",
    "calculate_customer_aggregates",
    "calculate_rfm_scores",
    "ntile",
    "ClassifiedCustomer",
    "CustomerSegment",
    "SEGMENT_RULES",
    "classify_combination",
    "classify_customers",
]
