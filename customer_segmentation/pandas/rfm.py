"""Pandas DataFrame adapters for RFM segmentation."""

from typing import List, Sequence

import pandas as pd  # type: ignore

from customer_segmentation.analyses.segment_summary import SegmentSummary
from customer_segmentation.foundation.ingestion import (
    DateEncoding,
    IngestionConfig,
    parse_order_records,
)
from customer_segmentation.foundation.orders import DeduplicatedOrder, OrderRecord
from customer_segmentation.foundation.rfm import ScoredAggregate
from customer_segmentation.foundation.segments import ClassifiedCustomer
from customer_segmentation.pipeline import RFMSegmentation, run_rfm_segmentation
from ._utils import decimal_to_float, missing_columns

UNIQUE_ORDER_COLUMNS = [
    "ORDER_ID",
    "CUSTOMER_NAME",
    "ORDER_DATE",
    "SHIP_DATE",
    "SALES",
    "LINE_COUNT",
]

RFM_SCORE_COLUMNS = [
    "CUSTOMER_NAME",
    "RECENCY",
    "FREQUENCY",
    "MONETARY",
    "R_SCORE",
    "F_SCORE",
    "M_SCORE",
    "TOTAL_RFM_SCORE",
    "RFM_SCORE_COMBINATION",
]

RFM_ANALYSIS_COLUMNS = RFM_SCORE_COLUMNS + ["CUSTOMER_SEGMENT"]

SEGMENT_SUMMARY_COLUMNS = [
    "CUSTOMER_SEGMENT",
    "NUMBER_OF_CUSTOMER",
    "AVERAGE_MONETARY_VALUE",
]


def dataframe_to_order_records(
    orders_df: pd.DataFrame,
    order_id_col: str = "ORDER_ID",
    customer_name_col: str = "CUSTOMER_NAME",
    order_date_col: str = "ORDER_DATE",
    ship_date_col: str = "SHIP_DATE",
    sales_col: str = "SALES",
    date_encoding: DateEncoding = "iso",
) -> List[OrderRecord]:
    """Convert a sales DataFrame to a list of order records.

    Args:
        orders_df: DataFrame with one row per order line
        *_col: Column name mappings for flexibility
        date_encoding: 'iso' for date/ISO string columns, 'serial' for
            spreadsheet day numbers

    Returns:
        List of OrderRecord objects in row order

    Raises:
        ValueError: If DataFrame missing required columns or has null values
        MalformedRecordError: If a value cannot be parsed

    Example:
        >>> sales_df = pd.read_csv('superstore_sales.csv')
        >>> records = dataframe_to_order_records(sales_df, date_encoding='serial')
    """
    config = IngestionConfig(
        order_id_col=order_id_col,
        customer_name_col=customer_name_col,
        order_date_col=order_date_col,
        ship_date_col=ship_date_col,
        sales_col=sales_col,
        date_encoding=date_encoding,
    )

    missing_cols = missing_columns(orders_df.columns, config.required_columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    if orders_df.empty:
        return []

    # Validate for null/NaN values
    null_cols = orders_df[config.required_columns].isnull().any()
    if null_cols.any():
        null_col_names = null_cols[null_cols].index.tolist()
        raise ValueError(
            f"Null/NaN values found in columns: {null_col_names}. "
            "Order records require complete data."
        )

    return parse_order_records(orders_df.to_dict("records"), config)


def unique_orders_to_dataframe(
    unique_orders: Sequence[DeduplicatedOrder],
) -> pd.DataFrame:
    """Convert deduplicated orders to a DataFrame sorted by order id."""
    if not unique_orders:
        return pd.DataFrame(columns=UNIQUE_ORDER_COLUMNS)

    rows = [
        {
            "ORDER_ID": order.order_id,
            "CUSTOMER_NAME": order.customer_name,
            "ORDER_DATE": order.order_date,
            "SHIP_DATE": order.ship_date,
            "SALES": decimal_to_float(order.sales),
            "LINE_COUNT": order.line_count,
        }
        for order in unique_orders
    ]
    df = pd.DataFrame(rows, columns=UNIQUE_ORDER_COLUMNS)
    return df.sort_values("ORDER_ID", kind="mergesort").reset_index(drop=True)


def _score_row(score: ScoredAggregate) -> dict:
    return {
        "CUSTOMER_NAME": score.customer_name,
        "RECENCY": score.recency,
        "FREQUENCY": score.frequency,
        "MONETARY": decimal_to_float(score.monetary),
        "R_SCORE": score.r_score,
        "F_SCORE": score.f_score,
        "M_SCORE": score.m_score,
        "TOTAL_RFM_SCORE": score.total_rfm_score,
        "RFM_SCORE_COMBINATION": score.rfm_score_combination,
    }


def rfm_scores_to_dataframe(rfm_scores: Sequence[ScoredAggregate]) -> pd.DataFrame:
    """Convert scored customers to a DataFrame sorted by customer name.

    Example:
        >>> scores_df = rfm_scores_to_dataframe(result.rfm_scores)
        >>> scores_df[scores_df['M_SCORE'] == 4]
    """
    if not rfm_scores:
        return pd.DataFrame(columns=RFM_SCORE_COLUMNS)

    df = pd.DataFrame([_score_row(score) for score in rfm_scores], columns=RFM_SCORE_COLUMNS)
    return df.sort_values("CUSTOMER_NAME", kind="mergesort").reset_index(drop=True)


def rfm_analysis_to_dataframe(
    rfm_analysis: Sequence[ClassifiedCustomer],
) -> pd.DataFrame:
    """Convert classified customers to a DataFrame sorted by customer name."""
    if not rfm_analysis:
        return pd.DataFrame(columns=RFM_ANALYSIS_COLUMNS)

    rows = []
    for customer in rfm_analysis:
        row = _score_row(customer.score)
        row["CUSTOMER_SEGMENT"] = customer.segment.value
        rows.append(row)

    df = pd.DataFrame(rows, columns=RFM_ANALYSIS_COLUMNS)
    return df.sort_values("CUSTOMER_NAME", kind="mergesort").reset_index(drop=True)


def segment_summary_to_dataframe(summary: Sequence[SegmentSummary]) -> pd.DataFrame:
    """Convert segment summaries to a DataFrame, keeping their order."""
    if not summary:
        return pd.DataFrame(columns=SEGMENT_SUMMARY_COLUMNS)

    rows = [
        {
            "CUSTOMER_SEGMENT": item.segment.value,
            "NUMBER_OF_CUSTOMER": item.customer_count,
            "AVERAGE_MONETARY_VALUE": decimal_to_float(item.average_monetary),
        }
        for item in summary
    ]
    return pd.DataFrame(rows, columns=SEGMENT_SUMMARY_COLUMNS)


def calculate_rfm_segmentation_df(
    orders_df: pd.DataFrame,
    order_id_col: str = "ORDER_ID",
    customer_name_col: str = "CUSTOMER_NAME",
    order_date_col: str = "ORDER_DATE",
    ship_date_col: str = "SHIP_DATE",
    sales_col: str = "SALES",
    date_encoding: DateEncoding = "iso",
) -> RFMSegmentation:
    """Run the full segmentation on a sales DataFrame.

    Convenience function that combines conversion and calculation.

    Example:
        >>> sales_df = pd.read_csv('superstore_sales.csv')
        >>> result = calculate_rfm_segmentation_df(sales_df, date_encoding='serial')
        >>> rfm_analysis_to_dataframe(result.rfm_analysis).head()
    """
    # Convert DataFrame -> List[OrderRecord]
    records = dataframe_to_order_records(
        orders_df,
        order_id_col=order_id_col,
        customer_name_col=customer_name_col,
        order_date_col=order_date_col,
        ship_date_col=ship_date_col,
        sales_col=sales_col,
        date_encoding=date_encoding,
    )
    return run_rfm_segmentation(records)
