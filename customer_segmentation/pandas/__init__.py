"""Pandas DataFrame adapters for customer segmentation components."""

from .rfm import (
    dataframe_to_order_records,
    unique_orders_to_dataframe,
    rfm_scores_to_dataframe,
    rfm_analysis_to_dataframe,
    segment_summary_to_dataframe,
    calculate_rfm_segmentation_df,
)

__all__ = [
    # Input adapters
    "dataframe_to_order_records",
    # Result adapters
    "unique_orders_to_dataframe",
    "rfm_scores_to_dataframe",
    "rfm_analysis_to_dataframe",
    "segment_summary_to_dataframe",
    # Convenience
    "calculate_rfm_segmentation_df",
]
