"""Reporting on top of a completed segmentation.

1. Segment summary - customers and average monetary value per segment
2. Dataset profile - line/order counts, date window and score distributions
"""

from .dataset_profile import (
    DatasetProfile,
    customers_with_score,
    profile_orders,
    score_distribution,
)
from .segment_summary import SegmentSummary, summarize_segments

__all__ = [
    # Segment summary
    "SegmentSummary",
    "summarize_segments",
    # Dataset profile
    "DatasetProfile",
    "customers_with_score",
    "profile_orders",
    "score_distribution",
]
