"""Service layer: segmentation jobs keyed by dataset version."""

from .observability import configure_logging
from .segmentation_job import (
    JobAlreadyRunningError,
    SegmentationJobRunner,
    SegmentationRequest,
    SegmentationResponse,
    SegmentCount,
)

__all__ = [
    "configure_logging",
    "JobAlreadyRunningError",
    "SegmentationJobRunner",
    "SegmentationRequest",
    "SegmentationResponse",
    "SegmentCount",
]
