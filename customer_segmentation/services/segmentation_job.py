"""Segmentation as a batch job keyed by dataset version.

A dataset version names an immutable snapshot of order lines. Recomputing
the segmentation for a version is idempotent, so finished results are cached
and served again; a second request for a version whose run is still in
flight is rejected instead of starting a parallel recomputation.
"""

import threading
import time
from collections import OrderedDict
from datetime import date
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, Field

from customer_segmentation.foundation.orders import OrderRecord
from customer_segmentation.pipeline import RFMSegmentation, run_rfm_segmentation

logger = structlog.get_logger(__name__)


class JobAlreadyRunningError(RuntimeError):
    """Raised when a dataset version is already being segmented."""

    def __init__(self, dataset_version: str):
        self.dataset_version = dataset_version
        super().__init__(
            f"Segmentation for dataset version '{dataset_version}' is already running"
        )


class SegmentationRequest(BaseModel):
    """Request to segment one dataset version."""

    dataset_version: str = Field(
        min_length=1, description="Label of the immutable order snapshot to segment"
    )
    force_recompute: bool = Field(
        default=False,
        description="Recompute even if a cached result exists for this version",
    )


class SegmentCount(BaseModel):
    """Customers and average monetary value of one segment."""

    segment: str
    customer_count: int
    average_monetary: float


class SegmentationResponse(BaseModel):
    """Summary of a finished segmentation job."""

    dataset_version: str
    reference_date: Optional[date]
    unique_order_count: int
    customer_count: int
    segments: list[SegmentCount]
    cached: bool
    duration_ms: float


class SegmentationJobRunner:
    """Run segmentations with at most one run in flight per dataset version.

    Finished results are kept for the ``max_cached_versions`` most recently
    computed versions (oldest evicted first).
    """

    def __init__(self, max_cached_versions: int = 10):
        if max_cached_versions < 1:
            raise ValueError(
                f"max_cached_versions must be positive: {max_cached_versions}"
            )
        self.max_cached_versions = max_cached_versions
        self._results: OrderedDict[str, RFMSegmentation] = OrderedDict()
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def run(
        self, request: SegmentationRequest, records: Iterable[OrderRecord]
    ) -> SegmentationResponse:
        """Segment ``records`` as ``request.dataset_version``.

        Raises
        ------
        JobAlreadyRunningError
            If the same dataset version is currently being computed.
        """
        version = request.dataset_version
        start = time.perf_counter()

        with self._lock:
            if version in self._in_flight:
                logger.warning("segmentation_rejected", dataset_version=version)
                raise JobAlreadyRunningError(version)
            cached = None if request.force_recompute else self._results.get(version)
            if cached is None:
                self._in_flight.add(version)

        if cached is not None:
            logger.info("segmentation_cache_hit", dataset_version=version)
            return self._response(version, cached, cached=True, start=start)

        logger.info("segmentation_started", dataset_version=version)
        try:
            result = run_rfm_segmentation(records)
        except Exception:
            logger.exception("segmentation_failed", dataset_version=version)
            raise
        finally:
            with self._lock:
                self._in_flight.discard(version)

        with self._lock:
            self._results[version] = result
            self._results.move_to_end(version)
            while len(self._results) > self.max_cached_versions:
                evicted, _ = self._results.popitem(last=False)
                logger.debug("segmentation_evicted", dataset_version=evicted)

        response = self._response(version, result, cached=False, start=start)
        logger.info(
            "segmentation_completed",
            dataset_version=version,
            customers=response.customer_count,
            unique_orders=response.unique_order_count,
            duration_ms=response.duration_ms,
        )
        return response

    def result(self, dataset_version: str) -> Optional[RFMSegmentation]:
        """Return the cached result for a dataset version, if any."""
        with self._lock:
            return self._results.get(dataset_version)

    def is_running(self, dataset_version: str) -> bool:
        with self._lock:
            return dataset_version in self._in_flight

    def clear(self) -> None:
        with self._lock:
            self._results.clear()

    @staticmethod
    def _response(
        version: str, result: RFMSegmentation, *, cached: bool, start: float
    ) -> SegmentationResponse:
        return SegmentationResponse(
            dataset_version=version,
            reference_date=result.reference_date,
            unique_order_count=len(result.unique_orders),
            customer_count=len(result.rfm_analysis),
            segments=[
                SegmentCount(
                    segment=item.segment.value,
                    customer_count=item.customer_count,
                    average_monetary=float(item.average_monetary),
                )
                for item in result.summary()
            ],
            cached=cached,
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
        )
