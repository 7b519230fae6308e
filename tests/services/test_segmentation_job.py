"""Tests for the dataset-versioned segmentation job runner."""

import threading
from datetime import date
from decimal import Decimal

import pytest
import structlog
from pydantic import ValidationError

from customer_segmentation.foundation.orders import OrderRecord
from customer_segmentation.services import (
    JobAlreadyRunningError,
    SegmentationJobRunner,
    SegmentationRequest,
    configure_logging,
)


@pytest.fixture
def records():
    return [
        OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 3), Decimal("100")),
        OrderRecord("1", "A", date(2013, 1, 1), date(2013, 1, 3), Decimal("999")),
        OrderRecord("2", "A", date(2013, 6, 1), date(2013, 6, 4), Decimal("50")),
        OrderRecord("3", "B", date(2013, 12, 31), date(2014, 1, 2), Decimal("10")),
    ]


class TestSegmentationRequest:
    def test_blank_version_rejected(self):
        with pytest.raises(ValidationError):
            SegmentationRequest(dataset_version="")


class TestSegmentationJobRunner:
    """Test SegmentationJobRunner."""

    def test_run_returns_summary(self, records):
        runner = SegmentationJobRunner()
        response = runner.run(SegmentationRequest(dataset_version="v1"), records)

        assert response.dataset_version == "v1"
        assert response.cached is False
        assert response.reference_date == date(2013, 12, 31)
        assert response.unique_order_count == 3
        assert response.customer_count == 2
        assert [(s.segment, s.customer_count) for s in response.segments] == [
            ("CHURNED CUSTOMER", 1),
            ("CANNOT BE DEFINED", 1),
        ]
        assert runner.result("v1") is not None

    def test_second_run_served_from_cache(self, records):
        runner = SegmentationJobRunner()
        request = SegmentationRequest(dataset_version="v1")
        first = runner.run(request, records)
        second = runner.run(request, [])

        assert second.cached is True
        assert second.customer_count == first.customer_count
        assert second.segments == first.segments

    def test_force_recompute(self, records):
        runner = SegmentationJobRunner()
        runner.run(SegmentationRequest(dataset_version="v1"), records)
        response = runner.run(
            SegmentationRequest(dataset_version="v1", force_recompute=True), records
        )
        assert response.cached is False

    def test_empty_dataset(self):
        runner = SegmentationJobRunner()
        response = runner.run(SegmentationRequest(dataset_version="empty"), [])

        assert response.reference_date is None
        assert response.customer_count == 0
        assert response.segments == []
        assert runner.result("empty").is_empty

    def test_concurrent_run_of_same_version_rejected(self, records):
        runner = SegmentationJobRunner()
        request = SegmentationRequest(dataset_version="v1")
        started = threading.Event()
        release = threading.Event()
        responses = []

        def slow_records():
            started.set()
            release.wait(timeout=5)
            yield from records

        worker = threading.Thread(
            target=lambda: responses.append(runner.run(request, slow_records()))
        )
        worker.start()
        try:
            assert started.wait(timeout=5)
            assert runner.is_running("v1")
            with pytest.raises(JobAlreadyRunningError, match="'v1' is already running"):
                runner.run(request, records)
            # Other versions are not blocked
            other = runner.run(SegmentationRequest(dataset_version="v2"), records)
            assert other.cached is False
        finally:
            release.set()
            worker.join(timeout=5)

        assert not runner.is_running("v1")
        assert responses[0].customer_count == 2

    def test_failed_run_releases_version(self):
        runner = SegmentationJobRunner()
        request = SegmentationRequest(dataset_version="bad")

        def broken_records():
            raise RuntimeError("source unavailable")
            yield  # pragma: no cover

        with pytest.raises(RuntimeError, match="source unavailable"):
            runner.run(request, broken_records())
        assert not runner.is_running("bad")
        assert runner.result("bad") is None

    def test_oldest_version_evicted(self, records):
        runner = SegmentationJobRunner(max_cached_versions=2)
        for version in ("v1", "v2", "v3"):
            runner.run(SegmentationRequest(dataset_version=version), records)

        assert runner.result("v1") is None
        assert runner.result("v2") is not None
        assert runner.result("v3") is not None

    def test_clear(self, records):
        runner = SegmentationJobRunner()
        runner.run(SegmentationRequest(dataset_version="v1"), records)
        runner.clear()
        assert runner.result("v1") is None

    def test_invalid_cache_size(self):
        with pytest.raises(ValueError, match="max_cached_versions must be positive"):
            SegmentationJobRunner(max_cached_versions=0)


def test_configure_logging_runs():
    try:
        configure_logging(json_output=True)
        configure_logging(json_output=False)
    finally:
        structlog.reset_defaults()
