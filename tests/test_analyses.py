"""Tests for segment summaries and dataset profiles."""

from datetime import date
from decimal import Decimal

import pytest

from customer_segmentation.analyses import (
    DatasetProfile,
    SegmentSummary,
    customers_with_score,
    profile_orders,
    score_distribution,
    summarize_segments,
)
from customer_segmentation.foundation.orders import OrderRecord, deduplicate_orders
from customer_segmentation.foundation.rfm import ScoredAggregate
from customer_segmentation.foundation.segments import CustomerSegment, classify_customers


def _score(name, combination, monetary):
    r, f, m = (int(d) for d in combination)
    return ScoredAggregate(name, 0, 1, Decimal(monetary), r, f, m)


class TestSegmentSummary:
    """Test SegmentSummary dataclass validation."""

    def test_zero_customers_raises_error(self):
        with pytest.raises(ValueError, match="Customer count must be positive"):
            SegmentSummary(CustomerSegment.LOYAL, 0, Decimal("0"))


class TestSummarizeSegments:
    """Test summarize_segments function."""

    def test_empty_input(self):
        assert summarize_segments([]) == []

    def test_counts_and_averages(self):
        analysis = classify_customers(
            [
                _score("A", "444", "1"),
                _score("B", "443", "2"),
                _score("C", "111", "40"),
                _score("D", "442", "7"),
            ]
        )
        summary = summarize_segments(analysis)

        assert [(s.segment, s.customer_count, s.average_monetary) for s in summary] == [
            (CustomerSegment.CHURNED_CUSTOMER, 1, Decimal("40")),
            (CustomerSegment.LOYAL, 2, Decimal("2")),  # 1.5 rounds up
            (CustomerSegment.CANNOT_BE_DEFINED, 1, Decimal("7")),
        ]

    def test_rule_table_order_with_fallback_last(self):
        analysis = classify_customers(
            [
                _score("A", "442", "1"),
                _score("B", "433", "1"),
                _score("C", "323", "1"),
                _score("D", "222", "1"),
                _score("E", "311", "1"),
                _score("F", "133", "1"),
                _score("G", "111", "1"),
            ]
        )
        assert [s.segment for s in summarize_segments(analysis)] == [
            CustomerSegment.CHURNED_CUSTOMER,
            CustomerSegment.SLIPPING_AWAY_CANNOT_LOSE,
            CustomerSegment.NEW_CUSTOMER,
            CustomerSegment.POTENTIAL_CHURNERS,
            CustomerSegment.ACTIVE,
            CustomerSegment.LOYAL,
            CustomerSegment.CANNOT_BE_DEFINED,
        ]


class TestProfileOrders:
    """Test profile_orders function."""

    def test_profile(self):
        records = [
            OrderRecord("1", "A", date(2012, 5, 1), date(2012, 5, 2), Decimal("1")),
            OrderRecord("1", "A", date(2012, 5, 1), date(2012, 5, 2), Decimal("2")),
            OrderRecord("2", "B", date(2013, 2, 1), date(2013, 2, 4), Decimal("3")),
        ]
        profile = profile_orders(records, deduplicate_orders(records))

        assert profile == DatasetProfile(
            total_records=3,
            unique_orders=2,
            duplicate_lines=1,
            customer_count=2,
            first_order_date=date(2012, 5, 1),
            last_order_date=date(2013, 2, 1),
        )

    def test_empty(self):
        profile = profile_orders([], [])
        assert profile.total_records == 0
        assert profile.unique_orders == 0
        assert profile.first_order_date is None
        assert profile.last_order_date is None

    def test_unique_exceeding_total_raises_error(self):
        with pytest.raises(ValueError, match="cannot exceed total records"):
            DatasetProfile(1, 2, 0, 1, None, None)


class TestScoreDistribution:
    """Test score_distribution and customers_with_score."""

    def test_distribution_includes_empty_scores(self):
        scores = [_score("A", "414", "1"), _score("B", "424", "1")]

        assert score_distribution(scores, "r") == {1: 0, 2: 0, 3: 0, 4: 2}
        assert score_distribution(scores, "f") == {1: 1, 2: 1, 3: 0, 4: 0}
        assert score_distribution(scores, "m") == {1: 0, 2: 0, 3: 0, 4: 2}

    def test_customers_with_score(self):
        scores = [_score("A", "414", "1"), _score("B", "424", "1")]
        assert [s.customer_name for s in customers_with_score(scores, "f", 2)] == ["B"]
        assert customers_with_score(scores, "m", 1) == []

    def test_unknown_dimension_raises_error(self):
        with pytest.raises(ValueError, match="Unknown score dimension"):
            score_distribution([_score("A", "111", "1")], "x")
