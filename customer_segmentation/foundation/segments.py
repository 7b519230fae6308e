"""Rule-based mapping from RFM score combinations to customer segments."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Mapping, Sequence, Union

from customer_segmentation.foundation.rfm import ScoredAggregate


class CustomerSegment(str, Enum):
    """Business segments a customer can be assigned to."""

    CHURNED_CUSTOMER = "CHURNED CUSTOMER"
    SLIPPING_AWAY_CANNOT_LOSE = "SLIPPING AWAY, CANNOT LOSE"
    NEW_CUSTOMER = "NEW CUSTOMER"
    POTENTIAL_CHURNERS = "POTENTIAL CHURNERS"
    ACTIVE = "ACTIVE"
    LOYAL = "LOYAL"
    CANNOT_BE_DEFINED = "CANNOT BE DEFINED"


# Ordered rule table: the first rule listing a combination wins. Kept exactly
# as the business supplied it, including the repeated 211. Codes absent from
# every rule fall back to CANNOT_BE_DEFINED.
SEGMENT_RULES: tuple[tuple[CustomerSegment, tuple[str, ...]], ...] = (
    (
        CustomerSegment.CHURNED_CUSTOMER,
        ("111", "112", "121", "132", "211", "211", "212", "114", "141"),
    ),
    (
        CustomerSegment.SLIPPING_AWAY_CANNOT_LOSE,
        ("133", "134", "143", "224", "334", "343", "344", "144"),
    ),
    (CustomerSegment.NEW_CUSTOMER, ("311", "411", "331")),
    (
        CustomerSegment.POTENTIAL_CHURNERS,
        ("222", "231", "221", "223", "233", "322"),
    ),
    (
        CustomerSegment.ACTIVE,
        ("323", "333", "321", "341", "422", "332", "432"),
    ),
    (CustomerSegment.LOYAL, ("433", "434", "443", "444")),
)

FALLBACK_SEGMENT = CustomerSegment.CANNOT_BE_DEFINED


def _build_segment_lookup(
    rules: Sequence[tuple[CustomerSegment, Sequence[str]]],
) -> dict[str, CustomerSegment]:
    lookup: dict[str, CustomerSegment] = {}
    for segment, combinations in rules:
        for combination in combinations:
            # First assignment wins
            lookup.setdefault(combination, segment)
    return lookup


SEGMENT_LOOKUP: Mapping[str, CustomerSegment] = _build_segment_lookup(SEGMENT_RULES)


def classify_combination(combination: Union[str, int]) -> CustomerSegment:
    """Return the segment for a three digit RFM score combination.

    >>> classify_combination("444") is CustomerSegment.LOYAL
    True
    >>> classify_combination(211).value
    'CHURNED CUSTOMER'
    >>> classify_combination("442").value
    'CANNOT BE DEFINED'
    """
    return SEGMENT_LOOKUP.get(str(combination), FALLBACK_SEGMENT)


@dataclass(frozen=True)
class ClassifiedCustomer:
    """A scored customer with its assigned segment."""

    score: ScoredAggregate
    segment: CustomerSegment

    @property
    def customer_name(self) -> str:
        return self.score.customer_name

    @property
    def monetary(self) -> Decimal:
        return self.score.monetary

    @property
    def rfm_score_combination(self) -> str:
        return self.score.rfm_score_combination


def classify_customers(
    rfm_scores: Sequence[ScoredAggregate],
) -> list[ClassifiedCustomer]:
    """Attach a segment to every scored customer, preserving input order."""
    return [
        ClassifiedCustomer(
            score=score, segment=classify_combination(score.rfm_score_combination)
        )
        for score in rfm_scores
    ]
