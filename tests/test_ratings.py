"""Unit tests for the performance rating classifier."""

from __future__ import annotations

import math

import pytest

from audit_core.ratings import RATING_ORDER, Rating, classify, is_critical, record_percentage, record_rating
from tests.factories import make_record


@pytest.mark.parametrize(
    ("percentage", "expected"),
    [
        (100, Rating.EXCELLENT),
        (90, Rating.EXCELLENT),
        (89.999, Rating.GOOD),
        (75, Rating.GOOD),
        (74.9, Rating.FAIR),
        (50, Rating.FAIR),
        (49.999, Rating.POOR),
        (0, Rating.POOR),
        (-5, Rating.POOR),
        (math.nan, Rating.POOR),
    ],
)
def test_classify_thresholds(percentage: float, expected: Rating) -> None:
    """Lower bounds are inclusive and anything unmatched is Poor."""
    assert classify(percentage) is expected


def test_rating_order_runs_worst_to_best() -> None:
    assert [r.value for r in RATING_ORDER] == ["Poor", "Fair", "Good", "Excellent"]


def test_record_percentage_guards_zero_max() -> None:
    record = make_record(points=3, max_points=0)

    assert record_percentage(record) == 0.0
    assert record_rating(record) is Rating.POOR


def test_is_critical_requires_low_score_and_comment() -> None:
    assert is_critical(make_record(points=1, max_points=4, comment="Dusty shelves"))
    assert not is_critical(make_record(points=1, max_points=4, comment="   "))
    assert not is_critical(make_record(points=2, max_points=4, comment="Borderline"))
