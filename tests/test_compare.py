"""Unit tests for aggregation, comparison and snapshot selection."""

from __future__ import annotations

import pytest

from audit_core.compare import Aggregate, aggregate, compare, majority_rating, select_snapshots
from audit_core.filters import FilterState
from audit_core.ratings import Rating
from tests.factories import make_record


def _rated(points: float, n: int = 1):
    return [make_record(points=points, max_points=4) for _ in range(n)]


def test_aggregate_empty_has_no_division_by_zero() -> None:
    assert aggregate([]) == Aggregate(points=0, max_points=0, score=0)


def test_aggregate_sums_and_scores() -> None:
    agg = aggregate([make_record(points=3, max_points=4), make_record(points=1, max_points=4)])

    assert agg.points == 4
    assert agg.max_points == 8
    assert agg.score == pytest.approx(50.0)


def test_aggregate_zero_max_points_scores_zero() -> None:
    assert aggregate([make_record(points=2, max_points=0)]).score == 0


def test_compare_computes_difference_and_relative_change() -> None:
    result = compare(_rated(3), _rated(2))

    assert result.current_score == pytest.approx(75.0)
    assert result.previous_score == pytest.approx(50.0)
    assert result.difference == pytest.approx(25.0)
    assert result.percentage_change == pytest.approx(50.0)
    assert result.current_points == 3
    assert result.previous_max_points == 4


def test_compare_without_previous_has_zero_percentage_change() -> None:
    result = compare(_rated(4, n=3), [])

    assert result.percentage_change == 0
    assert result.difference == pytest.approx(100.0)


def test_majority_rating_picks_most_common_tier() -> None:
    records = _rated(1, n=3) + _rated(4)

    assert majority_rating(records) is Rating.POOR


def test_majority_rating_tie_prefers_better_tier() -> None:
    records = _rated(2, n=2) + _rated(3, n=2)

    assert majority_rating(records) is Rating.GOOD


def test_compare_rating_is_majority_not_aggregate_score() -> None:
    # Aggregate is 12/16 = 75% (Good) but three of four items are Excellent.
    records = _rated(4, n=3) + _rated(0)

    result = compare(records, [])

    assert result.current_score == pytest.approx(75.0)
    assert result.rating is Rating.EXCELLENT


def test_compare_empty_current_falls_back_to_score_rating() -> None:
    assert compare([], _rated(4)).rating is Rating.POOR


A1 = _rated(1)
A2 = _rated(2)
A3 = _rated(3)


@pytest.mark.parametrize(
    ("has1", "has2", "has3", "current", "previous", "label"),
    [
        (True, True, True, A3, A2, "Audit 3"),
        (True, True, False, A2, A1, "Audit 2"),
        (False, True, True, A3, A2, "Audit 3"),
        (False, True, False, A2, A1, "Audit 2"),
        (False, False, True, A3, A2, "Audit 3"),
        (True, False, True, A3, A2, "Audit 3"),
        (True, False, False, A1, [], "Audit 1"),
        (False, False, False, [], [], "Audit"),
    ],
)
def test_select_snapshots_decision_table(has1, has2, has3, current, previous, label) -> None:
    filters = FilterState(
        location="Downtown",
        audit1_date="2024-01-01" if has1 else "",
        audit2_date="2024-02-01" if has2 else "",
        audit3_date="2024-03-01" if has3 else "",
    )

    selection = select_snapshots(filters, A1, A2, A3)

    assert selection.current == current
    assert selection.previous == previous
    assert selection.label == label


def test_audit1_and_audit3_compares_against_empty_audit2() -> None:
    filters = FilterState(location="Downtown", audit1_date="2024-01-01", audit3_date="2024-03-01")

    selection = select_snapshots(filters, A1, [], A3)

    assert selection.current is A3
    assert selection.previous == []
    assert compare(selection.current, selection.previous).percentage_change == 0
