from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from audit_core.filters import FilterState
from audit_core.ratings import RATING_ORDER, Rating, classify, record_rating
from audit_core.records import AuditRecord


@dataclass(frozen=True)
class Aggregate:
    points: float = 0.0
    max_points: float = 0.0
    score: float = 0.0


@dataclass(frozen=True)
class ComparisonData:
    current_score: float
    previous_score: float
    current_points: float
    previous_points: float
    current_max_points: float
    previous_max_points: float
    difference: float
    percentage_change: float
    rating: Rating


@dataclass(frozen=True)
class SnapshotSelection:
    current: List[AuditRecord] = field(default_factory=list)
    previous: List[AuditRecord] = field(default_factory=list)
    label: str = "Audit"
    current_slot: Optional[int] = None
    previous_slot: Optional[int] = None


def aggregate(records: Sequence[AuditRecord]) -> Aggregate:
    if not records:
        return Aggregate()
    points = float(sum(r.points for r in records))
    max_points = float(sum(r.max_points for r in records))
    score = points / max_points * 100 if max_points else 0.0
    return Aggregate(points=points, max_points=max_points, score=score)


def majority_rating(records: Sequence[AuditRecord]) -> Optional[Rating]:
    """Most frequent per-record tier; ties go to the better tier."""
    if not records:
        return None
    counts = Counter(record_rating(r) for r in records)
    best = RATING_ORDER[0]
    best_count = counts.get(best, 0)
    for rating in RATING_ORDER:
        count = counts.get(rating, 0)
        if count >= best_count:
            best, best_count = rating, count
    return best


def compare(current_records: Sequence[AuditRecord], previous_records: Sequence[AuditRecord]) -> ComparisonData:
    current = aggregate(current_records)
    previous = aggregate(previous_records)

    difference = current.score - previous.score
    percentage_change = 0.0 if previous.score == 0 else difference / previous.score * 100

    return ComparisonData(
        current_score=current.score,
        previous_score=previous.score,
        current_points=current.points,
        previous_points=previous.points,
        current_max_points=current.max_points,
        previous_max_points=previous.max_points,
        difference=difference,
        percentage_change=percentage_change,
        rating=majority_rating(current_records) or classify(current.score),
    )


def select_snapshots(
    filters: FilterState,
    audit1: List[AuditRecord],
    audit2: List[AuditRecord],
    audit3: List[AuditRecord],
) -> SnapshotSelection:
    """Pick which snapshot pair feeds the comparison from the selected dates.

    Audit 1 and Audit 3 without Audit 2 falls through to the Audit 3 row and
    compares against the empty Audit 2 slot.
    """
    has1 = bool(filters.audit1_date)
    has2 = bool(filters.audit2_date)
    has3 = bool(filters.audit3_date)

    if has1 and has2 and has3:
        return SnapshotSelection(audit3, audit2, "Audit 3", 3, 2)
    if has1 and has2:
        return SnapshotSelection(audit2, audit1, "Audit 2", 2, 1)
    if has2 and has3:
        return SnapshotSelection(audit3, audit2, "Audit 3", 3, 2)
    if has2:
        return SnapshotSelection(audit2, audit1, "Audit 2", 2, 1)
    if has3:
        return SnapshotSelection(audit3, audit2, "Audit 3", 3, 2)
    if has1:
        return SnapshotSelection(audit1, [], "Audit 1", 1, None)
    return SnapshotSelection()
