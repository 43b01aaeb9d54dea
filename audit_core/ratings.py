from __future__ import annotations

from enum import Enum
from typing import Dict, List

from audit_core.records import AuditRecord


class Rating(str, Enum):
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"


# Worst to best. Majority-vote ties resolve toward the later entry.
RATING_ORDER: List[Rating] = [Rating.POOR, Rating.FAIR, Rating.GOOD, Rating.EXCELLENT]

RATING_BANDS: Dict[Rating, str] = {
    Rating.EXCELLENT: "90-100%",
    Rating.GOOD: "75-89%",
    Rating.FAIR: "50-74%",
    Rating.POOR: "0-49%",
}

CRITICAL_THRESHOLD = 50.0


def classify(percentage: float) -> Rating:
    """Map a percentage score to its performance tier.

    NaN and negative inputs fall through every comparison and land on Poor.
    """
    if percentage >= 90:
        return Rating.EXCELLENT
    if percentage >= 75:
        return Rating.GOOD
    if percentage >= 50:
        return Rating.FAIR
    return Rating.POOR


def record_percentage(record: AuditRecord) -> float:
    if record.max_points <= 0:
        return 0.0
    return record.points / record.max_points * 100


def record_rating(record: AuditRecord) -> Rating:
    return classify(record_percentage(record))


def is_critical(record: AuditRecord) -> bool:
    """A below-50% record that carries a non-blank comment."""
    return record_percentage(record) < CRITICAL_THRESHOLD and bool(record.comment.strip())
