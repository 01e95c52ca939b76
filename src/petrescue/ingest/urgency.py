"""Urgency classification from shelter-time and deadline fields."""

from enum import Enum


class UrgencyTier(str, Enum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def rank(self) -> int:
        return TIER_RANK[self.value]


TIER_RANK = {"critical": 1, "moderate": 2, "low": 3}

CRITICAL_DEADLINE_DAYS = 3
MODERATE_DEADLINE_DAYS = 7
LONG_STAY_DAYS = 30


def classify(days_until_deadline: int | None, days_in_shelter: int | None) -> UrgencyTier:
    """Map risk fields to a tier.

    A deadline within three days always wins over a long shelter stay; both
    fields missing is ``low``.
    """
    if days_until_deadline is not None and days_until_deadline <= CRITICAL_DEADLINE_DAYS:
        return UrgencyTier.CRITICAL
    if days_until_deadline is not None and days_until_deadline <= MODERATE_DEADLINE_DAYS:
        return UrgencyTier.MODERATE
    if days_in_shelter is not None and days_in_shelter > LONG_STAY_DAYS:
        return UrgencyTier.MODERATE
    return UrgencyTier.LOW
