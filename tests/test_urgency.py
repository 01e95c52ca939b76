"""Unit tests for urgency classification."""

import pytest

from petrescue.ingest.urgency import UrgencyTier, classify


class TestClassify:
    @pytest.mark.parametrize("deadline", [0, 1, 2, 3])
    def test_deadline_within_three_days_is_critical(self, deadline):
        assert classify(deadline, 0) is UrgencyTier.CRITICAL

    @pytest.mark.parametrize("deadline", [4, 5, 6, 7])
    def test_deadline_within_a_week_is_moderate(self, deadline):
        assert classify(deadline, 0) is UrgencyTier.MODERATE

    @pytest.mark.parametrize("deadline", [8, 30, 365])
    def test_distant_deadline_is_low(self, deadline):
        assert classify(deadline, 0) is UrgencyTier.LOW

    def test_overdue_is_critical(self):
        assert classify(-2, None) is UrgencyTier.CRITICAL

    @pytest.mark.parametrize("shelter", [31, 45, 400])
    def test_long_stay_without_deadline_is_moderate(self, shelter):
        assert classify(None, shelter) is UrgencyTier.MODERATE

    @pytest.mark.parametrize("shelter", [0, 10, 30])
    def test_short_stay_without_deadline_is_low(self, shelter):
        assert classify(None, shelter) is UrgencyTier.LOW

    def test_both_missing_is_low(self):
        assert classify(None, None) is UrgencyTier.LOW

    def test_close_deadline_overrides_long_stay(self):
        assert classify(3, 90) is UrgencyTier.CRITICAL

    def test_distant_deadline_with_long_stay_is_moderate(self):
        assert classify(20, 45) is UrgencyTier.MODERATE


def test_tier_ranks():
    assert [tier.rank for tier in UrgencyTier] == [1, 2, 3]
