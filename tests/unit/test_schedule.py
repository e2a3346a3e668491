"""
Tests for schedule.py - Vesting Schedule Model

Tests:
- evaluate() on the reference stream (cliff gating, linear release, saturation)
- Clock skew: observation before start
- LINEAR_FROM_CLIFF policy
- Fractional and datetime instants
- stream_status() phases and progress() dashboard values
- vesting_curve() agreement with evaluate()
- Exact amounts for very large totals, in any thread
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import threading

import numpy as np
import pytest

from vesting import (
    StreamLedgerEntry, VestingPolicy, StreamStatus,
    evaluate, elapsed_seconds, stream_status, progress, vesting_curve,
)


def make_entry(total=1000, start=0, duration=1000, cliff=100, claimed=0) -> StreamLedgerEntry:
    return StreamLedgerEntry(
        stream_id="s",
        recipient="0x" + "11" * 32,
        total_amount=total,
        claimed_amount=claimed,
        start_time=start,
        duration_seconds=duration,
        cliff_seconds=cliff,
    )


# ============================================================================
# evaluate Tests
# ============================================================================

class TestEvaluate:
    """evaluate() under the default LINEAR_FROM_START policy."""

    def test_before_cliff_nothing_vested(self, scenario_entry):
        result = evaluate(scenario_entry, 50)
        assert result.vested_fraction == 0
        assert result.vested_amount == 0
        assert result.claimable_amount == 0

    def test_just_before_cliff(self, scenario_entry):
        assert evaluate(scenario_entry, 99).vested_amount == 0

    def test_at_cliff_vests_from_start(self, scenario_entry):
        """At the cliff the clock has been running since start: 100/1000 vested."""
        result = evaluate(scenario_entry, 100)
        assert result.vested_fraction == Decimal("0.1")
        assert result.vested_amount == 100

    def test_midpoint(self, scenario_entry):
        result = evaluate(scenario_entry, 500)
        assert result.vested_fraction == Decimal("0.5")
        assert result.vested_amount == 500
        assert result.claimable_amount == 500

    def test_at_end_fully_vested(self, scenario_entry):
        result = evaluate(scenario_entry, 1000)
        assert result.vested_fraction == 1
        assert result.vested_amount == 1000

    def test_long_after_end(self, scenario_entry):
        assert evaluate(scenario_entry, 10 ** 9).vested_amount == 1000

    def test_claimable_subtracts_claimed(self):
        entry = make_entry(claimed=300)
        assert evaluate(entry, 500).claimable_amount == 200
        assert evaluate(entry, 1000).claimable_amount == 700

    def test_claimable_never_negative(self):
        """Claimed above vested (evaluation at an earlier instant) gives 0."""
        entry = make_entry(claimed=600)
        assert evaluate(entry, 500).claimable_amount == 0

    def test_floor_rounding(self):
        entry = make_entry(total=10, duration=3, cliff=0)
        assert evaluate(entry, 1).vested_amount == 3      # 10/3 = 3.33
        assert evaluate(entry, 2).vested_amount == 6      # 20/3 = 6.67

    def test_observation_before_start(self):
        entry = make_entry(start=1000, cliff=0)
        result = evaluate(entry, 0)
        assert result.vested_amount == 0
        assert elapsed_seconds(entry, 0) == 0

    def test_zero_cliff_starts_at_zero(self):
        entry = make_entry(cliff=0)
        assert evaluate(entry, 0).vested_amount == 0
        assert evaluate(entry, 1).vested_amount == 1

    def test_cliff_equal_duration_is_all_or_nothing(self):
        entry = make_entry(cliff=1000)
        assert evaluate(entry, 999).vested_amount == 0
        assert evaluate(entry, 1000).vested_amount == 1000

    def test_zero_total(self):
        entry = make_entry(total=0)
        assert evaluate(entry, 500).vested_amount == 0
        assert evaluate(entry, 2000).claimable_amount == 0

    def test_large_amounts_are_exact(self):
        total = 123_456_789 * 10 ** 18 + 7
        entry = make_entry(total=total, duration=31536000, cliff=0)
        assert evaluate(entry, 12_345_678).vested_amount == total * 12_345_678 // 31536000

    def test_fractional_instant(self):
        entry = make_entry(total=1000, cliff=0)
        assert evaluate(entry, Decimal("500.9")).vested_amount == 500
        assert evaluate(entry, 0.5).vested_fraction == Decimal("0.0005")

    def test_datetime_instants(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        entry = make_entry(start=start, duration=86400, cliff=0)
        assert evaluate(entry, start + timedelta(hours=12)).vested_amount == 500

    def test_naive_datetime_is_utc(self):
        aware = datetime(2025, 1, 1, tzinfo=timezone.utc)
        naive = datetime(2025, 1, 1)
        entry = make_entry(start=aware, duration=86400, cliff=0)
        assert evaluate(entry, naive + timedelta(hours=6)).vested_amount == 250

    def test_does_not_mutate_entry(self, scenario_entry):
        before = replace(scenario_entry)
        evaluate(scenario_entry, 700)
        assert scenario_entry == before


class TestLinearFromCliff:
    """evaluate() under LINEAR_FROM_CLIFF."""

    policy = VestingPolicy.LINEAR_FROM_CLIFF

    def test_nothing_at_cliff(self, scenario_entry):
        assert evaluate(scenario_entry, 100, self.policy).vested_amount == 0

    def test_linear_after_cliff(self, scenario_entry):
        # (550 - 100) / (1000 - 100) = 0.5
        result = evaluate(scenario_entry, 550, self.policy)
        assert result.vested_fraction == Decimal("0.5")
        assert result.vested_amount == 500

    def test_full_at_end(self, scenario_entry):
        assert evaluate(scenario_entry, 1000, self.policy).vested_amount == 1000

    def test_never_exceeds_default_policy(self, scenario_entry):
        for t in range(0, 1100, 37):
            assert (evaluate(scenario_entry, t, self.policy).vested_amount
                    <= evaluate(scenario_entry, t).vested_amount)

    def test_cliff_equal_duration(self):
        entry = make_entry(cliff=1000)
        assert evaluate(entry, 999, self.policy).vested_amount == 0
        assert evaluate(entry, 1000, self.policy).vested_amount == 1000


# ============================================================================
# stream_status / progress Tests
# ============================================================================

class TestStreamStatus:
    """Phases of a stream."""

    def test_not_started(self):
        assert stream_status(make_entry(start=100), 50) is StreamStatus.NOT_STARTED

    def test_cliff(self, scenario_entry):
        assert stream_status(scenario_entry, 0) is StreamStatus.CLIFF
        assert stream_status(scenario_entry, 99) is StreamStatus.CLIFF

    def test_vesting(self, scenario_entry):
        assert stream_status(scenario_entry, 100) is StreamStatus.VESTING

    def test_fully_vested(self, scenario_entry):
        assert stream_status(scenario_entry, 1000) is StreamStatus.FULLY_VESTED

    def test_completed(self):
        assert stream_status(make_entry(claimed=1000), 1000) is StreamStatus.COMPLETED

    def test_zero_cliff_starts_vesting_immediately(self):
        assert stream_status(make_entry(cliff=0), 0) is StreamStatus.VESTING


class TestProgress:
    """Dashboard values."""

    def test_mid_stream(self):
        p = progress(make_entry(start=1000), 1500)
        assert p.status is StreamStatus.VESTING
        assert p.percent_vested == 50
        assert p.seconds_until_cliff == 0
        assert p.seconds_until_fully_vested == 500
        assert p.cliff_time == 1100
        assert p.end_time == 2000
        assert p.evaluation.vested_amount == 500

    def test_before_cliff(self, scenario_entry):
        p = progress(scenario_entry, 40)
        assert p.status is StreamStatus.CLIFF
        assert p.percent_vested == 0
        assert p.seconds_until_cliff == 60

    def test_after_end(self, scenario_entry):
        p = progress(scenario_entry, 5000)
        assert p.percent_vested == 100
        assert p.seconds_until_fully_vested == 0


# ============================================================================
# Exact arithmetic
# ============================================================================

class TestExactAmounts:
    """vested_amount is floor(total * elapsed / duration) with no rounding."""

    YEAR = 31536000

    def test_27_digit_total_in_worker_thread(self):
        """A worker thread has the default 28-digit decimal context."""
        total = 123456789012345678901234567
        entry = make_entry(total=total, duration=self.YEAR, cliff=0)
        instants = range(10_000_000, 10_000_200)
        results = {}

        def worker():
            results["worker"] = [evaluate(entry, t).vested_amount for t in instants]

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        expected = [total * t // self.YEAR for t in instants]
        assert results["worker"] == expected
        assert [evaluate(entry, t).vested_amount for t in instants] == expected
        assert results["worker"][46] == 39148071065948482905681605

    def test_sixty_digit_total(self):
        total = 10 ** 60 - 1
        entry = make_entry(total=total, duration=1000, cliff=0)
        assert evaluate(entry, 1).vested_amount == 10 ** 57 - 1
        assert evaluate(entry, 999).vested_amount == total * 999 // 1000
        assert evaluate(entry, 1000).vested_amount == total

    def test_sixty_digit_total_from_cliff(self):
        total = 10 ** 60 - 1
        entry = make_entry(total=total, duration=1100, cliff=100)
        result = evaluate(entry, 101, VestingPolicy.LINEAR_FROM_CLIFF)
        assert result.vested_amount == 10 ** 57 - 1

    def test_fractional_instant_with_large_total(self):
        total = 10 ** 60 + 1
        entry = make_entry(total=total, duration=3, cliff=0)
        assert evaluate(entry, Decimal("1.5")).vested_amount == total // 2

    def test_claimable_in_worker_thread(self):
        total = 123456789012345678901234567
        entry = make_entry(total=total, duration=self.YEAR, cliff=0, claimed=total // 4)
        results = {}

        def worker():
            results["worker"] = evaluate(entry, 10_000_046)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert results["worker"] == evaluate(entry, 10_000_046)
        assert results["worker"].claimable_amount == total * 10_000_046 // self.YEAR - total // 4


# ============================================================================
# vesting_curve Tests
# ============================================================================

class TestVestingCurve:
    """Vectorized vested amounts."""

    def test_matches_evaluate(self, scenario_entry):
        times = np.arange(-100, 1200, 13)
        curve = vesting_curve(scenario_entry, times)
        assert curve.shape == times.shape
        assert list(curve) == [evaluate(scenario_entry, int(t)).vested_amount for t in times]

    def test_matches_evaluate_from_cliff(self, scenario_entry):
        policy = VestingPolicy.LINEAR_FROM_CLIFF
        times = np.arange(0, 1100, 7)
        curve = vesting_curve(scenario_entry, times, policy)
        assert list(curve) == [evaluate(scenario_entry, int(t), policy).vested_amount for t in times]

    def test_scalar_input(self, scenario_entry):
        assert list(vesting_curve(scenario_entry, 500)) == [500]

    def test_large_totals_stay_exact(self):
        total = 10 ** 27 + 1
        entry = make_entry(total=total, cliff=0)
        (value,) = vesting_curve(entry, [333])
        assert value == total * 333 // 1000

    def test_non_decreasing(self, scenario_entry):
        curve = vesting_curve(scenario_entry, np.arange(0, 2000))
        assert all(a <= b for a, b in zip(curve, curve[1:]))

    def test_rejects_float_times(self, scenario_entry):
        with pytest.raises(ValueError, match="integer epoch seconds"):
            vesting_curve(scenario_entry, np.array([0.5, 1.5]))

    def test_rejects_fractional_start(self):
        entry = make_entry(start=Decimal("0.5"))
        with pytest.raises(ValueError, match="whole-second"):
            vesting_curve(entry, [1, 2])
