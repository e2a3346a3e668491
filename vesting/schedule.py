"""
schedule.py - Vesting Schedule Model

Pure functions that evaluate a stream's schedule at a caller-supplied instant.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. evaluate() - vested fraction, vested amount and claimable amount
2. stream_status() / progress() - dashboard views built on evaluate()
3. vesting_curve() - vectorized vested amounts over many instants (charts)

Nothing here mutates an entry or reads a clock; every call with the same
(entry, now, policy) returns the same result.

Key Formulas (LINEAR_FROM_START, the default):
    elapsed  = max(0, now - start_time)
    fraction = 0                    if elapsed <  cliff
             = 1                    if elapsed >= duration
             = elapsed / duration   otherwise
    vested    = floor(total_amount * fraction)    (exact integer arithmetic)
    claimable = max(0, vested - claimed_amount)

LINEAR_FROM_CLIFF replaces the middle case with
    (elapsed - cliff) / (duration - cliff)
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
from fractions import Fraction
from typing import Optional, Sequence, Union

import numpy as np

from .core import (
    StreamLedgerEntry, VestingEvaluation, VestingPolicy, StreamStatus,
    Instant, to_timestamp, VESTING_DECIMAL_CONTEXT,
)


_ZERO = Decimal(0)
_ONE = Decimal(1)
_HUNDRED = Decimal(100)


@dataclass(frozen=True, slots=True)
class StreamProgress:
    """
    Dashboard view of a stream at one instant.

    Attributes:
        status: Phase of the stream
        percent_vested: vested_fraction * 100
        seconds_until_cliff: 0 once the cliff has passed
        seconds_until_fully_vested: 0 once the stream has ended
        cliff_time: Epoch seconds at which the cliff ends
        end_time: Epoch seconds at which everything is vested
        evaluation: The underlying evaluate() result
    """
    status: StreamStatus
    percent_vested: Decimal
    seconds_until_cliff: Decimal
    seconds_until_fully_vested: Decimal
    cliff_time: Decimal
    end_time: Decimal
    evaluation: VestingEvaluation


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def _elapsed(entry: StreamLedgerEntry, now: Instant) -> Fraction:
    elapsed = Fraction(to_timestamp(now)) - Fraction(to_timestamp(entry.start_time))
    return elapsed if elapsed > 0 else Fraction(0)


def elapsed_seconds(entry: StreamLedgerEntry, now: Instant) -> Decimal:
    """Seconds since the stream started, floored at 0."""
    elapsed = _elapsed(entry, now)
    with localcontext(VESTING_DECIMAL_CONTEXT):
        return Decimal(elapsed.numerator) / elapsed.denominator


def _linear_terms(
    elapsed: Fraction,
    duration: int,
    cliff: int,
    policy: VestingPolicy,
) -> Optional[tuple]:
    """
    (numerator, denominator) of the vested fraction, or None when the
    fraction is 0 (inside the cliff) or 1 (stream ended).
    """
    if elapsed < cliff or elapsed >= duration:
        return None
    if policy is VestingPolicy.LINEAR_FROM_CLIFF:
        return elapsed - cliff, duration - cliff
    return elapsed, duration


def evaluate(
    entry: StreamLedgerEntry,
    now: Instant,
    policy: VestingPolicy = VestingPolicy.LINEAR_FROM_START,
) -> VestingEvaluation:
    """
    Evaluate a stream's schedule at an instant.

    PURE FUNCTION - safe to poll any number of times.

    Args:
        entry: The stream's ledger entry
        now: Observation instant (epoch seconds or datetime)
        policy: How release proceeds after the cliff

    Returns:
        VestingEvaluation(vested_fraction, vested_amount, claimable_amount)

    Example:
        # total=1000, start=0, cliff=100, duration=1000
        evaluate(entry, 500).claimable_amount  # 500
    """
    elapsed = _elapsed(entry, now)
    duration = entry.duration_seconds
    cliff = entry.cliff_seconds

    terms = _linear_terms(elapsed, duration, cliff, policy)
    if terms is None:
        if elapsed < cliff:
            fraction, vested = _ZERO, 0
        else:
            fraction, vested = _ONE, entry.total_amount
    else:
        numerator, denominator = terms
        # Amounts are floored over integers; Decimal is only for the displayed fraction.
        scale = numerator.denominator * denominator
        vested = entry.total_amount * numerator.numerator // scale
        with localcontext(VESTING_DECIMAL_CONTEXT):
            fraction = Decimal(numerator.numerator) / scale

    claimable = vested - entry.claimed_amount
    return VestingEvaluation(
        vested_fraction=fraction,
        vested_amount=vested,
        claimable_amount=claimable if claimable > 0 else 0,
    )


def stream_status(
    entry: StreamLedgerEntry,
    now: Instant,
) -> StreamStatus:
    """
    Phase of a stream at an instant.

    NOT_STARTED before start_time, CLIFF until the cliff ends, VESTING until the
    duration ends, then FULLY_VESTED, or COMPLETED once everything is claimed.
    """
    if to_timestamp(now) < to_timestamp(entry.start_time):
        return StreamStatus.NOT_STARTED
    elapsed = _elapsed(entry, now)
    if elapsed < entry.cliff_seconds:
        return StreamStatus.CLIFF
    if elapsed < entry.duration_seconds:
        return StreamStatus.VESTING
    if entry.claimed_amount >= entry.total_amount:
        return StreamStatus.COMPLETED
    return StreamStatus.FULLY_VESTED


def progress(
    entry: StreamLedgerEntry,
    now: Instant,
    policy: VestingPolicy = VestingPolicy.LINEAR_FROM_START,
) -> StreamProgress:
    """Build the dashboard view of a stream at an instant."""
    evaluation = evaluate(entry, now, policy)
    with localcontext(VESTING_DECIMAL_CONTEXT):
        now_ts = to_timestamp(now)
        start = to_timestamp(entry.start_time)
        cliff_time = start + entry.cliff_seconds
        end_time = start + entry.duration_seconds
        return StreamProgress(
            status=stream_status(entry, now),
            percent_vested=evaluation.vested_fraction * _HUNDRED,
            seconds_until_cliff=max(_ZERO, cliff_time - now_ts),
            seconds_until_fully_vested=max(_ZERO, end_time - now_ts),
            cliff_time=cliff_time,
            end_time=end_time,
            evaluation=evaluation,
        )


# ============================================================================
# VECTORIZED CURVE
# ============================================================================

def vesting_curve(
    entry: StreamLedgerEntry,
    times: Union[Sequence[int], np.ndarray],
    policy: VestingPolicy = VestingPolicy.LINEAR_FROM_START,
) -> np.ndarray:
    """
    Vested amounts at many instants, for charting a schedule.

    Amounts are computed with Python integers inside an object array, so values
    above 2**53 stay exact and agree element-wise with evaluate().

    Args:
        entry: The stream's ledger entry (start_time must be whole seconds)
        times: Integer epoch seconds
        policy: How release proceeds after the cliff

    Returns:
        Object ndarray of int vested amounts, same shape as times (at least 1-D)

    Raises:
        ValueError: If times or start_time are not whole seconds
    """
    stamps = np.atleast_1d(np.asarray(times))
    if stamps.dtype.kind not in "iu":
        raise ValueError("vesting_curve expects integer epoch seconds")
    start = to_timestamp(entry.start_time)
    if start != start.to_integral_value():
        raise ValueError("vesting_curve requires a whole-second start_time")

    total = entry.total_amount
    duration = entry.duration_seconds
    cliff = entry.cliff_seconds

    elapsed = np.maximum(stamps.astype(object) - int(start), 0)
    if policy is VestingPolicy.LINEAR_FROM_CLIFF:
        span = max(duration - cliff, 1)
        linear = (elapsed - cliff) * total // span
    else:
        linear = elapsed * total // duration

    vested = np.where(elapsed < cliff, 0, np.where(elapsed >= duration, total, linear))
    return vested.astype(object)
