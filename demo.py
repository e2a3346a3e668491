#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn Token Vesting Step by Step

This is a pedagogical demonstration that teaches how the vesting engine works.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Input           - Duration strings, spreadsheet rows, batch validation
  4-5:   Commitment      - The stream ledger, atomic batch creation
  6-8:   Time            - Cliffs, linear release, the vesting curve
  9-11:  Claims          - Claiming, rejected claims, claim_all
  12:    Persistence     - Records out, records in, identical evaluations

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
import sys

import numpy as np

from vesting import (
    # Durations
    parse_duration, format_duration, InvalidDurationFormat,
    # Validation
    RawRow, BatchIdAllocator, rows_from_records, validate_batch, from_smallest_unit,
    # Ledger and schedule
    StreamLedger, ClaimProcessor, ClaimRequest, ErrorKind,
    progress, vesting_curve,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    # Streams start at this instant (epoch seconds)
    start_time: int = int(datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp())

    # Seed for reproducible stream ids
    id_seed: int = 2025

    # Width of the ASCII vesting chart
    chart_width: int = 40


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv

DAY = parse_duration("1d")


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def tokens(amount: int) -> str:
    return f"{from_smallest_unit(amount).normalize():,f}"


# ============================================================================
# PHASE 1: INPUT (Steps 1-3)
# ============================================================================

def step_01_durations():
    """Parse duration strings."""
    step_header(1, "Duration Strings",
        "Durations are <positive integer><unit> with units min, d, mon, yr.")

    print("""
    Operators type durations the way they think about them:

        90min   ->  90 minutes
        30d     ->  30 days
        6mon    ->  6 months  (a month is exactly 30 days)
        1yr     ->  1 year    (a year is exactly 365 days)

    There is no calendar arithmetic: 12mon is 360 days, not 1yr.
    """)

    for spec in ["90min", "30d", "6mon", "12mon", "1yr"]:
        seconds = parse_duration(spec)
        print(f">>> parse_duration({spec!r:8}) = {seconds:>10,}   ({format_duration(seconds)})")

    section_header("Rejected Inputs")
    for spec in ["1w", "1.5d", "0d", " 1d", "1D"]:
        try:
            parse_duration(spec)
        except InvalidDurationFormat as e:
            print(f"✗ {spec!r:8} -> {e}")


def step_02_rows() -> List[RawRow]:
    """Read spreadsheet-style rows."""
    step_header(2, "Spreadsheet Rows",
        "Column headers are matched loosely; every cell is kept as text.")

    records = [
        {"Wallet Address": "0x" + "a1" * 32, "Amount": "1000", "Duration": "1yr", "Cliff": "3mon"},
        {"Wallet Address": "0x" + "B2" * 32, "Amount": "250.5", "Duration": "6mon", "Cliff": ""},
        {"Wallet Address": "0xdeadbeef", "Amount": "10", "Duration": "30d", "Cliff": ""},
        {"Wallet Address": "0x" + "c3" * 32, "Amount": "0", "Duration": "30d", "Cliff": ""},
        {"Wallet Address": "0x" + "d4" * 32, "Amount": "75", "Duration": "30d", "Cliff": "2mon"},
    ]

    print(">>> rows = rows_from_records(records)")
    rows = rows_from_records(records)
    for row in rows:
        print(f"  line {row.line}: {row.wallet_address[:12]}... amount={row.amount!r} "
              f"duration={row.duration!r} cliff={row.cliff!r}")
    return rows


def step_03_validate(rows: List[RawRow]):
    """Validate a batch with partial acceptance."""
    step_header(3, "Batch Validation",
        "Each row is judged on its own; one bad row never blocks the rest.")

    print(">>> batch = validate_batch(rows, allocator=BatchIdAllocator(seed=...))")
    batch = validate_batch(rows, allocator=BatchIdAllocator(seed=CONFIG.id_seed))

    section_header("Accepted")
    for d in batch.accepted:
        print(f"✓ {d.stream_id[:14]}... {d.recipient[:12]}... {tokens(d.total_amount)} tokens "
              f"over {format_duration(d.duration_seconds)}, cliff {format_duration(d.cliff_seconds)}")

    section_header("Rejected")
    for r in batch.rejected:
        print(f"✗ line {r.row.line}: {r.error.value} ({r.detail})")

    section_header("Key Insight")
    print("""
    Amounts are scaled to 18 decimals (250.5 -> 250500000000000000000).
    Addresses are lower-cased. Rejected rows consume no stream ids.
    """)
    return batch


# ============================================================================
# PHASE 2: COMMITMENT (Steps 4-5)
# ============================================================================

def step_04_ledger() -> StreamLedger:
    """Create a stream ledger."""
    step_header(4, "The Stream Ledger",
        "The ledger owns every committed stream and logs every mutation.")

    print(">>> ledger = StreamLedger('tutorial', verbose=True)")
    ledger = StreamLedger("tutorial", verbose=True)
    print(f"{ledger!r}")
    return ledger


def step_05_commit(ledger: StreamLedger, batch):
    """Commit accepted definitions atomically."""
    step_header(5, "Atomic Batch Creation",
        "All accepted streams are committed together, or none are.")

    print(">>> ledger.create_batch(batch.accepted, start_time=...)")
    ledger.create_batch(batch.accepted, start_time=CONFIG.start_time).unwrap()

    section_header("Committing the same batch again")
    outcome = ledger.create_batch(batch.accepted, start_time=CONFIG.start_time)
    print(f"Outcome: {outcome!r}")
    print(f"Streams in ledger: {len(ledger)}")
    print(f"Total allocated:   {tokens(ledger.total_allocated())} tokens")


# ============================================================================
# PHASE 3: TIME (Steps 6-8)
# ============================================================================

def step_06_cliff(ledger: StreamLedger, stream_id: str):
    """Observe a stream inside its cliff."""
    step_header(6, "The Cliff",
        "Nothing is claimable until the cliff has passed.")

    for days in [0, 30, 89]:
        now = CONFIG.start_time + days * DAY
        p = progress(ledger.get(stream_id).unwrap(), now)
        print(f"day {days:>3}: status={p.status.value:<12} vested={tokens(p.evaluation.vested_amount):>12} "
              f"cliff in {format_duration(int(p.seconds_until_cliff))}")


def step_07_linear(ledger: StreamLedger, stream_id: str):
    """Observe linear release after the cliff."""
    step_header(7, "Linear Release",
        "After the cliff the clock counts from the stream start.")

    print("""
    At the cliff, cliff/duration of the total is already vested: the cliff
    only gates release, it does not restart the clock.
    """)
    for days in [90, 182, 365, 400]:
        now = CONFIG.start_time + days * DAY
        p = progress(ledger.get(stream_id).unwrap(), now)
        print(f"day {days:>3}: status={p.status.value:<12} {float(p.percent_vested):6.2f}% "
              f"vested={tokens(p.evaluation.vested_amount)}")


def step_08_curve(ledger: StreamLedger, stream_id: str):
    """Draw the vesting curve."""
    step_header(8, "The Vesting Curve",
        "vesting_curve() evaluates many instants at once for charts.")

    entry = ledger.get(stream_id).unwrap()
    times = CONFIG.start_time + np.arange(0, 390, 30) * DAY
    curve = vesting_curve(entry, times)
    for t, vested in zip(times, curve):
        day = (int(t) - CONFIG.start_time) // DAY
        bar = "#" * (vested * CONFIG.chart_width // entry.total_amount)
        print(f"day {day:>3} |{bar:<{CONFIG.chart_width}}| {tokens(vested)}")


# ============================================================================
# PHASE 4: CLAIMS (Steps 9-11)
# ============================================================================

def step_09_claim(processor: ClaimProcessor, stream_id: str):
    """Claim vested tokens."""
    step_header(9, "Claiming",
        "A claim moves exactly the requested amount, never more than claimable.")

    now = CONFIG.start_time + 182 * DAY
    available = processor.claimable(stream_id, now).unwrap().claimable_amount
    print(f"Claimable at day 182: {tokens(available)}")

    request = ClaimRequest(stream_id, available // 2, observation_time=now)
    print(">>> processor.claim(ClaimRequest(stream_id, half, observation_time=now))")
    result = processor.claim(request).unwrap()
    print(f"Claimed {tokens(result.amount_claimed)}, total claimed {tokens(result.claimed_total)}")


def step_10_rejections(processor: ClaimProcessor, stream_id: str):
    """See why claims get rejected."""
    step_header(10, "Rejected Claims",
        "Rejected claims leave the ledger untouched.")

    now = CONFIG.start_time + 182 * DAY
    available = processor.claimable(stream_id, now).unwrap().claimable_amount
    attempts = [
        ("one more than claimable", ClaimRequest(stream_id, available + 1, now)),
        ("zero tokens", ClaimRequest(stream_id, 0, now)),
        ("unknown stream", ClaimRequest("0x" + "00" * 32, 1, now)),
    ]
    for label, request in attempts:
        outcome = processor.claim(request)
        marker = "✓" if outcome.ok else "✗"
        print(f"{marker} {label:<24} -> {outcome.error.value if outcome.error else 'ok'}")
        assert outcome.error in (ErrorKind.EXCEEDS_CLAIMABLE, ErrorKind.INVALID_CLAIM_AMOUNT,
                                 ErrorKind.STREAM_NOT_FOUND)


def step_11_claim_all(ledger: StreamLedger, processor: ClaimProcessor):
    """Drain every stream at the end."""
    step_header(11, "Claim Everything",
        "Once fully vested, claim_all() empties a stream.")

    now = CONFIG.start_time + 400 * DAY
    for entry in ledger.streams():
        processor.claim_all(entry.stream_id, now)

    section_header("Final State")
    print(f"Total allocated: {tokens(ledger.total_allocated())}")
    print(f"Total claimed:   {tokens(ledger.total_claimed())}")
    print(f"Log entries:     {len(ledger.log)}")
    for record in ledger.log:
        print(f"  {record!r}")


# ============================================================================
# PHASE 5: PERSISTENCE (Step 12)
# ============================================================================

def step_12_persistence(ledger: StreamLedger):
    """Round-trip the ledger through plain records."""
    step_header(12, "Persistence",
        "to_records() / from_records() restore the exact same schedules.")

    records = ledger.to_records()
    restored = StreamLedger.from_records(records, name="restored", verbose=False)
    print(f">>> StreamLedger.from_records(ledger.to_records())  ->  {restored!r}")

    now = CONFIG.start_time + 200 * DAY
    identical = all(
        restored.evaluate(e.stream_id, now) == ledger.evaluate(e.stream_id, now)
        for e in ledger.streams()
    )
    print(f"Evaluations identical: {identical}")


def main(quick: Optional[bool] = None):
    """Run the complete tutorial."""
    global QUICK_MODE
    if quick is not None:
        QUICK_MODE = quick

    print("=" * 70)
    print("       TOKEN VESTING - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    # Phase 1: Input
    step_01_durations()
    wait_for_enter()

    rows = step_02_rows()
    wait_for_enter()

    batch = step_03_validate(rows)
    wait_for_enter()

    # Phase 2: Commitment
    ledger = step_04_ledger()
    wait_for_enter()

    step_05_commit(ledger, batch)
    wait_for_enter()

    # Phase 3: Time
    stream_id = batch.accepted[0].stream_id
    step_06_cliff(ledger, stream_id)
    wait_for_enter()

    step_07_linear(ledger, stream_id)
    wait_for_enter()

    step_08_curve(ledger, stream_id)
    wait_for_enter()

    # Phase 4: Claims
    processor = ClaimProcessor(ledger)
    step_09_claim(processor, stream_id)
    wait_for_enter()

    step_10_rejections(processor, stream_id)
    wait_for_enter()

    step_11_claim_all(ledger, processor)
    wait_for_enter()

    # Phase 5: Persistence
    step_12_persistence(ledger)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    return ledger


if __name__ == "__main__":
    main()
