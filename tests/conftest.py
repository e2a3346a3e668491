"""
conftest.py - Shared pytest fixtures for vesting tests

Provides common fixtures used across unit, conformance and functional tests:
- Address and row factories
- The reference stream (total 1000, start 0, cliff 100, duration 1000)
- Quiet ledgers and claim processors
- A seeded id allocator for reproducible stream ids
"""

import pytest
from typing import Callable

from vesting import (
    StreamLedger, ClaimProcessor, BatchIdAllocator,
    StreamDefinition, StreamLedgerEntry, RawRow,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def address(n: int) -> str:
    """Deterministic valid recipient address for index n."""
    return "0x" + format(n, "064x")


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def make_address() -> Callable[[int], str]:
    return address


@pytest.fixture
def make_row() -> Callable[..., RawRow]:
    """RawRow factory with valid defaults; override any field by keyword."""
    def _make(n: int = 1, amount: str = "100", duration: str = "30d", cliff: str = "", **kwargs) -> RawRow:
        return RawRow(
            wallet_address=kwargs.pop("wallet_address", address(n)),
            amount=amount,
            duration=duration,
            cliff=cliff,
            **kwargs,
        )
    return _make


# =============================================================================
# REFERENCE STREAM
# =============================================================================

@pytest.fixture
def scenario_definition() -> StreamDefinition:
    return StreamDefinition(
        stream_id="stream-1",
        recipient=address(1),
        total_amount=1000,
        duration_seconds=1000,
        cliff_seconds=100,
    )


@pytest.fixture
def scenario_entry(scenario_definition) -> StreamLedgerEntry:
    return StreamLedgerEntry.from_definition(scenario_definition, start_time=0)


# =============================================================================
# LEDGERS
# =============================================================================

@pytest.fixture
def ledger() -> StreamLedger:
    """Empty quiet ledger."""
    return StreamLedger("test", verbose=False)


@pytest.fixture
def scenario_ledger(ledger, scenario_definition) -> StreamLedger:
    """Ledger holding the reference stream, started at t=0."""
    ledger.create(scenario_definition, start_time=0).unwrap()
    return ledger


@pytest.fixture
def processor(scenario_ledger) -> ClaimProcessor:
    return ClaimProcessor(scenario_ledger)


@pytest.fixture
def allocator() -> BatchIdAllocator:
    return BatchIdAllocator(seed=42)
