"""
Core types and helpers for the vesting accounting engine.

This module provides the foundational data structures shared by every component:
1. Constants: address format, token precision, identifier size
2. Enums: ErrorKind taxonomy, VestingPolicy, StreamStatus
3. Exceptions: VestingError, InvalidDurationFormat, LedgerCorruption
4. Outcome: the value returned by every fallible ledger and claim operation
5. Immutable records: RawRow, StreamDefinition, StreamLedgerEntry, ClaimRequest,
   ClaimResult, VestingEvaluation, LedgerRecord
6. Instants: conversion of caller-supplied observation times to epoch seconds

Nothing in this module reads the system clock or holds mutable state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Context, Decimal, ROUND_HALF_EVEN
from enum import Enum
from typing import Any, Dict, Optional, Union
import math


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Displayed fractions and amount scaling use Decimal. Decimal contexts are
# thread-local, so this context is entered explicitly with
# decimal.localcontext() wherever Decimal arithmetic happens; results never
# depend on the calling thread's context. Vested amounts do not go through
# Decimal at all: they are floored with exact integer arithmetic.
#
VESTING_DECIMAL_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN)


# ============================================================================
# CONSTANTS
# ============================================================================

# Recipient account addresses are "0x" followed by this many hex digits (32 bytes).
ADDRESS_PREFIX = "0x"
ADDRESS_HEX_LENGTH = 64

# Token amounts are entered in whole tokens and stored in smallest units.
DEFAULT_TOKEN_DECIMALS = 18

# Stream identifiers are random 32-byte tokens rendered as 0x-prefixed hex.
STREAM_ID_PREFIX = "0x"
STREAM_ID_BYTES = 32

# Audit trail actions (strings, matching how the record is persisted).
ACTION_CREATE = "CREATE"
ACTION_CLAIM = "CLAIM"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# An observation instant: epoch seconds or a datetime (naive means UTC).
Instant = Union[int, float, Decimal, datetime]


# ============================================================================
# ENUMS
# ============================================================================

class ErrorKind(Enum):
    """
    Every expected failure the engine can report.

    Row-level kinds are collected by batch validation; ledger and claim kinds
    are returned inside an Outcome to the immediate caller.
    """
    INVALID_DURATION_FORMAT = "invalid_duration_format"
    INVALID_ADDRESS = "invalid_address"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_DURATION = "invalid_duration"
    INVALID_CLIFF = "invalid_cliff"
    CLIFF_EXCEEDS_DURATION = "cliff_exceeds_duration"
    EMPTY_BATCH = "empty_batch"
    DUPLICATE_STREAM_ID = "duplicate_stream_id"
    STREAM_NOT_FOUND = "stream_not_found"
    INSUFFICIENT_VESTED = "insufficient_vested"
    INVALID_CLAIM_AMOUNT = "invalid_claim_amount"
    EXCEEDS_CLAIMABLE = "exceeds_claimable"


class VestingPolicy(Enum):
    """
    How release proceeds once the cliff has passed.

    LINEAR_FROM_START: the vesting clock runs from the stream start; the cliff
                       only gates release (at the cliff, cliff/duration is vested).
    LINEAR_FROM_CLIFF: nothing is vested at the cliff; release runs linearly
                       from the cliff to the end of the stream.
    """
    LINEAR_FROM_START = "linear_from_start"
    LINEAR_FROM_CLIFF = "linear_from_cliff"


class StreamStatus(Enum):
    """Display status of a stream at an observation instant."""
    NOT_STARTED = "not_started"
    CLIFF = "cliff"
    VESTING = "vesting"
    FULLY_VESTED = "fully_vested"
    COMPLETED = "completed"        # Fully vested and fully claimed


# ============================================================================
# EXCEPTIONS
# ============================================================================

class VestingError(Exception):
    """
    Base exception for all vesting errors.

    Carries the ErrorKind when the exception stands for an expected failure
    (raised by Outcome.unwrap() or by the pure duration parser).
    """

    def __init__(self, kind: Optional[ErrorKind], message: str = ""):
        self.kind = kind
        self.message = message
        label = kind.value if kind is not None else "vesting_error"
        super().__init__(f"{label}: {message}" if message else label)


class InvalidDurationFormat(VestingError, ValueError):
    """Raised when a duration string does not match <positive integer><unit>."""

    def __init__(self, message: str = ""):
        super().__init__(ErrorKind.INVALID_DURATION_FORMAT, message)


class LedgerCorruption(VestingError):
    """
    Raised when a ledger entry breaks an invariant (negative or excess claimed amount).

    Never returned as a value: observing it means the stored state is wrong.
    """

    def __init__(self, message: str = ""):
        super().__init__(None, message)


# ============================================================================
# OUTCOME
# ============================================================================

@dataclass(frozen=True, slots=True)
class Outcome:
    """
    Result of a fallible operation: either a value or an ErrorKind.

    Attributes:
        value: The produced value when the operation succeeded
        error: The ErrorKind when the operation failed, else None
        detail: Human-readable context for the failure
    """
    value: Any = None
    error: Optional[ErrorKind] = None
    detail: str = ""

    @classmethod
    def success(cls, value: Any) -> Outcome:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str = "") -> Outcome:
        return cls(error=error, detail=detail)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, raising VestingError if the operation failed."""
        if self.error is not None:
            raise VestingError(self.error, self.detail)
        return self.value

    def __repr__(self) -> str:
        if self.error is None:
            return f"Outcome(ok, {self.value!r})"
        return f"Outcome({self.error.value}: {self.detail})"


# ============================================================================
# INSTANTS
# ============================================================================

def to_timestamp(instant: Instant) -> Decimal:
    """
    Convert an observation instant to epoch seconds.

    Args:
        instant: Epoch seconds (int, float, Decimal) or a datetime.
                 Naive datetimes are read as UTC so results never depend on
                 the host timezone.

    Returns:
        Exact Decimal seconds since 1970-01-01T00:00:00Z.

    Raises:
        ValueError: If the instant is not finite or not a supported type
    """
    if isinstance(instant, datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        delta = instant - _EPOCH
        micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
        return Decimal(micros).scaleb(-6, VESTING_DECIMAL_CONTEXT)
    if isinstance(instant, bool):
        raise ValueError(f"instant must be a number or datetime, got {instant!r}")
    if isinstance(instant, int):
        return Decimal(instant)
    if isinstance(instant, float):
        if not math.isfinite(instant):
            raise ValueError(f"instant must be finite, got {instant}")
        return Decimal(str(instant))
    if isinstance(instant, Decimal):
        if not instant.is_finite():
            raise ValueError(f"instant must be finite, got {instant}")
        return instant
    raise ValueError(f"instant must be a number or datetime, got {type(instant).__name__}")


def _is_count(value: Any) -> bool:
    """True for plain ints (bool excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class RawRow:
    """
    One untyped input row, as read from a form or a spreadsheet.

    Attributes:
        wallet_address: Recipient address text
        amount: Token amount text in whole tokens (e.g. "1500.5")
        duration: Duration spec (e.g. "6mon")
        cliff: Cliff spec (e.g. "30d"); empty means no cliff
        line: 1-based position in the source, when known
    """
    wallet_address: str
    amount: str
    duration: str
    cliff: str = ""
    line: Optional[int] = None


@dataclass(frozen=True, slots=True)
class StreamDefinition:
    """
    A validated stream ready to be committed or submitted.

    Attributes:
        stream_id: Unique identifier allocated at validation time
        recipient: Lower-case 0x-prefixed address
        total_amount: Tokens in smallest units
        duration_seconds: Length of the stream (positive)
        cliff_seconds: Initial locked interval (0 <= cliff <= duration)
    """
    stream_id: str
    recipient: str
    total_amount: int
    duration_seconds: int
    cliff_seconds: int = 0

    def __post_init__(self):
        if not self.stream_id or not self.stream_id.strip():
            raise ValueError("StreamDefinition stream_id cannot be empty")
        if not self.recipient or not self.recipient.strip():
            raise ValueError("StreamDefinition recipient cannot be empty")
        if not _is_count(self.total_amount) or self.total_amount < 0:
            raise ValueError(f"total_amount must be a non-negative int, got {self.total_amount!r}")
        if not _is_count(self.duration_seconds) or self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be a positive int, got {self.duration_seconds!r}")
        if not _is_count(self.cliff_seconds) or self.cliff_seconds < 0:
            raise ValueError(f"cliff_seconds must be a non-negative int, got {self.cliff_seconds!r}")
        if self.cliff_seconds > self.duration_seconds:
            raise ValueError("cliff_seconds cannot exceed duration_seconds")

    def to_payload(self) -> Dict[str, Any]:
        """Arguments for the contract's create-stream call."""
        return {
            'stream_id': self.stream_id,
            'recipient': self.recipient,
            'amount': self.total_amount,
            'duration': self.duration_seconds,
            'cliff': self.cliff_seconds,
        }


@dataclass(frozen=True, slots=True)
class StreamLedgerEntry:
    """
    Authoritative state of one committed stream.

    Only claimed_amount changes over the stream's life; each change produces a
    new entry (value semantics). Construction enforces 0 <= claimed <= total.
    """
    stream_id: str
    recipient: str
    total_amount: int
    claimed_amount: int
    start_time: Instant
    duration_seconds: int
    cliff_seconds: int

    def __post_init__(self):
        if not self.stream_id or not self.stream_id.strip():
            raise ValueError("StreamLedgerEntry stream_id cannot be empty")
        if not _is_count(self.total_amount) or self.total_amount < 0:
            raise ValueError(f"total_amount must be a non-negative int, got {self.total_amount!r}")
        if not _is_count(self.duration_seconds) or self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be a positive int, got {self.duration_seconds!r}")
        if not _is_count(self.cliff_seconds) or not 0 <= self.cliff_seconds <= self.duration_seconds:
            raise ValueError(f"cliff_seconds must be within [0, duration], got {self.cliff_seconds!r}")
        to_timestamp(self.start_time)
        if not _is_count(self.claimed_amount):
            raise LedgerCorruption(f"{self.stream_id}: claimed_amount is not an int ({self.claimed_amount!r})")
        if self.claimed_amount < 0:
            raise LedgerCorruption(f"{self.stream_id}: negative claimed_amount {self.claimed_amount}")
        if self.claimed_amount > self.total_amount:
            raise LedgerCorruption(
                f"{self.stream_id}: claimed_amount {self.claimed_amount} exceeds total {self.total_amount}"
            )

    @classmethod
    def from_definition(cls, definition: StreamDefinition, start_time: Instant) -> StreamLedgerEntry:
        return cls(
            stream_id=definition.stream_id,
            recipient=definition.recipient,
            total_amount=definition.total_amount,
            claimed_amount=0,
            start_time=start_time,
            duration_seconds=definition.duration_seconds,
            cliff_seconds=definition.cliff_seconds,
        )

    @property
    def remaining_amount(self) -> int:
        """Tokens not yet claimed (vested or not)."""
        return self.total_amount - self.claimed_amount


@dataclass(frozen=True, slots=True)
class ClaimRequest:
    """
    A recipient's request to withdraw vested tokens.

    requested_amount is not range-checked here; the claim processor reports
    non-positive amounts as INVALID_CLAIM_AMOUNT.
    """
    stream_id: str
    requested_amount: int
    observation_time: Instant


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """Successful claim: amount moved and the stream's new claimed total."""
    stream_id: str
    amount_claimed: int
    claimed_total: int
    observation_time: Instant


@dataclass(frozen=True, slots=True)
class VestingEvaluation:
    """
    Schedule evaluation of one stream at one instant.

    Attributes:
        vested_fraction: Share of total_amount unlocked, in [0, 1]
        vested_amount: floor(total_amount * vested_fraction)
        claimable_amount: max(0, vested_amount - claimed_amount)
    """
    vested_fraction: Decimal
    vested_amount: int
    claimable_amount: int


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    """Audit trail entry for one successful ledger mutation."""
    sequence: int
    action: str
    stream_id: str
    amount: int
    time: Instant
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"LedgerRecord(#{self.sequence} {self.action} {self.stream_id} {self.amount} @ {self.time})"
