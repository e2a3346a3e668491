"""
vesting - Token Vesting Accounting Engine

Deterministic accounting for time-locked token streams: duration parsing, batch
validation, schedule evaluation, and claim processing against an owned ledger.

Usage:
    from vesting import (
        StreamLedger, ClaimProcessor, ClaimRequest, RawRow,
        BatchIdAllocator, validate_batch,
    )

    batch = validate_batch([
        RawRow("0x" + "ab" * 32, "1000", "1yr", "3mon"),
        RawRow("0x" + "cd" * 32, "250.5", "6mon", ""),
    ])

    ledger = StreamLedger("team", verbose=False)
    ledger.create_batch(batch.accepted, start_time=1_700_000_000)

    processor = ClaimProcessor(ledger)
    stream_id = batch.accepted[0].stream_id
    outcome = processor.claim(ClaimRequest(stream_id, 10**18, observation_time=1_720_000_000))
"""

# Core types
from .core import (
    RawRow,
    StreamDefinition,
    StreamLedgerEntry,
    ClaimRequest,
    ClaimResult,
    VestingEvaluation,
    LedgerRecord,
    Outcome,
    ErrorKind,
    VestingPolicy,
    StreamStatus,
    VestingError,
    InvalidDurationFormat,
    LedgerCorruption,
    Instant,
    to_timestamp,
    ADDRESS_HEX_LENGTH,
    DEFAULT_TOKEN_DECIMALS,
    STREAM_ID_PREFIX,
    STREAM_ID_BYTES,
    ACTION_CREATE,
    ACTION_CLAIM,
)

# Durations
from .duration import (
    parse_duration,
    format_duration,
    is_duration,
    UNIT_SECONDS,
    SECONDS_PER_MINUTE,
    SECONDS_PER_DAY,
    SECONDS_PER_MONTH,
    SECONDS_PER_YEAR,
)

# Identifiers
from .ids import BatchIdAllocator

# Validation
from .validation import (
    RowRejection,
    RowValidation,
    BatchValidation,
    rows_from_records,
    to_smallest_unit,
    from_smallest_unit,
    normalize_address,
    validate_row,
    validate_batch,
)

# Schedule
from .schedule import (
    StreamProgress,
    evaluate,
    elapsed_seconds,
    stream_status,
    progress,
    vesting_curve,
)

# Ledger and claims
from .ledger import StreamLedger, RECORD_FIELDS
from .claims import ClaimProcessor

__all__ = [
    # Core
    'RawRow', 'StreamDefinition', 'StreamLedgerEntry', 'ClaimRequest', 'ClaimResult',
    'VestingEvaluation', 'LedgerRecord', 'Outcome', 'ErrorKind', 'VestingPolicy',
    'StreamStatus', 'VestingError', 'InvalidDurationFormat', 'LedgerCorruption',
    'Instant', 'to_timestamp',
    'ADDRESS_HEX_LENGTH', 'DEFAULT_TOKEN_DECIMALS', 'STREAM_ID_PREFIX', 'STREAM_ID_BYTES',
    'ACTION_CREATE', 'ACTION_CLAIM',
    # Durations
    'parse_duration', 'format_duration', 'is_duration', 'UNIT_SECONDS',
    'SECONDS_PER_MINUTE', 'SECONDS_PER_DAY', 'SECONDS_PER_MONTH', 'SECONDS_PER_YEAR',
    # Identifiers
    'BatchIdAllocator',
    # Validation
    'RowRejection', 'RowValidation', 'BatchValidation', 'rows_from_records',
    'to_smallest_unit', 'from_smallest_unit', 'normalize_address',
    'validate_row', 'validate_batch',
    # Schedule
    'StreamProgress', 'evaluate', 'elapsed_seconds', 'stream_status', 'progress',
    'vesting_curve',
    # Ledger and claims
    'StreamLedger', 'RECORD_FIELDS', 'ClaimProcessor',
]

__version__ = '1.0.0'
