"""
validation.py - Stream Record Validation

Turns untyped input rows (form fields or spreadsheet records) into
StreamDefinitions ready for commit:

1. rows_from_records() - Adapt spreadsheet-style mappings into RawRows
2. to_smallest_unit() / from_smallest_unit() - Token amount scaling
3. validate_row() - Single-recipient form validation
4. validate_batch() - Multi-recipient validation with partial acceptance

Per-row checks run in a fixed order and the first failure wins:
    address -> amount -> duration -> cliff -> cliff <= duration

Rows are independent: one invalid row never blocks the others. A batch is
reported as EMPTY_BATCH only when no row survives.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .core import (
    RawRow, StreamDefinition, ErrorKind, InvalidDurationFormat,
    ADDRESS_PREFIX, ADDRESS_HEX_LENGTH, DEFAULT_TOKEN_DECIMALS, VESTING_DECIMAL_CONTEXT,
)
from .duration import parse_duration
from .ids import BatchIdAllocator


_ADDRESS_PATTERN = re.compile(
    re.escape(ADDRESS_PREFIX) + r"[0-9a-fA-F]{%d}" % ADDRESS_HEX_LENGTH, re.ASCII
)

# Accepted spreadsheet headers (normalized) for each RawRow field.
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    'wallet_address': ('walletaddress', 'address', 'recipient', 'wallet'),
    'amount': ('amount', 'tokens'),
    'duration': ('duration', 'vestingduration'),
    'cliff': ('cliff', 'cliffduration', 'cliffperiod'),
}

RowLike = Union[RawRow, Mapping[str, Any], Sequence[Any]]


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class RowRejection:
    """An input row that failed validation, with the first failing check."""
    row: RawRow
    error: ErrorKind
    detail: str = ""


@dataclass(frozen=True, slots=True)
class RowValidation:
    """Result of validating a single row."""
    definition: Optional[StreamDefinition]
    error: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class BatchValidation:
    """
    Result of validating a batch.

    Attributes:
        accepted: Valid definitions, in input order
        rejected: Invalid rows with their ErrorKind, in input order
        error: EMPTY_BATCH when nothing was accepted, else None
    """
    accepted: Tuple[StreamDefinition, ...]
    rejected: Tuple[RowRejection, ...]
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def payload(self) -> List[Dict[str, Any]]:
        """Create-stream arguments for every accepted definition."""
        return [d.to_payload() for d in self.accepted]

    def __repr__(self) -> str:
        status = self.error.value if self.error else "ok"
        return f"BatchValidation({len(self.accepted)} accepted, {len(self.rejected)} rejected, {status})"


# ============================================================================
# INPUT ADAPTERS
# ============================================================================

def _normalize_header(name: Any) -> str:
    return re.sub(r"[\s_\-]+", "", str(name)).lower()


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def rows_from_records(records: Iterable[Mapping[str, Any]], first_line: int = 2) -> List[RawRow]:
    """
    Adapt spreadsheet records (one mapping per row) to RawRows.

    Headers match case-insensitively, ignoring spaces, hyphens and underscores,
    so "Wallet Address", "wallet_address" and "walletAddress" are equivalent.
    Missing cells become empty strings and are rejected later by validation.

    Args:
        records: Mappings from header to cell value
        first_line: Source line of the first record (2 when row 1 is the header)
    """
    rows = []
    for offset, record in enumerate(records):
        normalized = {_normalize_header(k): v for k, v in record.items()}
        fields = {}
        for field_name, aliases in COLUMN_ALIASES.items():
            value = None
            for alias in aliases:
                if alias in normalized:
                    value = normalized[alias]
                    break
            fields[field_name] = _cell(value)
        rows.append(RawRow(line=first_line + offset, **fields))
    return rows


def _as_row(row: RowLike) -> RawRow:
    if isinstance(row, RawRow):
        return row
    if isinstance(row, Mapping):
        return rows_from_records([row], first_line=1)[0]
    if isinstance(row, (str, bytes)):
        raise ValueError(f"row must be a RawRow, mapping or sequence of fields, got {row!r}")
    values = [_cell(v) for v in row]
    if len(values) not in (3, 4):
        raise ValueError(f"row must have 3 or 4 fields, got {len(values)}")
    return RawRow(*values)


# ============================================================================
# AMOUNTS
# ============================================================================

def to_smallest_unit(amount: Union[str, int, Decimal], decimals: int = DEFAULT_TOKEN_DECIMALS) -> int:
    """
    Scale a whole-token amount to smallest units.

    Args:
        amount: Token amount ("1.5", 2, Decimal("0.25"))
        decimals: Token decimal places

    Returns:
        amount * 10**decimals as an int

    Raises:
        ValueError: If amount is not a finite number, has more fractional
                    digits than the token supports, or needs more significant
                    digits than VESTING_DECIMAL_CONTEXT carries
    """
    if isinstance(amount, bool):
        raise ValueError(f"amount must be numeric, got {amount!r}")
    with localcontext(VESTING_DECIMAL_CONTEXT):
        try:
            value = Decimal(str(amount).strip())
            scaled = value.scaleb(decimals)
            unscaled = scaled.scaleb(-decimals)
        except ArithmeticError:
            raise ValueError(f"amount is not a representable number: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"amount must be finite, got {amount!r}")
    if unscaled != value:
        raise ValueError(f"amount {amount!r} has too many significant digits")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {amount!r} has more than {decimals} decimal places")
    return int(scaled)


def from_smallest_unit(value: int, decimals: int = DEFAULT_TOKEN_DECIMALS) -> Decimal:
    """Convert smallest units back to whole tokens (exact for any size)."""
    return Decimal(f"{int(value)}e-{int(decimals)}")


def normalize_address(address: str) -> Optional[str]:
    """Return the lower-case address, or None if it is not a valid address."""
    if not isinstance(address, str) or _ADDRESS_PATTERN.fullmatch(address) is None:
        return None
    return address.lower()


# ============================================================================
# VALIDATION
# ============================================================================

def _check_row(
    row: RawRow,
    decimals: int,
) -> Tuple[Optional[Tuple[str, int, int, int]], Optional[ErrorKind], str]:
    """
    Run all per-row checks.

    Returns:
        ((recipient, total_amount, duration_seconds, cliff_seconds), None, "")
        on success, else (None, ErrorKind, detail).
    """
    recipient = normalize_address(row.wallet_address)
    if recipient is None:
        return None, ErrorKind.INVALID_ADDRESS, f"bad address {row.wallet_address!r}"

    try:
        total = to_smallest_unit(row.amount, decimals)
    except ValueError as e:
        return None, ErrorKind.INVALID_AMOUNT, str(e)
    if total <= 0:
        return None, ErrorKind.INVALID_AMOUNT, f"amount must be positive, got {row.amount!r}"

    try:
        duration = parse_duration(row.duration)
    except InvalidDurationFormat as e:
        return None, ErrorKind.INVALID_DURATION, e.message

    if row.cliff in ("", "0"):
        cliff = 0
    else:
        try:
            cliff = parse_duration(row.cliff)
        except InvalidDurationFormat as e:
            return None, ErrorKind.INVALID_CLIFF, e.message

    if cliff > duration:
        return None, ErrorKind.CLIFF_EXCEEDS_DURATION, f"cliff {row.cliff} exceeds duration {row.duration}"

    return (recipient, total, duration, cliff), None, ""


def validate_row(
    row: RowLike,
    stream_id: Optional[str] = None,
    allocator: Optional[BatchIdAllocator] = None,
    decimals: int = DEFAULT_TOKEN_DECIMALS,
) -> RowValidation:
    """
    Validate one row from the single-recipient form.

    Args:
        row: The input row
        stream_id: Identifier to use; allocated when omitted
        allocator: Source of identifiers (a fresh BatchIdAllocator by default)
        decimals: Token decimal places

    Returns:
        RowValidation with the definition, or the first failing ErrorKind
    """
    raw = _as_row(row)
    fields, error, detail = _check_row(raw, decimals)
    if error is not None:
        return RowValidation(definition=None, error=error, detail=detail)
    if stream_id is None:
        stream_id = (allocator or BatchIdAllocator()).allocate(1)[0]
    recipient, total, duration, cliff = fields
    return RowValidation(definition=StreamDefinition(
        stream_id=stream_id,
        recipient=recipient,
        total_amount=total,
        duration_seconds=duration,
        cliff_seconds=cliff,
    ))


def validate_batch(
    rows: Iterable[RowLike],
    allocator: Optional[BatchIdAllocator] = None,
    decimals: int = DEFAULT_TOKEN_DECIMALS,
) -> BatchValidation:
    """
    Validate a batch of rows with partial acceptance.

    Each row is checked independently. Accepted rows keep their input order and
    each receives a fresh stream id; ids are drawn in one allocate() call after
    filtering so rejected rows consume none.

    Args:
        rows: Input rows (RawRow, mapping, or 3/4-field sequence)
        allocator: Source of identifiers (a fresh BatchIdAllocator by default)
        decimals: Token decimal places

    Returns:
        BatchValidation; error is EMPTY_BATCH when no row was accepted

    Example:
        result = validate_batch([
            RawRow("0x" + "ab" * 32, "1000", "1yr", "3mon"),
            RawRow("not-an-address", "5", "30d", ""),
        ])
        # result.accepted has 1 definition; result.rejected[0].error is INVALID_ADDRESS
    """
    raw_rows = [_as_row(r) for r in rows]

    valid: List[Tuple[str, int, int, int]] = []
    rejected: List[RowRejection] = []
    for raw in raw_rows:
        fields, error, detail = _check_row(raw, decimals)
        if error is not None:
            rejected.append(RowRejection(row=raw, error=error, detail=detail))
        else:
            valid.append(fields)

    if not valid:
        return BatchValidation(accepted=(), rejected=tuple(rejected), error=ErrorKind.EMPTY_BATCH)

    ids = (allocator or BatchIdAllocator()).allocate(len(valid))
    accepted = tuple(
        StreamDefinition(
            stream_id=stream_id,
            recipient=recipient,
            total_amount=total,
            duration_seconds=duration,
            cliff_seconds=cliff,
        )
        for stream_id, (recipient, total, duration, cliff) in zip(ids, valid)
    )
    return BatchValidation(accepted=accepted, rejected=tuple(rejected))
