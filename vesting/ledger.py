"""
ledger.py - Stateful Stream Ledger

The StreamLedger is the only component that mutates vesting state. It owns the
map from stream_id to StreamLedgerEntry and applies exactly two kinds of change:

    - create: a StreamDefinition becomes an entry with claimed_amount = 0
    - claim:  an entry's claimed_amount increases

Key responsibilities:
    - Rejects duplicate stream ids (the allocator never checks)
    - Re-checks vested amounts at claim time so claimed <= vested always holds
    - Serializes mutations per stream with re-entrant locks
    - Always logs: every successful mutation is appended to the audit trail
    - Exports and restores the persisted entry layout (to_records / from_records)

Expected failures are returned as Outcome values; only a broken invariant
(LedgerCorruption) is raised.
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
import copy
import threading
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .core import (
    StreamDefinition, StreamLedgerEntry, LedgerRecord, Outcome,
    ErrorKind, VestingPolicy, VestingError, LedgerCorruption,
    Instant, ACTION_CREATE, ACTION_CLAIM, _is_count,
)
from .schedule import evaluate


# Persisted field set of an entry, in storage order.
RECORD_FIELDS: Tuple[str, ...] = (
    'stream_id', 'recipient', 'total_amount', 'claimed_amount',
    'start_time', 'duration_seconds', 'cliff_seconds',
)


class StreamLedger:
    """
    Authoritative per-stream vesting state with an audit trail.

    The ledger is an ordinary object owned by the caller and injected into the
    ClaimProcessor; there is no module-level instance.

    Thread Safety:
        create/create_batch hold the registry lock; apply_claim holds the
        stream's lock across its vested check and write. Callers that evaluate
        and then claim can hold lock(stream_id) around both.

    Example:
        ledger = StreamLedger("airdrop", verbose=False)
        entry = ledger.create(definition, start_time=1_700_000_000).unwrap()
        ledger.apply_claim(entry.stream_id, 500, now=1_700_086_400)
    """

    def __init__(
        self,
        name: str = "streams",
        policy: VestingPolicy = VestingPolicy.LINEAR_FROM_START,
        verbose: bool = True,
    ):
        """
        Create an empty ledger.

        Args:
            name: Ledger identifier (used in output)
            policy: Vesting policy used for the claim-time vested check
            verbose: Print one line per mutation and rejection (default: True)
        """
        self.name = name
        self.policy = policy
        self.verbose = verbose
        self.entries: Dict[str, StreamLedgerEntry] = {}
        self.log: List[LedgerRecord] = []
        self._next_sequence: int = 0
        self._registry_lock = threading.RLock()
        self._stream_locks: Dict[str, threading.RLock] = {}

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    def get(self, stream_id: str) -> Outcome:
        """
        Look up an entry.

        Returns:
            Outcome with the StreamLedgerEntry, or STREAM_NOT_FOUND
        """
        entry = self.entries.get(stream_id)
        if entry is None:
            return Outcome.failure(ErrorKind.STREAM_NOT_FOUND, f"stream {stream_id} not found")
        return Outcome.success(entry)

    def evaluate(self, stream_id: str, now: Instant) -> Outcome:
        """Evaluate a stream's schedule at now under the ledger's policy."""
        found = self.get(stream_id)
        if not found.ok:
            return found
        return Outcome.success(evaluate(found.value, now, self.policy))

    def streams(self) -> List[StreamLedgerEntry]:
        """All entries, in creation order."""
        with self._registry_lock:
            return list(self.entries.values())

    def streams_for(self, recipient: str) -> List[StreamLedgerEntry]:
        """Entries whose recipient matches (case-insensitive), in creation order."""
        wanted = recipient.lower()
        return [e for e in self.streams() if e.recipient.lower() == wanted]

    def total_allocated(self) -> int:
        """Sum of total_amount over all streams."""
        return sum(e.total_amount for e in self.streams())

    def total_claimed(self) -> int:
        """Sum of claimed_amount over all streams."""
        return sum(e.claimed_amount for e in self.streams())

    def __contains__(self, stream_id: object) -> bool:
        return stream_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"StreamLedger({self.name!r}, {len(self.entries)} streams, {len(self.log)} records)"

    # ========================================================================
    # LOCKING
    # ========================================================================

    @contextmanager
    def lock(self, stream_id: str) -> Iterator[None]:
        """
        Hold a stream's lock.

        Re-entrant, so apply_claim() may be called while it is held.

        Raises:
            VestingError: STREAM_NOT_FOUND if the stream does not exist
        """
        with self._registry_lock:
            stream_lock = self._stream_locks.get(stream_id)
        if stream_lock is None:
            raise VestingError(ErrorKind.STREAM_NOT_FOUND, f"stream {stream_id} not found")
        with stream_lock:
            yield

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def _record(self, action: str, stream_id: str, amount: int, time: Instant) -> LedgerRecord:
        with self._registry_lock:
            record = LedgerRecord(
                sequence=self._next_sequence,
                action=action,
                stream_id=stream_id,
                amount=amount,
                time=time,
            )
            self._next_sequence += 1
            self.log.append(record)
        return record

    def _reject(self, error: ErrorKind, detail: str) -> Outcome:
        if self.verbose:
            print(f"✗ REJECTED [{self.name}]: {error.value}: {detail}")
        return Outcome.failure(error, detail)

    def create(self, definition: StreamDefinition, start_time: Instant) -> Outcome:
        """
        Commit a definition as a new entry starting at start_time.

        Args:
            definition: Validated stream definition
            start_time: Instant the vesting clock starts

        Returns:
            Outcome with the new StreamLedgerEntry, or DUPLICATE_STREAM_ID
        """
        entry = StreamLedgerEntry.from_definition(definition, start_time)
        with self._registry_lock:
            if entry.stream_id in self.entries:
                return self._reject(
                    ErrorKind.DUPLICATE_STREAM_ID, f"stream {entry.stream_id} already exists"
                )
            self.entries[entry.stream_id] = entry
            self._stream_locks[entry.stream_id] = threading.RLock()
            self._record(ACTION_CREATE, entry.stream_id, entry.total_amount, start_time)
        if self.verbose:
            print(f"📝 Created [{self.name}]: {entry.stream_id[:18]}… → {entry.recipient} "
                  f"{entry.total_amount} over {entry.duration_seconds}s (cliff {entry.cliff_seconds}s)")
        return Outcome.success(entry)

    def create_batch(self, definitions: Sequence[StreamDefinition], start_time: Instant) -> Outcome:
        """
        Commit several definitions atomically, all sharing start_time.

        Any duplicate id (within the batch or against the ledger) rejects the
        whole batch and leaves the ledger unchanged.

        Returns:
            Outcome with the tuple of new entries, or DUPLICATE_STREAM_ID
        """
        entries = tuple(StreamLedgerEntry.from_definition(d, start_time) for d in definitions)
        with self._registry_lock:
            seen = set()
            for entry in entries:
                if entry.stream_id in self.entries or entry.stream_id in seen:
                    return self._reject(
                        ErrorKind.DUPLICATE_STREAM_ID, f"stream {entry.stream_id} already exists"
                    )
                seen.add(entry.stream_id)
            for entry in entries:
                self.entries[entry.stream_id] = entry
                self._stream_locks[entry.stream_id] = threading.RLock()
                self._record(ACTION_CREATE, entry.stream_id, entry.total_amount, start_time)
        if self.verbose:
            print(f"📝 Created [{self.name}]: batch of {len(entries)} streams")
        return Outcome.success(entries)

    def apply_claim(self, stream_id: str, delta: int, now: Instant) -> Outcome:
        """
        Increase a stream's claimed_amount by delta.

        The vested amount is recomputed at now under the stream's lock, so two
        concurrent claims cannot both spend the same vested tokens.

        Args:
            stream_id: Stream to claim from
            delta: Positive number of smallest units
            now: Observation instant for the vested check

        Returns:
            Outcome with the updated entry, or STREAM_NOT_FOUND,
            INVALID_CLAIM_AMOUNT, INSUFFICIENT_VESTED
        """
        if not _is_count(delta) or delta <= 0:
            return self._reject(ErrorKind.INVALID_CLAIM_AMOUNT, f"claim amount must be a positive int, got {delta!r}")
        with self._registry_lock:
            stream_lock = self._stream_locks.get(stream_id)
        if stream_lock is None:
            return self._reject(ErrorKind.STREAM_NOT_FOUND, f"stream {stream_id} not found")

        with stream_lock:
            entry = self.entries[stream_id]
            vested = evaluate(entry, now, self.policy).vested_amount
            if entry.claimed_amount + delta > vested:
                return self._reject(
                    ErrorKind.INSUFFICIENT_VESTED,
                    f"{stream_id}: claimed {entry.claimed_amount} + {delta} exceeds vested {vested}",
                )
            # Constructing the new entry re-checks 0 <= claimed <= total.
            updated = replace(entry, claimed_amount=entry.claimed_amount + delta)
            self.entries[stream_id] = updated
            self._record(ACTION_CLAIM, stream_id, delta, now)

        if self.verbose:
            print(f"✓ CLAIMED [{self.name}]: {delta} from {stream_id[:18]}… "
                  f"({updated.claimed_amount}/{updated.total_amount})")
        return Outcome.success(updated)

    # ========================================================================
    # PERSISTENCE AND COPIES
    # ========================================================================

    def to_records(self) -> List[Dict[str, Any]]:
        """
        Export every entry as a plain dict with the persisted field set.

        The storage format (table, file, KV store) is the caller's choice.
        """
        return [
            {name: copy.deepcopy(getattr(entry, name)) for name in RECORD_FIELDS}
            for entry in self.streams()
        ]

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        name: str = "streams",
        policy: VestingPolicy = VestingPolicy.LINEAR_FROM_START,
        verbose: bool = True,
    ) -> StreamLedger:
        """
        Rebuild a ledger from exported records.

        Every record is revalidated; the audit trail starts empty.

        Raises:
            LedgerCorruption: On duplicate ids, missing fields or a broken
                              claimed-amount invariant
            ValueError: On malformed field values
        """
        ledger = cls(name=name, policy=policy, verbose=verbose)
        for record in records:
            missing = [f for f in RECORD_FIELDS if f not in record]
            if missing:
                raise LedgerCorruption(f"record missing fields: {', '.join(missing)}")
            entry = StreamLedgerEntry(**{f: record[f] for f in RECORD_FIELDS})
            if entry.stream_id in ledger.entries:
                raise LedgerCorruption(f"duplicate stream {entry.stream_id} in records")
            ledger.entries[entry.stream_id] = entry
            ledger._stream_locks[entry.stream_id] = threading.RLock()
        return ledger

    def clone(self) -> StreamLedger:
        """
        Create an independent copy of this ledger.

        Entries are immutable and shared; the entry map, audit trail and locks
        are new.
        """
        cloned = StreamLedger(name=self.name, policy=self.policy, verbose=self.verbose)
        with self._registry_lock:
            cloned.entries = dict(self.entries)
            cloned.log = list(self.log)
            cloned._next_sequence = self._next_sequence
            cloned._stream_locks = {sid: threading.RLock() for sid in self.entries}
        return cloned
