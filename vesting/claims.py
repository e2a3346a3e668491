"""
claims.py - Claim Processing

The ClaimProcessor turns a recipient's ClaimRequest into a ledger mutation:

    1. Look up the stream                       -> STREAM_NOT_FOUND
    2. Reject non-positive amounts              -> INVALID_CLAIM_AMOUNT
    3. Evaluate the schedule at the request time
    4. Reject amounts above the claimable amount -> EXCEEDS_CLAIMABLE
    5. Commit through StreamLedger.apply_claim()

Claims are all-or-nothing: a request is never partially filled. Steps 3-5 run
under the stream's lock, so a second identical request is judged against the
updated claimed_amount and may legitimately fail.
"""

from __future__ import annotations

from .core import (
    ClaimRequest, ClaimResult, ErrorKind, Outcome, Instant, _is_count,
)
from .ledger import StreamLedger
from .schedule import evaluate


class ClaimProcessor:
    """
    Validates and applies claims against an injected StreamLedger.

    Example:
        processor = ClaimProcessor(ledger)
        outcome = processor.claim(ClaimRequest(stream_id, 300, observation_time=500))
        if outcome.ok:
            print(outcome.value.amount_claimed)
    """

    def __init__(self, ledger: StreamLedger):
        self.ledger = ledger

    def claimable(self, stream_id: str, now: Instant) -> Outcome:
        """Read-only evaluation for polling; never mutates the ledger."""
        return self.ledger.evaluate(stream_id, now)

    def claim(self, request: ClaimRequest) -> Outcome:
        """
        Apply a claim request.

        Returns:
            Outcome with ClaimResult, or STREAM_NOT_FOUND, INVALID_CLAIM_AMOUNT,
            EXCEEDS_CLAIMABLE (INSUFFICIENT_VESTED passes through from the ledger)
        """
        found = self.ledger.get(request.stream_id)
        if not found.ok:
            return found

        amount = request.requested_amount
        if not _is_count(amount) or amount <= 0:
            return Outcome.failure(
                ErrorKind.INVALID_CLAIM_AMOUNT,
                f"requested amount must be a positive int, got {amount!r}",
            )

        with self.ledger.lock(request.stream_id):
            entry = self.ledger.get(request.stream_id).value
            evaluation = evaluate(entry, request.observation_time, self.ledger.policy)
            if amount > evaluation.claimable_amount:
                return Outcome.failure(
                    ErrorKind.EXCEEDS_CLAIMABLE,
                    f"requested {amount}, claimable {evaluation.claimable_amount}",
                )
            applied = self.ledger.apply_claim(request.stream_id, amount, request.observation_time)
            if not applied.ok:
                return applied

        updated = applied.value
        return Outcome.success(ClaimResult(
            stream_id=updated.stream_id,
            amount_claimed=amount,
            claimed_total=updated.claimed_amount,
            observation_time=request.observation_time,
        ))

    def claim_all(self, stream_id: str, now: Instant) -> Outcome:
        """
        Claim everything currently claimable.

        Returns:
            Outcome with ClaimResult, STREAM_NOT_FOUND, or EXCEEDS_CLAIMABLE
            when nothing is claimable
        """
        found = self.ledger.get(stream_id)
        if not found.ok:
            return found
        with self.ledger.lock(stream_id):
            available = self.ledger.evaluate(stream_id, now).value.claimable_amount
            if available <= 0:
                return Outcome.failure(ErrorKind.EXCEEDS_CLAIMABLE, f"nothing claimable on {stream_id}")
            return self.claim(ClaimRequest(stream_id=stream_id, requested_amount=available, observation_time=now))
