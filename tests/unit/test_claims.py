"""
Tests for claims.py - Claim Processing

Tests:
- Successful claims and ClaimResult contents
- Error kinds: STREAM_NOT_FOUND, INVALID_CLAIM_AMOUNT, EXCEEDS_CLAIMABLE
- All-or-nothing: no partial fills
- Re-issuing an identical request is judged against the updated ledger
- claim_all and the read-only claimable helper
"""

import pytest

from vesting import ClaimRequest, ErrorKind


class TestClaim:
    """ClaimProcessor.claim."""

    def test_successful_claim(self, processor):
        outcome = processor.claim(ClaimRequest("stream-1", 300, observation_time=500))
        assert outcome.ok
        result = outcome.value
        assert result.stream_id == "stream-1"
        assert result.amount_claimed == 300
        assert result.claimed_total == 300
        assert result.observation_time == 500

    def test_missing_stream(self, processor):
        outcome = processor.claim(ClaimRequest("nope", 1, observation_time=500))
        assert outcome.error is ErrorKind.STREAM_NOT_FOUND

    def test_missing_stream_checked_before_amount(self, processor):
        outcome = processor.claim(ClaimRequest("nope", 0, observation_time=500))
        assert outcome.error is ErrorKind.STREAM_NOT_FOUND

    @pytest.mark.parametrize("amount", [0, -1, 2.5, None])
    def test_invalid_amount(self, processor, amount):
        outcome = processor.claim(ClaimRequest("stream-1", amount, observation_time=500))
        assert outcome.error is ErrorKind.INVALID_CLAIM_AMOUNT

    def test_exceeds_claimable(self, processor):
        outcome = processor.claim(ClaimRequest("stream-1", 501, observation_time=500))
        assert outcome.error is ErrorKind.EXCEEDS_CLAIMABLE

    def test_no_partial_fill(self, processor, scenario_ledger):
        processor.claim(ClaimRequest("stream-1", 501, observation_time=500))
        assert scenario_ledger.get("stream-1").value.claimed_amount == 0

    def test_before_cliff(self, processor):
        outcome = processor.claim(ClaimRequest("stream-1", 1, observation_time=50))
        assert outcome.error is ErrorKind.EXCEEDS_CLAIMABLE

    def test_identical_request_reevaluated(self, processor):
        request = ClaimRequest("stream-1", 300, observation_time=500)
        assert processor.claim(request).ok
        second = processor.claim(request)
        assert second.error is ErrorKind.EXCEEDS_CLAIMABLE

    def test_identical_request_can_succeed_twice_when_enough_vested(self, processor):
        request = ClaimRequest("stream-1", 200, observation_time=500)
        assert processor.claim(request).ok
        assert processor.claim(request).value.claimed_total == 400

    def test_claim_is_logged(self, processor, scenario_ledger):
        processor.claim(ClaimRequest("stream-1", 10, observation_time=500))
        assert scenario_ledger.log[-1].amount == 10


class TestClaimAll:
    """ClaimProcessor.claim_all."""

    def test_claims_everything_claimable(self, processor):
        outcome = processor.claim_all("stream-1", 500)
        assert outcome.value.amount_claimed == 500
        assert processor.claimable("stream-1", 500).value.claimable_amount == 0

    def test_nothing_claimable(self, processor):
        assert processor.claim_all("stream-1", 50).error is ErrorKind.EXCEEDS_CLAIMABLE

    def test_missing_stream(self, processor):
        assert processor.claim_all("nope", 500).error is ErrorKind.STREAM_NOT_FOUND

    def test_successive_claim_all(self, processor):
        processor.claim_all("stream-1", 500)
        outcome = processor.claim_all("stream-1", 1000)
        assert outcome.value.amount_claimed == 500
        assert outcome.value.claimed_total == 1000


class TestClaimable:
    """Read-only polling."""

    def test_does_not_mutate(self, processor, scenario_ledger):
        for _ in range(3):
            assert processor.claimable("stream-1", 700).value.claimable_amount == 700
        assert scenario_ledger.get("stream-1").value.claimed_amount == 0
        assert len(scenario_ledger.log) == 1

    def test_missing(self, processor):
        assert processor.claimable("nope", 0).error is ErrorKind.STREAM_NOT_FOUND
