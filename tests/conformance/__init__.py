"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the vesting engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. vesting_monotonicity.py - Vested amounts never decrease and saturate at total
2. claim_invariants.py - claimed <= vested <= total under any claim sequence
3. evaluation_determinism.py - Pure evaluation, reproducible ledgers
4. batch_independence.py - Row errors never affect other rows

These tests use hypothesis for property-based testing.
"""
