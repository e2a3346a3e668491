"""
ids.py - Stream Identifier Allocation

Stream ids are random 32-byte tokens rendered as 0x-prefixed hex, the shape a
bytes32 contract argument takes. With 256 random bits the chance of a collision
over the life of any ledger is negligible, so the allocator never consults the
ledger; StreamLedger.create() remains the authority on duplicates.
"""

from __future__ import annotations
import random
import secrets
from typing import Optional, Set, Tuple

from .core import STREAM_ID_PREFIX, STREAM_ID_BYTES


class BatchIdAllocator:
    """
    Allocates fresh stream ids for a batch.

    By default ids come from the operating system's CSPRNG (secrets). Passing a
    seed switches to a private random.Random so tests can reproduce ids.

    Example:
        allocator = BatchIdAllocator()
        ids = allocator.allocate(3)
    """

    def __init__(self, seed: Optional[int] = None, nbytes: int = STREAM_ID_BYTES):
        if isinstance(nbytes, bool) or not isinstance(nbytes, int):
            raise ValueError(f"nbytes must be an int, got {nbytes!r}")
        if nbytes < 16:
            raise ValueError(f"nbytes must be at least 16, got {nbytes}")
        self.nbytes = nbytes
        self._rng = random.Random(seed) if seed is not None else None

    def _token(self) -> str:
        if self._rng is None:
            raw = secrets.token_bytes(self.nbytes)
        else:
            raw = self._rng.getrandbits(self.nbytes * 8).to_bytes(self.nbytes, "big")
        return STREAM_ID_PREFIX + raw.hex()

    def allocate(self, count: int) -> Tuple[str, ...]:
        """
        Return count distinct stream ids.

        Raises:
            ValueError: If count is negative
        """
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"count must be an int, got {count!r}")
        if count < 0:
            raise ValueError(f"count cannot be negative, got {count}")
        ids = []
        seen: Set[str] = set()
        while len(ids) < count:
            token = self._token()
            if token in seen:
                continue
            seen.add(token)
            ids.append(token)
        return tuple(ids)

    def __repr__(self) -> str:
        source = "seeded" if self._rng is not None else "secrets"
        return f"BatchIdAllocator({self.nbytes} bytes, {source})"
