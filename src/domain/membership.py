"""
Probabilistic membership index for usernames.

A Bloom filter answering "definitely absent" or "possibly present". It has
no false negatives, so a negative answer lets the resolver skip the cache
and the store entirely. The index is add-only: deactivating an account
never frees its username, matching the store's uniqueness constraint.

Sizing for n expected items at false-positive rate p:

    m = ceil(-n * ln(p) / ln(2)^2)   bits
    k = round(m / n * ln(2))         hash functions

Bit positions come from double hashing (h1 + i * h2) over a single
BLAKE2b digest, so each lookup costs one hash computation.
"""

import hashlib
import logging
import math
import threading
from collections.abc import Iterable

from .exceptions import StoreUnavailable
from .ports import UserRepository
from .validation import normalize

logger = logging.getLogger(__name__)


class MembershipIndex:
    """
    Bloom filter over normalized usernames.

    Reads are lock-free; add() takes a lock so concurrent registrations
    never lose each other's bits.
    """

    def __init__(self, expected_items: int = 1_000_000, false_positive_rate: float = 0.01) -> None:
        if expected_items <= 0:
            raise ValueError("expected_items must be positive")
        if not 0 < false_positive_rate < 1:
            raise ValueError("false_positive_rate must be between 0 and 1")

        self.expected_items = expected_items
        self.false_positive_rate = false_positive_rate
        self.size_bits = math.ceil(-expected_items * math.log(false_positive_rate) / math.log(2) ** 2)
        self.hash_count = max(1, round(self.size_bits / expected_items * math.log(2)))
        self._bits = bytearray((self.size_bits + 7) // 8)
        self._lock = threading.Lock()
        self._count = 0

    @classmethod
    def from_usernames(
        cls,
        usernames: Iterable[str],
        expected_items: int = 1_000_000,
        false_positive_rate: float = 0.01,
    ) -> "MembershipIndex":
        index = cls(expected_items, false_positive_rate)
        for username in usernames:
            if username:
                index.add(username)
        return index

    def __len__(self) -> int:
        """Number of add() calls that set at least one new bit."""
        return self._count

    def _positions(self, name: str) -> list[int]:
        digest = hashlib.blake2b(normalize(name).encode("utf-8"), digest_size=16).digest()
        h1 = int.from_bytes(digest[:8], "big")
        h2 = int.from_bytes(digest[8:], "big") | 1
        return [(h1 + i * h2) % self.size_bits for i in range(self.hash_count)]

    def may_exist(self, name: str) -> bool:
        """False means definitely absent; True means possibly present."""
        return all(self._bits[pos >> 3] & (1 << (pos & 7)) for pos in self._positions(name))

    def add(self, name: str) -> None:
        """Insert a name. Adding the same name twice is a no-op."""
        positions = self._positions(name)
        with self._lock:
            changed = False
            for pos in positions:
                byte, mask = pos >> 3, 1 << (pos & 7)
                if not self._bits[byte] & mask:
                    self._bits[byte] |= mask
                    changed = True
            if changed:
                self._count += 1


def build_membership_index(
    repository: UserRepository,
    expected_items: int = 1_000_000,
    false_positive_rate: float = 0.01,
) -> MembershipIndex | None:
    """
    Build the index from the store's current username projection.

    Returns None when the store cannot be read. Callers must then treat
    every name as possibly present and fall through to the store.
    """
    try:
        usernames = repository.list_usernames()
    except StoreUnavailable:
        logger.exception("Failed to load usernames; membership index disabled")
        return None

    index = MembershipIndex.from_usernames(usernames, expected_items, false_positive_rate)
    logger.info("Membership index initialized with %d usernames", len(usernames))
    return index
