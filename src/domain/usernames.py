"""
Username resolver - tiered availability lookup.

Resolution order:

1. Membership index says "definitely absent"  -> available, no I/O
2. Availability cache hit                      -> cached verdict
3. Authoritative store exact match             -> verdict, then cached

Cache TTLs are asymmetric. A ``taken`` verdict reflects a committed row and
ages slowly (5 minutes). An ``available`` verdict exists only because the
index returned a false positive; a concurrent registration can invalidate
it at any moment, so it lives for 1 minute.

Any cache or store failure produces ``available=False``. Availability
checks fail closed; the store's unique constraint remains the final
arbiter at insert time.
"""

import logging
from dataclasses import dataclass

from .exceptions import CacheUnavailable, InfrastructureError
from .membership import MembershipIndex
from .ports import Availability, AvailabilityState, ErrorKind, KeyValueCache, UserRepository
from .validation import normalize

logger = logging.getLogger(__name__)

AVAILABLE_REASON = "Username is available"
TAKEN_REASON = "Username is already taken"
ERROR_REASON = "Error checking username availability"


@dataclass
class UsernameResolver:
    """
    Orchestrates index -> cache -> store lookups for usernames.

    The index is optional. Without one every name is treated as possibly
    present, which is slower but never reports a false availability.
    """

    repository: UserRepository
    cache: KeyValueCache
    index: MembershipIndex | None = None
    taken_ttl_seconds: int = 300
    available_ttl_seconds: int = 60

    @staticmethod
    def cache_key(username: str) -> str:
        return f"username:{username}"

    def resolve(self, name: str) -> Availability:
        username = normalize(name)

        if self.index is not None and not self.index.may_exist(username):
            return Availability(username, True, AVAILABLE_REASON)

        key = self.cache_key(username)
        try:
            cached = self.cache.get(key)
            if cached == AvailabilityState.TAKEN.value:
                return Availability(username, False, TAKEN_REASON)
            if cached == AvailabilityState.AVAILABLE.value:
                return Availability(username, True, AVAILABLE_REASON)

            existing = self.repository.find_by_username(username)
            if existing is not None:
                self.cache.set(key, AvailabilityState.TAKEN.value, self.taken_ttl_seconds)
                return Availability(username, False, TAKEN_REASON)

            # Index false positive
            self.cache.set(key, AvailabilityState.AVAILABLE.value, self.available_ttl_seconds)
            return Availability(username, True, AVAILABLE_REASON)
        except InfrastructureError:
            logger.exception("Error checking username availability for %s", username)
            return Availability(username, False, ERROR_REASON, ErrorKind.TRANSIENT)

    def record_taken(self, name: str) -> None:
        """
        Publish a committed registration to the index and the cache.

        Overwrites any short-lived ``available`` entry for the name. The row
        is already committed, so a cache failure is only logged.
        """
        username = normalize(name)
        if self.index is not None:
            self.index.add(username)
        try:
            self.cache.set(
                self.cache_key(username), AvailabilityState.TAKEN.value, self.taken_ttl_seconds
            )
        except CacheUnavailable:
            logger.warning("Could not cache taken username %s", username, exc_info=True)
