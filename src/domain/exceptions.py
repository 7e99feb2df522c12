"""
Domain exceptions - Semantic error types raised by infrastructure adapters.

Adapters translate library errors (database driver, cache client, signer)
into these types so the domain never sees a raw infrastructure exception.
The registration service catches them at each call site and turns them
into TRANSIENT outcomes.
"""


class InfrastructureError(Exception):
    """Base class for collaborator failures (store, cache, signer, mail)."""

    pass


class StoreUnavailable(InfrastructureError):
    """Authoritative user store could not complete the operation."""

    pass


class CacheUnavailable(InfrastructureError):
    """Cache/TTL store could not complete the operation."""

    pass


class TokenSigningError(InfrastructureError):
    """Credential signer failed to produce a token."""

    pass


class EmailDeliveryFailed(InfrastructureError):
    """Mail transport rejected or failed to deliver a message."""

    pass
