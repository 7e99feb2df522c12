"""
Domain layer - Pure business logic with zero framework imports.

This package contains the username availability resolver and the
verification/registration handshake. It defines its own port interfaces
for infrastructure abstraction, ensuring true hexagonal architecture
decoupling.
"""

from .exceptions import (
    CacheUnavailable,
    EmailDeliveryFailed,
    InfrastructureError,
    StoreUnavailable,
    TokenSigningError,
)
from .membership import MembershipIndex, build_membership_index
from .ports import (
    Availability,
    EmailSender,
    ErrorKind,
    KeyValueCache,
    Outcome,
    TokenSigner,
    User,
    UserRepository,
)
from .registration import RegistrationService
from .sessions import SessionIssuer
from .usernames import UsernameResolver
from .verification import OneTimeCodeManager, VerificationCredentialManager

__all__ = [
    "Availability",
    "CacheUnavailable",
    "EmailDeliveryFailed",
    "EmailSender",
    "ErrorKind",
    "InfrastructureError",
    "KeyValueCache",
    "MembershipIndex",
    "OneTimeCodeManager",
    "Outcome",
    "RegistrationService",
    "SessionIssuer",
    "StoreUnavailable",
    "TokenSigner",
    "TokenSigningError",
    "User",
    "UserRepository",
    "UsernameResolver",
    "VerificationCredentialManager",
    "build_membership_index",
]
