"""
Registration domain service - verified account creation handshake.

This module contains the produced operations of the service. Each one
returns an Outcome; collaborator failures are caught where they happen and
translated into an ErrorKind, so nothing below the HTTP layer raises into
the caller.

Handshake
=========

    request_code  ->  verify_code  ->  register  ->  (login)
      otp:{email}     email_verified:{email}   users row + session:{id}

Registration stages (each is a hard gate, later stages never run after a
failure):

1. Format validation       email + username:password        VALIDATION
2. Verification gate       email_verified:{email} present   PRECONDITION
3. Availability re-check   UsernameResolver.resolve          CONFLICT / TRANSIENT
4. Uniqueness re-check     store lookup by email OR username CONFLICT
5. Commit                  bcrypt + INSERT                   CONFLICT on unique violation
6. Post-commit             index/cache, session, consume credential

Stages 3 and 4 only narrow the race window. Two concurrent requests for
the same username can both pass them; the store's unique constraint at
stage 5 lets exactly one through and the other gets the same CONFLICT as
stage 4.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

import bcrypt

from .exceptions import CacheUnavailable, InfrastructureError
from .ports import (
    AuthResult,
    Availability,
    CodeIssued,
    EmailSender,
    EmailVerified,
    ErrorKind,
    Outcome,
    User,
    UserRepository,
)
from .sessions import SessionIssuer
from .usernames import UsernameResolver
from .validation import (
    PASSWORD_MAX_BYTES,
    normalize,
    split_credentials,
    validate_code,
    validate_credentials,
    validate_email,
    validate_login_credentials,
    validate_username,
)
from .verification import OneTimeCodeManager, VerificationCredentialManager

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation failed"
TRANSIENT_FAILURE = "Service temporarily unavailable, please try again"
EMAIL_EXISTS = "User with this email already exists"
IDENTITY_EXISTS = "User with this email or username already exists"
EMAIL_NOT_VERIFIED = "Email not verified. Please verify your email first."
INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_DEACTIVATED = "Account is deactivated"

OTP_SUBJECT = "Email Verification - OTP Code"


@lru_cache
def _dummy_hash(cost: int) -> bytes:
    """bcrypt hash compared against when the login username is unknown."""
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(cost))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RegistrationService:
    """
    Domain service for the verification and registration handshake.

    Wires the resolver, the two handshake managers and the session issuer
    around the authoritative user repository.
    """

    repository: UserRepository
    email_sender: EmailSender
    resolver: UsernameResolver
    codes: OneTimeCodeManager
    credentials: VerificationCredentialManager
    sessions: SessionIssuer
    bcrypt_cost: int = 12

    def request_code(self, email: str) -> Outcome[CodeIssued]:
        """
        Issue a one-time code for an email that has no account yet.

        The code is revoked again if delivery fails, so it is never live
        without having been sent.
        """
        errors = validate_email(email)
        if errors:
            return Outcome.failure(ErrorKind.VALIDATION, VALIDATION_FAILED, errors)

        normalized_email = normalize(email)
        try:
            if self.repository.find_by_email(normalized_email) is not None:
                return Outcome.failure(ErrorKind.CONFLICT, EMAIL_EXISTS)
            code = self.codes.issue(normalized_email)
        except InfrastructureError:
            logger.exception("Failed to issue verification code")
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)

        minutes = self.codes.ttl_seconds // 60
        body = (
            f"Your OTP code for email verification is: {code}. "
            f"This code will expire in {minutes} minutes."
        )
        try:
            self.email_sender.send(normalized_email, OTP_SUBJECT, body)
        except InfrastructureError:
            logger.exception("Failed to deliver verification code")
            try:
                self.codes.revoke(normalized_email)
            except CacheUnavailable:
                logger.warning("Could not revoke undelivered code", exc_info=True)
            return Outcome.failure(ErrorKind.TRANSIENT, "Failed to send verification email")

        return Outcome.success(
            CodeIssued(email=normalized_email, expires_in_seconds=self.codes.ttl_seconds),
            "OTP sent to your email address",
        )

    def verify_code(self, email: str, code: str) -> Outcome[EmailVerified]:
        """Consume a one-time code and grant a verification credential."""
        errors = validate_email(email) + validate_code(code)
        if errors:
            return Outcome.failure(ErrorKind.VALIDATION, VALIDATION_FAILED, errors)

        normalized_email = normalize(email)
        try:
            check = self.codes.verify(normalized_email, code)
            if not check.valid:
                return Outcome.failure(ErrorKind.PRECONDITION, check.message)
            token = self.credentials.issue(normalized_email)
        except InfrastructureError:
            logger.exception("Failed to verify code")
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)

        return Outcome.success(
            EmailVerified(email=normalized_email, verification_token=token),
            "Email verified successfully",
        )

    def check_availability(self, username: str) -> Outcome[Availability]:
        """
        Report whether a username can be registered.

        Resolver failures are still a successful outcome carrying
        ``available=False``; availability checks fail closed.
        """
        errors = validate_username(username)
        if errors:
            return Outcome.failure(ErrorKind.VALIDATION, "Invalid username format", errors)

        availability = self.resolver.resolve(username)
        return Outcome.success(availability, availability.reason)

    def register(self, email: str, credentials: str) -> Outcome[AuthResult]:
        """
        Create a verified account and issue its first session.

        Args:
            email: Email that passed code verification (will be normalized)
            credentials: ``username:password``

        Returns:
            Outcome carrying the public user and session token on success
        """
        # 1. Format validation
        errors = validate_email(email) + validate_credentials(credentials)
        if errors:
            return Outcome.failure(ErrorKind.VALIDATION, VALIDATION_FAILED, errors)

        raw_username, password = split_credentials(credentials)
        normalized_email = normalize(email)
        username = normalize(raw_username)

        # 2. Verification gate
        try:
            verified = self.credentials.is_live(normalized_email)
        except InfrastructureError:
            logger.exception("Failed to read verification credential")
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)
        if not verified:
            return Outcome.failure(ErrorKind.PRECONDITION, EMAIL_NOT_VERIFIED)

        # 3. Availability re-check
        availability = self.resolver.resolve(username)
        if availability.error_kind is not None:
            return Outcome.failure(availability.error_kind, TRANSIENT_FAILURE)
        if not availability.available:
            return Outcome.failure(ErrorKind.CONFLICT, availability.reason)

        # 4. Uniqueness re-check
        try:
            existing = self.repository.find_by_email_or_username(normalized_email, username)
        except InfrastructureError:
            logger.exception("Failed uniqueness lookup")
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)
        if existing is not None:
            return Outcome.failure(ErrorKind.CONFLICT, IDENTITY_EXISTS)

        # 5. Commit
        now = _now()
        user = User(
            id=str(uuid.uuid4()),
            email=normalized_email,
            username=username,
            password_hash=self._hash_password(password),
            created_at=now,
            updated_at=now,
            is_active=True,
            email_verified=True,
        )
        try:
            inserted = self.repository.insert_user(user)
        except InfrastructureError:
            logger.exception("Failed to insert user")
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)
        if not inserted:
            logger.info("Registration lost insert race for username %s", username)
            return Outcome.failure(ErrorKind.CONFLICT, IDENTITY_EXISTS)

        # 6. Post-commit
        self.resolver.record_taken(username)
        try:
            grant = self.sessions.issue(user)
        except InfrastructureError:
            logger.exception("Account %s created but session issuance failed", user.id)
            return Outcome.failure(
                ErrorKind.TRANSIENT, "Account created but sign-in failed, please log in"
            )
        try:
            self.credentials.consume(normalized_email)
        except CacheUnavailable:
            # Expires on its own; the email now conflicts at stage 4 anyway
            logger.warning("Could not consume verification credential", exc_info=True)

        logger.info("Registered user %s", user.id)
        return Outcome.success(
            AuthResult(
                user=user.to_public_dict(),
                token=grant.token,
                expires_in_seconds=grant.expires_in_seconds,
            ),
            "User registered successfully",
        )

    def login(self, credentials: str) -> Outcome[AuthResult]:
        """
        Authenticate ``username:password`` and issue a session.

        bcrypt always runs, against a dummy hash when the username is
        unknown, so response time does not reveal which usernames exist.
        """
        errors = validate_login_credentials(credentials)
        if errors:
            return Outcome.failure(ErrorKind.VALIDATION, VALIDATION_FAILED, errors)

        raw_username, password = split_credentials(credentials)
        username = normalize(raw_username)

        try:
            user = self.repository.find_by_username(username)
        except InfrastructureError:
            logger.exception("Failed to load user for login")
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)

        stored_hash = user.password_hash.encode() if user else _dummy_hash(self.bcrypt_cost)
        # Over-long passwords can never match but still pay for a comparison
        candidate = password.encode()
        matches = bcrypt.checkpw(candidate[:PASSWORD_MAX_BYTES], stored_hash)
        password_valid = matches and len(candidate) <= PASSWORD_MAX_BYTES

        if user is None or not password_valid:
            return Outcome.failure(ErrorKind.UNAUTHORIZED, INVALID_CREDENTIALS)
        if not user.is_active:
            return Outcome.failure(ErrorKind.UNAUTHORIZED, ACCOUNT_DEACTIVATED)

        now = _now()
        try:
            grant = self.sessions.issue(user)
            self.repository.record_login(user.id, now)
        except InfrastructureError:
            logger.exception("Failed to complete login for user %s", user.id)
            return Outcome.failure(ErrorKind.TRANSIENT, TRANSIENT_FAILURE)

        user.last_login = now
        user.updated_at = now
        return Outcome.success(
            AuthResult(
                user=user.to_public_dict(),
                token=grant.token,
                expires_in_seconds=grant.expires_in_seconds,
            ),
            "Login successful",
        )

    def _hash_password(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
