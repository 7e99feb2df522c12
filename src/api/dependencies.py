"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Request
from psycopg_pool import ConnectionPool

from src.adapters.cache.redis_cache import RedisCache
from src.adapters.repository.postgres import PostgresUserRepository
from src.adapters.signing.jwt_signer import JwtTokenSigner
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.smtp import SmtpEmailSender
from src.config.settings import get_settings
from src.domain.membership import MembershipIndex
from src.domain.ports import EmailSender
from src.domain.registration import RegistrationService
from src.domain.sessions import SessionIssuer
from src.domain.usernames import UsernameResolver
from src.domain.verification import OneTimeCodeManager, VerificationCredentialManager

# Module-level singleton - ConsoleEmailSender is stateless
_email_sender = ConsoleEmailSender()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_cache(request: Request) -> RedisCache:
    """Get the cache adapter created during lifespan startup."""
    return request.app.state.cache


def get_membership_index(request: Request) -> MembershipIndex | None:
    """
    Get the process-wide membership index.

    None when the startup rebuild failed; the resolver then always
    falls through to the cache and store.
    """
    return getattr(request.app.state, "membership_index", None)


def get_signer(request: Request) -> JwtTokenSigner:
    return request.app.state.signer


def get_repository(request: Request) -> PostgresUserRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresUserRepository(pool)


def get_email_sender() -> EmailSender:
    """
    Get the configured email sender.

    The console sender is a shared singleton; SMTP senders are cheap to
    build and open their own connection per message.
    """
    settings = get_settings()
    if settings.email_backend == "smtp":
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.smtp_from,
            use_tls=settings.smtp_use_tls,
            use_ssl=settings.smtp_use_ssl,
            timeout=settings.smtp_timeout,
        )
    return _email_sender


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires the repository, cache, membership index, signer and email
    sender into the domain components.
    """
    settings = get_settings()
    repository = get_repository(request)
    cache = get_cache(request)

    resolver = UsernameResolver(
        repository=repository,
        cache=cache,
        index=get_membership_index(request),
        taken_ttl_seconds=settings.username_taken_ttl_seconds,
        available_ttl_seconds=settings.username_available_ttl_seconds,
    )
    return RegistrationService(
        repository=repository,
        email_sender=get_email_sender(),
        resolver=resolver,
        codes=OneTimeCodeManager(cache=cache, ttl_seconds=settings.otp_ttl_seconds),
        credentials=VerificationCredentialManager(
            cache=cache, ttl_seconds=settings.verification_ttl_seconds
        ),
        sessions=SessionIssuer(
            signer=get_signer(request), cache=cache, ttl_seconds=settings.session_ttl_seconds
        ),
        bcrypt_cost=settings.bcrypt_cost,
    )
