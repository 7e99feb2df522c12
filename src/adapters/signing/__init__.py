"""Signing adapters - Session credential implementations."""

from .jwt_signer import JwtTokenSigner

__all__ = ["JwtTokenSigner"]
