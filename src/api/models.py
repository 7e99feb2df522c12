"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class RequestCodeRequest(BaseModel):
    """Request model for one-time code issuance."""

    email: EmailStr


class RequestCodeResponse(BaseModel):
    """Response model for an issued one-time code."""

    message: str
    email: str
    expires_in_seconds: int


class VerifyCodeRequest(BaseModel):
    """Request model for one-time code verification."""

    email: EmailStr
    code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit verification code",
    )


class VerifyCodeResponse(BaseModel):
    """Response model for a verified email."""

    message: str
    email: str
    verification_token: str


class CheckUsernameRequest(BaseModel):
    """Request model for a username availability probe."""

    username: str = Field(..., min_length=1, description="Username to check")


class CheckUsernameResponse(BaseModel):
    """Response model for a username availability probe."""

    username: str
    available: bool
    message: str


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    credentials: str = Field(..., min_length=1, description='Credentials as "username:password"')


class LoginRequest(BaseModel):
    """Request model for login."""

    credentials: str = Field(..., min_length=1, description='Credentials as "username:password"')


class UserResponse(BaseModel):
    """Public user projection (never includes the password hash)."""

    id: str
    email: str
    username: str
    created_at: datetime
    updated_at: datetime
    is_active: bool
    email_verified: bool
    last_login: datetime | None = None


class AuthResponse(BaseModel):
    """Response model for successful registration or login."""

    message: str
    user: UserResponse
    token: str
    expires_in_seconds: int


class ErrorDetail(BaseModel):
    """Failure message with optional itemized reasons."""

    message: str
    errors: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: ErrorDetail
