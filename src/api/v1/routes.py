"""
API v1 routes.

Defines REST endpoints for the verified registration handshake and the
username availability probe. Handlers are plain ``def`` so FastAPI runs
them in its threadpool; the domain service and its adapters are blocking.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_registration_service
from src.api.models import (
    AuthResponse,
    CheckUsernameRequest,
    CheckUsernameResponse,
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    RequestCodeRequest,
    RequestCodeResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from src.domain.ports import AuthResult, ErrorKind, Outcome
from src.domain.registration import RegistrationService

router = APIRouter(tags=["v1"])

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PRECONDITION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_for_failure(outcome: Outcome) -> None:
    """Translate a failed Outcome into an HTTP error."""
    if outcome.ok:
        return
    raise HTTPException(
        status_code=_STATUS_BY_KIND[outcome.kind],
        detail={"message": outcome.message, "errors": list(outcome.errors)},
    )


def _auth_response(outcome: Outcome[AuthResult]) -> AuthResponse:
    result = outcome.value
    return AuthResponse(
        message=outcome.message,
        user=result.user,
        token=result.token,
        expires_in_seconds=result.expires_in_seconds,
    )


@router.post(
    "/request-code",
    response_model=RequestCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        503: {"model": ErrorResponse, "description": "Delivery or storage unavailable"},
    },
    summary="Request a verification code",
    description="Send a 6-digit one-time code to the email address. "
    "Requesting again replaces any earlier code.",
)
def request_code(
    request_data: RequestCodeRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RequestCodeResponse:
    outcome = service.request_code(request_data.email)
    _raise_for_failure(outcome)
    return RequestCodeResponse(
        message=outcome.message,
        email=outcome.value.email,
        expires_in_seconds=outcome.value.expires_in_seconds,
    )


@router.post(
    "/verify-code",
    response_model=VerifyCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Code invalid, expired or not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Verify an email with its code",
    description="Consume the one-time code. On success the email may "
    "complete registration within the next hour.",
)
def verify_code(
    request_data: VerifyCodeRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> VerifyCodeResponse:
    outcome = service.verify_code(request_data.email, request_data.code)
    _raise_for_failure(outcome)
    return VerifyCodeResponse(
        message=outcome.message,
        email=outcome.value.email,
        verification_token=outcome.value.verification_token,
    )


@router.post(
    "/check-username",
    response_model=CheckUsernameResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid username format"}},
    summary="Check username availability",
)
def check_username(
    request_data: CheckUsernameRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> CheckUsernameResponse:
    outcome = service.check_availability(request_data.username)
    _raise_for_failure(outcome)
    availability = outcome.value
    return CheckUsernameResponse(
        username=availability.username,
        available=availability.available,
        message=availability.reason,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or email not verified"},
        409: {"model": ErrorResponse, "description": "Email or username already exists"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Register a new user",
    description="Create an account for a verified email using "
    '"username:password" credentials. Returns the user and a session token.',
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AuthResponse:
    outcome = service.register(request_data.email, request_data.credentials)
    _raise_for_failure(outcome)
    return _auth_response(outcome)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed credentials"},
        401: {"model": ErrorResponse, "description": "Invalid credentials or deactivated"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Log in",
)
def login(
    request_data: LoginRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AuthResponse:
    outcome = service.login(request_data.credentials)
    _raise_for_failure(outcome)
    return _auth_response(outcome)
