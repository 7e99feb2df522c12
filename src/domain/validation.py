"""
Input format validators.

Each validator returns a list of human-readable error strings; an empty
list means the input is well formed. The HTTP layer performs its own
schema checks, these rules are enforced again here so every caller of
the domain gets the same itemized reasons.
"""

import re

USERNAME_MIN_LENGTH = 6
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 8
# bcrypt only reads the first 72 bytes and rejects longer input
PASSWORD_MAX_BYTES = 72

RESERVED_USERNAMES = frozenset(
    {"admin", "root", "user", "test", "api", "www", "mail", "support"}
)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_USERNAME_CHARSET_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_CODE_RE = re.compile(r"^\d{6}$")


def normalize(value: str) -> str:
    """Trim and lowercase an email or username."""
    return value.strip().lower()


def validate_email(email: str | None) -> list[str]:
    if not email:
        return ["Email is required"]
    if not _EMAIL_RE.match(email.strip()):
        return ["Please provide a valid email address"]
    return []


def validate_code(code: str | None) -> list[str]:
    if not code:
        return ["Verification code is required"]
    if not _CODE_RE.match(code):
        return ["Verification code must be a 6-digit number"]
    return []


def validate_username(username: str | None) -> list[str]:
    """Check length, charset, leading character and the reserved-name set."""
    if not username or not username.strip():
        return ["Username is required"]

    clean = username.strip()
    errors = []

    if len(clean) < USERNAME_MIN_LENGTH:
        errors.append(f"Username must be at least {USERNAME_MIN_LENGTH} characters long")
    if len(clean) > USERNAME_MAX_LENGTH:
        errors.append(f"Username must be at most {USERNAME_MAX_LENGTH} characters long")
    if not _USERNAME_CHARSET_RE.match(clean):
        errors.append("Username can only contain letters, numbers, underscores, and hyphens")
    if not clean[0].isascii() or not clean[0].isalnum():
        errors.append("Username must start with a letter or number")
    if clean.lower() in RESERVED_USERNAMES:
        errors.append("This username is reserved and cannot be used")

    return errors


def validate_password(password: str | None) -> list[str]:
    if not password:
        return ["Password cannot be empty"]
    if len(password) < PASSWORD_MIN_LENGTH:
        return [f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"]
    if len(password.encode()) > PASSWORD_MAX_BYTES:
        return [f"Password must be at most {PASSWORD_MAX_BYTES} bytes long"]
    return []


def split_credentials(credentials: str | None) -> tuple[str, str] | None:
    """
    Split a ``username:password`` pair.

    Returns None unless the string contains exactly one colon.
    """
    if not credentials or credentials.count(":") != 1:
        return None
    username, password = credentials.split(":")
    return username, password


def validate_credentials(credentials: str | None) -> list[str]:
    """Validate a registration ``username:password`` pair."""
    if not credentials:
        return ["Credentials are required"]
    if ":" not in credentials:
        return ['Credentials must be in format "username:password"']
    if credentials.count(":") > 1:
        return ["Credentials cannot contain multiple colons"]

    username, password = credentials.split(":")
    return validate_username(username) + validate_password(password)


def validate_login_credentials(credentials: str | None) -> list[str]:
    """Login only checks shape; format rules apply at registration."""
    parts = split_credentials(credentials)
    if parts is None:
        return ['Credentials must be in format "username:password"']

    username, password = parts
    errors = []
    if not username.strip():
        errors.append("Username cannot be empty")
    if not password:
        errors.append("Password cannot be empty")
    return errors
