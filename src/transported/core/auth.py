"""Authentication module.

Responsibilities:
- Hash and verify passwords (passlib)
- Issue, decode and revoke bearer tokens (python-jose JWT)
- Account functions: create user with confirmed email, confirm user by email
- Sign up / sign in flows, including the automatic email confirmation retry
  when a user signs in before confirming

Profiles are created alongside users with role 'student'; promotion to
admin is an operator action (set_role).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from transported.config import load_app_config
from transported.db.users_repository import (
    ROLES,
    DuplicateEmailError,
    ProfileRecord,
    UserRecord,
    confirm_user_email,
    get_profile,
    get_user_by_email,
    get_user_by_id,
    insert_user,
    is_token_revoked,
    revoke_token,
    update_profile_name,
    update_profile_role,
)
from transported.utils.validators import validate_email

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# =============================================================================
# ERRORS
# =============================================================================


class AuthError(Exception):
    """Base error for authentication operations."""

    pass


class AuthValidationError(AuthError):
    """Invalid email, password or name."""

    pass


class DuplicateUserError(AuthError):
    """An account with this email already exists."""

    pass


class UserNotFoundError(AuthError):
    """No account matches the given email or ID."""

    pass


class InvalidCredentialsError(AuthError):
    """Email/password combination is wrong."""

    pass


class EmailNotConfirmedError(AuthError):
    """Sign in refused because the email is unconfirmed."""

    pass


class TokenError(AuthError):
    """Bearer token is malformed, expired, revoked or orphaned."""

    pass


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class AuthSession:
    """An issued access token with the signed-in user."""

    access_token: str
    expires_at: datetime
    user: UserRecord
    profile: ProfileRecord
    token_type: str = "bearer"


# =============================================================================
# PASSWORDS & TOKENS
# =============================================================================


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password; malformed hashes never verify."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def create_access_token(user: UserRecord, profile: ProfileRecord) -> tuple[str, datetime]:
    """Create a signed JWT for a user.

    Returns:
        Tuple of (encoded token, expiry datetime in UTC)
    """
    config = load_app_config().auth
    expires_at = datetime.now(timezone.utc) + timedelta(
        minutes=config.access_token_expire_minutes
    )
    claims = {
        "sub": user.id,
        "email": user.email,
        "role": profile.role,
        "jti": uuid.uuid4().hex,
        "exp": expires_at,
    }
    token = jwt.encode(claims, config.secret_key, algorithm=config.algorithm)
    return token, expires_at


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT.

    Raises:
        TokenError: If the token is invalid, expired or revoked
    """
    config = load_app_config().auth
    try:
        payload = jwt.decode(token, config.secret_key, algorithms=[config.algorithm])
    except JWTError as e:
        raise TokenError("Could not validate credentials") from e

    if not payload.get("sub") or not payload.get("jti"):
        raise TokenError("Could not validate credentials")

    if is_token_revoked(payload["jti"]):
        raise TokenError("Token has been revoked")

    return payload


def authenticate(token: str) -> tuple[UserRecord, ProfileRecord]:
    """Resolve a bearer token to its user and profile.

    Raises:
        TokenError: If the token is invalid or the user no longer exists
    """
    payload = decode_access_token(token)
    user = get_user_by_id(payload["sub"])
    profile = get_profile(payload["sub"]) if user else None

    if user is None or profile is None:
        raise TokenError("User for this token no longer exists")

    return user, profile


# =============================================================================
# ACCOUNT FUNCTIONS
# =============================================================================


def _validate_credentials(email: str, password: str) -> None:
    if not validate_email(email):
        raise AuthValidationError("Invalid email format")

    min_length = load_app_config().auth.password_min_length
    if len(password) < min_length:
        raise AuthValidationError(
            f"Password should be at least {min_length} characters"
        )


def create_user(
    email: str,
    password: str,
    name: str | None,
    email_confirmed: bool = True,
) -> tuple[UserRecord, ProfileRecord]:
    """Create a user, by default with an already-confirmed email.

    Args:
        email: Account email
        password: Plain password
        name: Display name stored on the profile
        email_confirmed: Confirm the email at creation time

    Returns:
        Tuple of (UserRecord, ProfileRecord)

    Raises:
        AuthValidationError: If email or password are invalid
        DuplicateUserError: If the email is already registered
    """
    _validate_credentials(email, password)

    try:
        user, profile = insert_user(
            email=email,
            password_hash=hash_password(password),
            name=name,
            email_confirmed=email_confirmed,
        )
    except DuplicateEmailError as e:
        raise DuplicateUserError(str(e)) from e

    logger.info("auth.user_created", user_id=user.id)
    return user, profile


def confirm_user(email: str) -> UserRecord:
    """Confirm an existing user's email.

    Raises:
        UserNotFoundError: If no user has this email
    """
    user = get_user_by_email(email)
    if user is None:
        logger.warning("auth.confirm_unknown_email")
        raise UserNotFoundError("User not found")

    confirmed = confirm_user_email(user.id)
    if confirmed is None:
        raise UserNotFoundError("User not found")

    logger.info("auth.user_confirmed", user_id=user.id, was_confirmed=user.is_confirmed)
    return confirmed


def _issue_session(user: UserRecord) -> AuthSession:
    profile = get_profile(user.id)
    if profile is None:
        raise UserNotFoundError("Profile not found")

    token, expires_at = create_access_token(user, profile)
    return AuthSession(access_token=token, expires_at=expires_at, user=user, profile=profile)


def sign_up(email: str, password: str, name: str | None) -> AuthSession:
    """Create an account and sign it in immediately."""
    user, _ = create_user(email, password, name)
    return _issue_session(user)


def sign_in(email: str, password: str) -> AuthSession:
    """Sign in with email and password.

    An unconfirmed email is confirmed and the sign in retried once when
    auto-confirm is enabled.

    Raises:
        InvalidCredentialsError: If email or password is wrong
        EmailNotConfirmedError: If unconfirmed and auto-confirm is disabled
    """
    user = get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("auth.signin_failed")
        raise InvalidCredentialsError("Invalid login credentials")

    if not user.is_confirmed:
        if not load_app_config().auth.auto_confirm_email:
            raise EmailNotConfirmedError("Email not confirmed")
        logger.info("auth.signin_auto_confirm", user_id=user.id)
        user = confirm_user(user.email)

    session = _issue_session(user)
    logger.info("auth.signed_in", user_id=user.id)
    return session


def sign_out(token: str) -> None:
    """Revoke a token until it would have expired.

    Raises:
        TokenError: If the token is already invalid
    """
    payload = decode_access_token(token)
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    revoke_token(payload["jti"], expires_at.isoformat())
    logger.info("auth.signed_out", user_id=payload["sub"])


# =============================================================================
# PROFILE FUNCTIONS
# =============================================================================


def update_profile(user_id: str, name: str) -> ProfileRecord:
    """Update the caller's display name.

    Raises:
        AuthValidationError: If name is blank
        UserNotFoundError: If the profile does not exist
    """
    cleaned = name.strip()
    if not cleaned:
        raise AuthValidationError("Name cannot be empty")

    profile = update_profile_name(user_id, cleaned)
    if profile is None:
        raise UserNotFoundError("Profile not found")
    return profile


def set_role(email: str, role: str) -> ProfileRecord:
    """Change a user's role by email.

    Raises:
        AuthValidationError: If role is unknown
        UserNotFoundError: If no user has this email
    """
    if role not in ROLES:
        raise AuthValidationError(f"Role must be one of: {', '.join(ROLES)}")

    user = get_user_by_email(email)
    if user is None:
        raise UserNotFoundError("User not found")

    profile = update_profile_role(user.id, role)
    if profile is None:
        raise UserNotFoundError("Profile not found")
    return profile
