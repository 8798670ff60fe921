"""Request dependencies: bearer-token auth and the admin guard."""

from dataclasses import dataclass

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from transported.core.auth import TokenError, authenticate
from transported.db.users_repository import ProfileRecord, UserRecord

logger = structlog.get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """The authenticated caller."""

    user: UserRecord
    profile: ProfileRecord
    token: str

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.profile.is_admin


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Extract the raw bearer token."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return credentials.credentials


def get_current_user(token: str = Depends(get_token)) -> CurrentUser:
    """Resolve the bearer token to a user and profile."""
    try:
        user, profile = authenticate(token)
    except TokenError as e:
        raise _unauthorized(str(e)) from e
    return CurrentUser(user=user, profile=profile, token=token)


def require_admin(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow only admins through."""
    if not current.is_admin:
        logger.info("auth.admin_required", user_id=current.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current
