"""Auth endpoints: sign up, sign in, sign out and own profile."""

from fastapi import APIRouter, Depends, HTTPException, status

from transported.core.auth import (
    AuthSession,
    AuthValidationError,
    DuplicateUserError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    TokenError,
    UserNotFoundError,
    sign_in,
    sign_out,
    sign_up,
    update_profile,
)
from transported.core.events import publish_change
from transported.web.deps import CurrentUser, get_current_user
from transported.web.schemas import (
    ProfileResponse,
    ProfileUpdate,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        access_token=session.access_token,
        token_type=session.token_type,
        expires_at=session.expires_at.isoformat(),
        user=UserResponse(**session.user.to_public_dict()),
        profile=ProfileResponse.model_validate(session.profile),
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignUpRequest) -> SessionResponse:
    """Create an account and return a session."""
    try:
        session = sign_up(request.email, request.password, request.name)
    except AuthValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    await publish_change("profiles", "insert", session.profile.id, session.user.id)
    return _session_response(session)


@router.post("/signin", response_model=SessionResponse)
async def signin(request: SignInRequest) -> SessionResponse:
    """Sign in with email and password."""
    try:
        session = sign_in(request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except EmailNotConfirmedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e

    return _session_response(session)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def signout(current: CurrentUser = Depends(get_current_user)) -> None:
    """Revoke the caller's token."""
    try:
        sign_out(current.token)
    except TokenError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e


@router.get("/me", response_model=ProfileResponse)
async def get_me(current: CurrentUser = Depends(get_current_user)) -> ProfileResponse:
    """Get the caller's profile."""
    return ProfileResponse.model_validate(current.profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    request: ProfileUpdate,
    current: CurrentUser = Depends(get_current_user),
) -> ProfileResponse:
    """Update the caller's display name."""
    try:
        profile = update_profile(current.id, request.name)
    except AuthValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    await publish_change("profiles", "update", profile.id, current.id)
    return ProfileResponse.model_validate(profile)
