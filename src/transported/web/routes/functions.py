"""Account function endpoints.

These keep the JSON contract of the hosted functions they replace:
success is `{success, message, user}`, failure is `{error}`. They are
callable without a token because sign up and sign in use them before the
caller has a session.
"""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from transported.core.auth import (
    AuthValidationError,
    DuplicateUserError,
    UserNotFoundError,
    confirm_user,
    create_user,
)
from transported.web.schemas import (
    ConfirmUserRequest,
    CreateUserRequest,
    FunctionResponse,
    UserResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["functions"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/create-user", response_model=FunctionResponse)
async def create_user_function(request: CreateUserRequest):
    """Create a user with an already-confirmed email."""
    try:
        user, _ = create_user(request.email, request.password, request.name)
    except DuplicateUserError as e:
        return _error(status.HTTP_409_CONFLICT, str(e))
    except AuthValidationError as e:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(e))
    except Exception as e:
        logger.exception("functions.create_user_failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return FunctionResponse(
        success=True,
        message="User created and confirmed successfully",
        user=UserResponse(**user.to_public_dict()),
    )


@router.post("/confirm-user", response_model=FunctionResponse)
async def confirm_user_function(request: ConfirmUserRequest):
    """Confirm an existing user's email."""
    try:
        user = confirm_user(request.email)
    except UserNotFoundError:
        return _error(status.HTTP_404_NOT_FOUND, "User not found")
    except Exception as e:
        logger.exception("functions.confirm_user_failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return FunctionResponse(
        success=True,
        message="User confirmed successfully",
        user=UserResponse(**user.to_public_dict()),
    )
