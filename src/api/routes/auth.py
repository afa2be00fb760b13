"""Authentication routes (register, login, password reset)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_auth_service
from api.models import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from api.security import get_current_user_required, to_response
from domain.model.commands import (
    ChangePasswordCommand,
    LoginCommand,
    RegisterCommand,
    ResetCommand,
)
from domain.model.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Reset lookups never say which of email or username failed to match
BAD_RESET_REQUEST = "Invalid email or username"


def _internal_error(e: InternalError) -> HTTPException:
    logger.error("Auth operation failed", extra={"error": str(e)})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Register a new user.

    Raises:
        HTTPException: 400 if a field is empty, 409 if the username exists
    """
    try:
        user = service.register(RegisterCommand(
            username=request.username,
            password=request.password,
            email=request.email,
        ))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    except InternalError as e:
        raise _internal_error(e)

    return to_response(user)


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Login user and return the session token.

    Raises:
        HTTPException: 401 if credentials are invalid
    """
    try:
        token = service.login(LoginCommand(username=request.username, password=request.password))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except InternalError as e:
        raise _internal_error(e)

    return LoginResponse(token=token)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    """Email a short-lived passkey to the user. The passkey is never returned."""
    try:
        service.initiate_reset(ResetCommand(email=request.email, username=request.username))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BAD_RESET_REQUEST)
    except InternalError as e:
        raise _internal_error(e)

    return MessageResponse(message="Passkey sent successfully")


@router.post("/change-password", response_model=MessageResponse)
def change_password(request: ChangePasswordRequest, service: AuthService = Depends(get_auth_service)):
    """Set a new password using a valid passkey.

    Raises:
        HTTPException: 400 if no user matches, 401 if the passkey is expired or wrong
    """
    try:
        service.change_password(ChangePasswordCommand(
            email=request.email,
            username=request.username,
            passkey=request.passkey,
            new_password=request.new_password,
        ))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BAD_RESET_REQUEST)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except InternalError as e:
        raise _internal_error(e)

    return MessageResponse(message="Password changed successfully")


@router.get("/me", response_model=UserResponse)
def get_me(current_user: UserResponse = Depends(get_current_user_required)):
    """Get current authenticated user info."""
    return current_user
