"""Bearer token authentication dependencies."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_auth_service
from api.models import UserResponse
from domain.model.errors import PermissionDeniedError, UnauthorizedError
from domain.model.user import User
from services.auth_service import AuthService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def to_response(user: User) -> UserResponse:
    """Convert domain User to API UserResponse."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        is_admin=user.is_admin,
        created_at=user.created_at,
        last_login=user.last_login,
    )


def _authenticate(
    credentials: Optional[HTTPAuthorizationCredentials],
    service: AuthService,
) -> User:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return service.authenticate(credentials.credentials)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Get current authenticated user (required). Raises 401 if not authenticated."""
    return to_response(_authenticate(credentials, service))


def get_current_admin_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Get current user and require the admin flag. Raises 401 or 403."""
    user = _authenticate(credentials, service)
    try:
        service.require_admin(user)
    except PermissionDeniedError as e:
        logger.warning("Admin access denied", extra={"userId": user.id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return to_response(user)
