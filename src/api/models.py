"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request model for user registration.

    Fields default to empty so a missing field is reported by the service
    as a 400, the same as an empty one.
    """
    username: str = ""
    password: str = ""
    email: str = ""


class LoginRequest(BaseModel):
    """Request model for user login."""
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    token: str


class ResetPasswordRequest(BaseModel):
    """Request model for passkey issuance. Both fields must match one user."""
    email: str = ""
    username: str = ""


class ChangePasswordRequest(BaseModel):
    """Request model for consuming a passkey."""
    model_config = ConfigDict(populate_by_name=True)

    email: str = ""
    username: str = ""
    passkey: str = ""
    new_password: str = Field("", alias="newPassword")


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    """Externally visible user fields. Secrets are never included."""
    id: str = Field(..., description="User ID")
    username: str
    email: str
    is_admin: bool = False
    created_at: datetime
    last_login: Optional[datetime] = Field(None, description="Last successful login")
