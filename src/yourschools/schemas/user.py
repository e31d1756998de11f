"""Pydantic schemas for users and auth payloads.

Learn: UserRead is the only shape a user leaves the persistence layer in.
It has no password field, so nothing downstream of the credential store
can leak a hash by accident.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

EMAIL_PATTERN = r".+@.+\..+"


# ─── Auth requests ───────────────────────────────────────


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: str
    password: str


# ─── Users ───────────────────────────────────────────────


class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    is_admin: bool = False
    zipcode: Optional[str] = None
    theme: str = "lightTheme"
    favorite_ids: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by register and login. The token is also set as a cookie."""
    token: str
    user: UserRead


# ─── Profile updates ─────────────────────────────────────


class UserUpdate(BaseModel):
    """Self-service profile edit. Omitted fields are left unchanged."""
    username: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    zipcode: Optional[str] = Field(default=None, max_length=10)
    theme: Optional[str] = Field(default=None, max_length=50)


class AdminUserUpdate(UserUpdate):
    is_admin: Optional[bool] = None


class PasswordChange(BaseModel):
    password: str
    new_password: str = Field(min_length=6)


class AdminUserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    is_admin: bool = False


class AdminUserCreated(BaseModel):
    """The temporary password is shown once; the user is expected to change it."""
    user: UserRead
    temporary_password: str
