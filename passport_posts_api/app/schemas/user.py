"""
Pydantic models for user data.

Defines schemas for registering users, authenticating, reading user
information and the admin/user password flows.  Passwords are never
returned through the API.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ApiModel


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(ApiModel):
    """Payload for ``/auth/register`` and ``/auth/create-admin``."""

    full_name: str = Field(..., min_length=1, max_length=100, examples=["Ravi Kumar"])
    email: str = Field(..., pattern=EMAIL_PATTERN, examples=["ravi@example.com"])
    password: str = Field(..., min_length=6, examples=["strongpassword"])
    mobile_number: Optional[str] = Field(None, max_length=20, examples=["9876543210"])


class UserLogin(ApiModel):
    # Both optional so the endpoint can answer with a single clear message.
    email: Optional[str] = None
    password: Optional[str] = None


class UserRead(ApiModel):
    """Schema for reading a user from the API."""

    id: int = Field(..., alias="_id")
    full_name: str
    email: str
    mobile_number: Optional[str] = None
    role: str
    is_active: bool = True
    last_login: Optional[datetime] = None
    last_logout: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserWithToken(UserRead):
    token: str


class UserUpdate(ApiModel):
    """Admin update of a user.  Only provided fields are changed."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    mobile_number: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None
    role: Optional[str] = None


class PasswordReset(ApiModel):
    new_password: Optional[str] = None


class PasswordChange(ApiModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
