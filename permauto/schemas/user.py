"""User schemas for request/response validation."""
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from permauto.auth import MAX_PASSWORD_BYTES
from permauto.models.user import UserRole
from permauto.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    """Schema for self-registration."""
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=4)

    @field_validator("password")
    @classmethod
    def password_fits_hash(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(CamelModel):
    """Schema for signing in."""
    email: EmailStr
    password: str = Field(min_length=1)
    remember_me: bool = False


class RoleUpdate(CamelModel):
    """Schema for an administrator changing a user's role."""
    role: str = Field(min_length=1)


class UserResponse(CamelModel):
    """Schema for user response. Never carries the password hash."""
    id: str
    name: str
    email: str
    role: UserRole
    created_at: datetime


class UserEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class UserListEnvelope(CamelModel):
    success: bool = True
    users: List[UserResponse]


class MessageEnvelope(CamelModel):
    success: bool = True
    message: str
