"""User Pydantic schemas."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


class UserBase(BaseModel):
    """Base schema for user data."""

    email: EmailStr
    username: str
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None


class UserCreate(UserBase):
    """Schema for creating the local user row after provider sign-up."""

    id: UUID


class UserUpdate(BaseModel):
    """Schema for updating profile data."""

    full_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = None
    bio: str | None = Field(default=None, max_length=500)


class UserResponse(UserBase):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, description="Account password")
    remember: bool = False


class RegisterRequest(BaseModel):
    """Registration form payload."""

    email: EmailStr
    username: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=8)
    confirm_password: str
    accept_terms: bool

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Require upper case, lower case and a digit."""
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain uppercase")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain lowercase")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain number")
        return v

    @model_validator(mode="after")
    def check_passwords(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        if not self.accept_terms:
            raise ValueError("You must accept the terms")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=8)
    confirm_password: str

    @model_validator(mode="after")
    def check_passwords(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self
