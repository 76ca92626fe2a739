"""Authentication schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

MAX_EMAIL_LENGTH = 100


class AuthRequest(BaseModel):
    """Login (or first-time registration) request."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=32)

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, v: Any) -> Any:
        """Reject overlong emails before format validation."""
        _ = cls
        if isinstance(v, str) and len(v) > MAX_EMAIL_LENGTH:
            raise ValueError(f"Email length must be between 1 and {MAX_EMAIL_LENGTH}")
        return v


class AuthResponse(BaseModel):
    """Issued access token."""

    token: str


class UserResponse(BaseModel):
    """Current user info."""

    id: int
    email: str
    nickname: str | None = None
