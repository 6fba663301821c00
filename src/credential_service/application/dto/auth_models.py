"""Pydantic models for registration, login, and profile HTTP contracts."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"
MAX_NAME_LENGTH = 120
MAX_PASSWORD_LENGTH = 72


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class RegisterRequest(StrictModel):
    """HTTP request model for user registration.

    Name length limits apply to the name without surrounding whitespace; the
    submitted value is stored unchanged.
    """

    name: str
    email: str = Field(min_length=3, max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)

    @field_validator("name")
    @classmethod
    def _check_stripped_name_length(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name cannot be blank")
        if len(stripped) > MAX_NAME_LENGTH:
            raise ValueError(f"name must be at most {MAX_NAME_LENGTH} characters")
        return value


class LoginRequest(StrictModel):
    """HTTP request model for credential verification."""

    email: str = Field(min_length=3, max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


class UserResponse(StrictModel):
    """HTTP response model for a persisted user record."""

    user_id: UUID
    name: str
    email: str
    password_hash: str
    token: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CredentialsResponse(StrictModel):
    """HTTP response model for successful login credentials."""

    user_id: UUID
    email: str
    token: str
    token_basic: str
