"""Port for user persistence operations used by credential services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """User persistence model.

    `user_id` is None until the record is saved for the first time.
    """

    user_id: UUID | None
    name: str
    email: str
    password_hash: str
    token: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserEmailConflictError(ValueError):
    """Raised by storage when a write would duplicate an existing email."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"email already registered: {email}")
        self.email = email


class UserRepositoryPort(Protocol):
    """User repository contract."""

    async def find_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by exact stored email or None."""

    async def find_by_token(self, *, token: str) -> UserRecord | None:
        """Return user by exact stored token or None."""

    async def save(self, user: UserRecord) -> UserRecord:
        """Insert a new user (assigning its id) or update an existing one."""
