"""SQLAlchemy adapter for user persistence."""

from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from credential_service.application.ports.user_repository_port import (
    UserEmailConflictError,
    UserRecord,
    UserRepositoryPort,
)
from credential_service.infrastructure.db.metadata import users


def _is_duplicate_email_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "users.email" in message or "uq_users_email" in message


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by exact stored email."""

        statement = sa.select(*users.c).where(users.c.email == email).limit(1)
        return await self._fetch_one(statement)

    async def find_by_token(self, *, token: str) -> UserRecord | None:
        """Return user by exact stored token."""

        statement = sa.select(*users.c).where(users.c.token == token).limit(1)
        return await self._fetch_one(statement)

    async def save(self, user: UserRecord) -> UserRecord:
        """Insert a new user row or update the existing row with the same id."""

        if user.user_id is None:
            statement = (
                sa.insert(users)
                .values(
                    id=uuid4(),
                    name=user.name,
                    email=user.email,
                    password_hash=user.password_hash,
                    token=user.token,
                )
                .returning(*users.c)
            )
        else:
            statement = (
                sa.update(users)
                .where(users.c.id == user.user_id)
                .values(
                    name=user.name,
                    email=user.email,
                    password_hash=user.password_hash,
                    token=user.token,
                    updated_at=sa.text("CURRENT_TIMESTAMP"),
                )
                .returning(*users.c)
            )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                row = result.mappings().first()
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_email_error(error):
                    raise UserEmailConflictError(email=user.email) from error
                raise

        if row is None:
            raise LookupError(f"user not found: {user.user_id}")
        return _to_user_record(row)

    async def _fetch_one(self, statement: sa.Select[tuple[object, ...]]) -> UserRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    raw_user_id = row["id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    return UserRecord(
        user_id=user_id,
        name=cast(str, row["name"]),
        email=cast(str, row["email"]),
        password_hash=cast(str, row["password_hash"]),
        token=cast(str, row["token"]),
        created_at=cast(datetime, row["created_at"]),
        updated_at=cast(datetime, row["updated_at"]),
    )
