"""Application service for user registration, login, and token profile lookup."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from credential_service.application.dto.validation_models import ValidationOutcome
from credential_service.application.ports.password_hasher_port import PasswordHasherPort
from credential_service.application.ports.token_codec_port import TokenCodecPort
from credential_service.application.ports.user_repository_port import (
    UserEmailConflictError,
    UserRecord,
    UserRepositoryPort,
)

logger = logging.getLogger(__name__)


class CredentialServiceError(Exception):
    """Base class for terminal credential use-case failures."""


class RegistrationValidationError(CredentialServiceError, ValueError):
    """Raised when registration input failed field validation."""

    def __init__(self, *, field_errors: Mapping[str, str]) -> None:
        super().__init__("invalid registration input")
        self.field_errors = dict(field_errors)


class DuplicateEmailError(CredentialServiceError, ValueError):
    """Raised when registration targets an email that is already stored."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"email already registered: {email}")
        self.email = email


class LoginValidationError(CredentialServiceError, ValueError):
    """Raised when login input failed field validation."""

    def __init__(self, *, field_errors: Mapping[str, str]) -> None:
        super().__init__("invalid login input")
        self.field_errors = dict(field_errors)


class LoginFailureReason(StrEnum):
    """Which credential part rejected a login attempt."""

    EMAIL = "email"
    PASSWORD = "password"


class LoginError(CredentialServiceError, PermissionError):
    """Raised when login credentials are rejected.

    The reason tells an unknown email apart from a wrong password. This lets
    callers enumerate registered emails and is kept for client compatibility.
    """

    def __init__(self, *, reason: LoginFailureReason) -> None:
        super().__init__(f"login rejected: invalid {reason.value}")
        self.reason = reason


class InvalidTokenError(CredentialServiceError, LookupError):
    """Raised when no user matches a presented token."""

    def __init__(self) -> None:
        super().__init__("invalid token")


class RegistrationOutcome(StrEnum):
    """Supported registration outcomes."""

    CREATED = "created"


class AuthenticationOutcome(StrEnum):
    """Supported authentication outcomes."""

    SUCCESS = "success"


class ProfileOutcome(StrEnum):
    """Supported profile lookup outcomes."""

    SUCCESS = "success"


@dataclass(frozen=True)
class Credentials:
    """Login response payload.

    `token` is the stable token stored at registration; `token_basic` is derived
    again from the password submitted with this login.
    """

    user_id: UUID
    email: str
    token: str
    token_basic: str


@dataclass(frozen=True)
class RegistrationResult:
    """Registration result model."""

    outcome: RegistrationOutcome
    user: UserRecord


@dataclass(frozen=True)
class AuthenticationResult:
    """Authentication result model."""

    outcome: AuthenticationOutcome
    credentials: Credentials


@dataclass(frozen=True)
class ProfileResult:
    """Profile lookup result model."""

    outcome: ProfileOutcome
    user: UserRecord


class CredentialService:
    """Register users, verify logins, and resolve profiles by stored token."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        token_codec: TokenCodecPort,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._token_codec = token_codec

    async def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        validation: ValidationOutcome,
    ) -> RegistrationResult:
        """Create one user unless input is invalid or the email is taken.

        The existence check and the insert are separate repository calls, so two
        concurrent registrations of one email can both pass the check. The
        storage unique constraint rejects the second insert.
        """

        if validation.has_errors:
            logger.info(
                "registration_rejected reason=validation fields=%s",
                ",".join(sorted(validation.field_errors)),
            )
            raise RegistrationValidationError(field_errors=validation.field_errors)

        existing = await self._users.find_by_email(email=email)
        if existing is not None:
            logger.info("registration_rejected reason=duplicate_email")
            raise DuplicateEmailError(email=email)

        user = UserRecord(
            user_id=None,
            name=name,
            email=email,
            password_hash=self._password_hasher.hash_password(password),
            token=self._token_codec.encode(email=email, password=password),
        )
        try:
            saved = await self._users.save(user)
        except UserEmailConflictError as error:
            logger.warning("registration_rejected reason=duplicate_email_on_insert")
            raise DuplicateEmailError(email=email) from error

        logger.info("user_registered user_id=%s", saved.user_id)
        return RegistrationResult(outcome=RegistrationOutcome.CREATED, user=saved)

    async def authenticate(
        self,
        *,
        email: str,
        password: str,
        validation: ValidationOutcome,
    ) -> AuthenticationResult:
        """Verify credentials and return the stored and freshly derived tokens."""

        if validation.has_errors:
            logger.info(
                "login_rejected reason=validation fields=%s",
                ",".join(sorted(validation.field_errors)),
            )
            raise LoginValidationError(field_errors=validation.field_errors)

        user = await self._users.find_by_email(email=email)
        if user is None:
            logger.info("login_failed reason=%s", LoginFailureReason.EMAIL.value)
            raise LoginError(reason=LoginFailureReason.EMAIL)

        is_valid = self._password_hasher.verify_password(
            password=password,
            password_hash=user.password_hash,
        )
        if not is_valid:
            logger.info(
                "login_failed reason=%s user_id=%s",
                LoginFailureReason.PASSWORD.value,
                user.user_id,
            )
            raise LoginError(reason=LoginFailureReason.PASSWORD)

        assert user.user_id is not None
        credentials = Credentials(
            user_id=user.user_id,
            email=user.email,
            token=user.token,
            token_basic=self._token_codec.encode_basic(email=email, password=password),
        )
        logger.info("login_success user_id=%s", user.user_id)
        return AuthenticationResult(
            outcome=AuthenticationOutcome.SUCCESS,
            credentials=credentials,
        )

    async def get_profile(self, *, token: str) -> ProfileResult:
        """Return the full stored user record matching the exact token."""

        user = await self._users.find_by_token(token=token)
        if user is None:
            logger.info("profile_lookup_failed reason=invalid_token")
            raise InvalidTokenError()

        return ProfileResult(outcome=ProfileOutcome.SUCCESS, user=user)
