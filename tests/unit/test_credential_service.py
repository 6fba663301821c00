from __future__ import annotations

import base64
import logging
from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from credential_service.application.dto.validation_models import ValidationOutcome
from credential_service.application.ports.user_repository_port import (
    UserEmailConflictError,
    UserRecord,
)
from credential_service.application.services.credential_service import (
    AuthenticationOutcome,
    CredentialService,
    DuplicateEmailError,
    InvalidTokenError,
    LoginError,
    LoginFailureReason,
    LoginValidationError,
    ProfileOutcome,
    RegistrationOutcome,
    RegistrationValidationError,
)
from credential_service.infrastructure.security.password_hasher import BcryptPasswordHasher
from credential_service.infrastructure.security.token_codec import Base64TokenCodec


class FakeUserRepository:
    def __init__(self, users: list[UserRecord] | None = None) -> None:
        self.users: list[UserRecord] = list(users or [])
        self.calls: list[str] = []
        self.conflict_on_save = False

    async def find_by_email(self, *, email: str) -> UserRecord | None:
        self.calls.append("find_by_email")
        return next((user for user in self.users if user.email == email), None)

    async def find_by_token(self, *, token: str) -> UserRecord | None:
        self.calls.append("find_by_token")
        return next((user for user in self.users if user.token == token), None)

    async def save(self, user: UserRecord) -> UserRecord:
        self.calls.append("save")
        if self.conflict_on_save:
            raise UserEmailConflictError(email=user.email)
        now = datetime.now(tz=UTC)
        saved = replace(user, user_id=uuid4(), created_at=now, updated_at=now)
        self.users.append(saved)
        return saved


class FakePasswordHasher:
    def __init__(self, *, should_verify: bool = True) -> None:
        self.should_verify = should_verify
        self.verify_calls: list[tuple[str, str]] = []

    def hash_password(self, password: str) -> str:
        return f"hashed::{password}"

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        self.verify_calls.append((password, password_hash))
        return self.should_verify


def _user(*, email: str = "ana@example.com", password: str = "secret1") -> UserRecord:
    now = datetime.now(tz=UTC)
    return UserRecord(
        user_id=uuid4(),
        name="Ana",
        email=email,
        password_hash=f"hashed::{password}",
        token=Base64TokenCodec().encode(email=email, password=password),
        created_at=now,
        updated_at=now,
    )


def _service(
    users: FakeUserRepository,
    hasher: FakePasswordHasher | BcryptPasswordHasher | None = None,
) -> CredentialService:
    return CredentialService(
        users=users,
        password_hasher=hasher or FakePasswordHasher(),
        token_codec=Base64TokenCodec(),
    )


@pytest.mark.asyncio
async def test_register_persists_hashed_password_and_token() -> None:
    users = FakeUserRepository()
    service = _service(users)

    result = await service.register(
        name="Ana",
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )

    assert result.outcome is RegistrationOutcome.CREATED
    assert result.user.user_id is not None
    assert result.user.name == "Ana"
    assert result.user.email == "ana@example.com"
    assert result.user.password_hash == "hashed::secret1"
    assert base64.b64decode(result.user.token).decode() == "ana@example.com:secret1"
    assert users.calls == ["find_by_email", "save"]
    assert users.users == [result.user]


@pytest.mark.asyncio
async def test_register_with_validation_errors_never_touches_repository() -> None:
    users = FakeUserRepository()
    service = _service(users)

    with pytest.raises(RegistrationValidationError) as exc_info:
        await service.register(
            name="",
            email="ana@example.com",
            password="secret1",
            validation=ValidationOutcome.invalid({"name": "String should have at least 1 character"}),
        )

    assert exc_info.value.field_errors == {"name": "String should have at least 1 character"}
    assert users.calls == []


@pytest.mark.asyncio
async def test_register_duplicate_email_is_rejected_without_write() -> None:
    existing = _user()
    users = FakeUserRepository([existing])
    service = _service(users)

    with pytest.raises(DuplicateEmailError) as exc_info:
        await service.register(
            name="Other Ana",
            email="ana@example.com",
            password="another",
            validation=ValidationOutcome.valid(),
        )

    assert exc_info.value.email == "ana@example.com"
    assert users.calls == ["find_by_email"]
    assert users.users == [existing]


@pytest.mark.asyncio
async def test_register_email_lookup_is_case_sensitive() -> None:
    users = FakeUserRepository([_user(email="ana@example.com")])
    service = _service(users)

    result = await service.register(
        name="Ana",
        email="Ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )

    assert result.user.email == "Ana@example.com"
    assert len(users.users) == 2


@pytest.mark.asyncio
async def test_register_storage_conflict_surfaces_as_duplicate_email() -> None:
    users = FakeUserRepository()
    users.conflict_on_save = True
    service = _service(users)

    with pytest.raises(DuplicateEmailError) as exc_info:
        await service.register(
            name="Ana",
            email="ana@example.com",
            password="secret1",
            validation=ValidationOutcome.valid(),
        )

    assert exc_info.value.email == "ana@example.com"
    assert isinstance(exc_info.value.__cause__, UserEmailConflictError)
    assert users.calls == ["find_by_email", "save"]


@pytest.mark.asyncio
async def test_register_with_bcrypt_stores_verifiable_hash() -> None:
    users = FakeUserRepository()
    hasher = BcryptPasswordHasher(rounds=4)
    service = _service(users, hasher)

    result = await service.register(
        name="Ana",
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )

    assert result.user.password_hash != "secret1"
    assert hasher.verify_password(password="secret1", password_hash=result.user.password_hash)


@pytest.mark.asyncio
async def test_authenticate_success_returns_stored_and_fresh_basic_tokens() -> None:
    user = _user()
    users = FakeUserRepository([user])
    hasher = FakePasswordHasher(should_verify=True)
    service = _service(users, hasher)

    result = await service.authenticate(
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )

    assert result.outcome is AuthenticationOutcome.SUCCESS
    credentials = result.credentials
    assert credentials.user_id == user.user_id
    assert credentials.email == user.email
    assert credentials.token == user.token
    assert credentials.token_basic == "Basic " + base64.b64encode(
        b"ana@example.com:secret1"
    ).decode()
    assert hasher.verify_calls == [("secret1", "hashed::secret1")]


@pytest.mark.asyncio
async def test_authenticate_basic_token_uses_submitted_password_not_stored_token() -> None:
    user = replace(_user(), token="stored-token-value")
    users = FakeUserRepository([user])
    service = _service(users, FakePasswordHasher(should_verify=True))

    result = await service.authenticate(
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )

    assert result.credentials.token == "stored-token-value"
    assert result.credentials.token_basic == Base64TokenCodec().encode_basic(
        email="ana@example.com",
        password="secret1",
    )


@pytest.mark.asyncio
async def test_authenticate_unknown_email_reports_email_reason() -> None:
    users = FakeUserRepository()
    hasher = FakePasswordHasher(should_verify=True)
    service = _service(users, hasher)

    with pytest.raises(LoginError) as exc_info:
        await service.authenticate(
            email="missing@example.com",
            password="secret1",
            validation=ValidationOutcome.valid(),
        )

    assert exc_info.value.reason is LoginFailureReason.EMAIL
    assert hasher.verify_calls == []


@pytest.mark.asyncio
async def test_authenticate_wrong_password_reports_password_reason() -> None:
    users = FakeUserRepository([_user()])
    hasher = FakePasswordHasher(should_verify=False)
    service = _service(users, hasher)

    with pytest.raises(LoginError) as exc_info:
        await service.authenticate(
            email="ana@example.com",
            password="wrong",
            validation=ValidationOutcome.valid(),
        )

    assert exc_info.value.reason is LoginFailureReason.PASSWORD
    assert "wrong" not in str(exc_info.value)
    assert hasher.verify_calls == [("wrong", "hashed::secret1")]


@pytest.mark.asyncio
async def test_authenticate_with_validation_errors_never_touches_repository() -> None:
    users = FakeUserRepository([_user()])
    service = _service(users)

    with pytest.raises(LoginValidationError) as exc_info:
        await service.authenticate(
            email="not-an-email",
            password="secret1",
            validation=ValidationOutcome.invalid({"email": "String should match pattern"}),
        )

    assert exc_info.value.field_errors == {"email": "String should match pattern"}
    assert users.calls == []


@pytest.mark.asyncio
async def test_get_profile_returns_registered_user_unchanged() -> None:
    users = FakeUserRepository()
    service = _service(users)
    registered = await service.register(
        name="Ana",
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )

    result = await service.get_profile(token=registered.user.token)

    assert result.outcome is ProfileOutcome.SUCCESS
    assert result.user == registered.user
    assert result.user.password_hash == "hashed::secret1"


@pytest.mark.asyncio
async def test_get_profile_with_unknown_token_raises_invalid_token() -> None:
    users = FakeUserRepository([_user()])
    service = _service(users)

    with pytest.raises(InvalidTokenError):
        await service.get_profile(token="bm9ib2R5QGV4YW1wbGUuY29tOng=")

    assert users.calls == ["find_by_token"]


@pytest.mark.asyncio
async def test_get_profile_requires_exact_token_match() -> None:
    user = _user()
    users = FakeUserRepository([user])
    service = _service(users)

    with pytest.raises(InvalidTokenError):
        await service.get_profile(token="Basic " + user.token)


@pytest.mark.asyncio
async def test_register_then_login_scenario_with_bcrypt() -> None:
    users = FakeUserRepository()
    service = _service(users, BcryptPasswordHasher(rounds=4))

    registered = await service.register(
        name="Ana",
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )
    assert base64.b64decode(registered.user.token).decode() == "ana@example.com:secret1"

    login = await service.authenticate(
        email="ana@example.com",
        password="secret1",
        validation=ValidationOutcome.valid(),
    )
    basic_payload = login.credentials.token_basic.removeprefix("Basic ")
    assert base64.b64decode(basic_payload).decode() == "ana@example.com:secret1"
    assert login.credentials.token == registered.user.token

    with pytest.raises(LoginError) as exc_info:
        await service.authenticate(
            email="ana@example.com",
            password="wrong",
            validation=ValidationOutcome.valid(),
        )
    assert exc_info.value.reason is LoginFailureReason.PASSWORD


@pytest.mark.asyncio
async def test_registration_logs_never_contain_password_or_token(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="credential_service")
    users = FakeUserRepository()
    service = _service(users, BcryptPasswordHasher(rounds=4))
    password = "Sup3r-Secret-Value"
    token = Base64TokenCodec().encode(email="ana@example.com", password=password)

    with pytest.raises(RegistrationValidationError):
        await service.register(
            name="",
            email="ana@example.com",
            password=password,
            validation=ValidationOutcome.invalid({"name": "name cannot be blank"}),
        )
    await service.register(
        name="Ana",
        email="ana@example.com",
        password=password,
        validation=ValidationOutcome.valid(),
    )
    with pytest.raises(DuplicateEmailError):
        await service.register(
            name="Ana",
            email="ana@example.com",
            password=password,
            validation=ValidationOutcome.valid(),
        )
    users.conflict_on_save = True
    with pytest.raises(DuplicateEmailError):
        await service.register(
            name="Bea",
            email="bea@example.com",
            password=password,
            validation=ValidationOutcome.valid(),
        )

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        message.startswith("registration_rejected reason=validation") for message in messages
    )
    assert any(message.startswith("user_registered") for message in messages)
    assert messages.count("registration_rejected reason=duplicate_email") == 1
    assert "registration_rejected reason=duplicate_email_on_insert" in messages
    assert password not in caplog.text
    assert token not in caplog.text


@pytest.mark.asyncio
async def test_login_and_profile_logs_never_contain_password_or_token(
    caplog: pytest.LogCaptureFixture,
) -> None:
    users = FakeUserRepository()
    service = _service(users, BcryptPasswordHasher(rounds=4))
    password = "Sup3r-Secret-Value"
    registered = await service.register(
        name="Ana",
        email="ana@example.com",
        password=password,
        validation=ValidationOutcome.valid(),
    )
    caplog.set_level(logging.INFO, logger="credential_service")

    with pytest.raises(LoginValidationError):
        await service.authenticate(
            email="ana@example.com",
            password=password,
            validation=ValidationOutcome.invalid({"email": "String should match pattern"}),
        )
    with pytest.raises(LoginError):
        await service.authenticate(
            email="missing@example.com",
            password=password,
            validation=ValidationOutcome.valid(),
        )
    with pytest.raises(LoginError):
        await service.authenticate(
            email="ana@example.com",
            password="Wr0ng-Secret-Value",
            validation=ValidationOutcome.valid(),
        )
    login = await service.authenticate(
        email="ana@example.com",
        password=password,
        validation=ValidationOutcome.valid(),
    )
    await service.get_profile(token=registered.user.token)
    with pytest.raises(InvalidTokenError):
        await service.get_profile(token="dW5rbm93bkBleGFtcGxlLmNvbTp4")

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("login_rejected reason=validation") for message in messages)
    assert "login_failed reason=email" in messages
    assert any(message.startswith("login_failed reason=password") for message in messages)
    assert any(message.startswith("login_success") for message in messages)
    assert "profile_lookup_failed reason=invalid_token" in messages
    for secret in (
        password,
        "Wr0ng-Secret-Value",
        registered.user.token,
        login.credentials.token_basic,
        "dW5rbm93bkBleGFtcGxlLmNvbTp4",
    ):
        assert secret not in caplog.text
