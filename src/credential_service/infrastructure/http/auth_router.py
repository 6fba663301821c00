"""FastAPI router mapping credential use-case outcomes to HTTP responses."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from credential_service.application.dto.auth_models import CredentialsResponse, UserResponse
from credential_service.application.ports.user_repository_port import UserRecord
from credential_service.application.services.credential_service import (
    CredentialService,
    DuplicateEmailError,
    InvalidTokenError,
    LoginError,
    LoginValidationError,
    RegistrationValidationError,
)
from credential_service.infrastructure.http.request_validation import (
    validate_login_body,
    validate_registration_body,
)

_ACCEPTED_TOKEN_SCHEMES = {"basic", "bearer"}


class MissingProfileTokenError(PermissionError):
    """Raised when a profile request carries no token."""


def extract_profile_token(authorization_header: str | None) -> str:
    """Return the token from an `Authorization` header value.

    `Basic <token>` and `Bearer <token>` have their scheme removed; any other
    value is used verbatim.
    """

    if authorization_header is None or not authorization_header.strip():
        raise MissingProfileTokenError("missing token")

    parts = authorization_header.strip().split()
    if len(parts) == 2 and parts[0].lower() in _ACCEPTED_TOKEN_SCHEMES:
        return parts[1]
    return authorization_header.strip()


def build_auth_router(*, credential_service: CredentialService) -> APIRouter:
    """Build router exposing registration, login, and profile endpoints."""

    router = APIRouter(tags=["users"])

    @router.post("/users/register", status_code=201, response_model=UserResponse)
    async def register(request: Request) -> UserResponse:
        fields, validation = validate_registration_body(await request.body())
        try:
            result = await credential_service.register(
                name=fields.name,
                email=fields.email,
                password=fields.password,
                validation=validation,
            )
        except RegistrationValidationError as exc:
            raise HTTPException(
                status_code=400,
                detail={"message": str(exc), "field_errors": exc.field_errors},
            ) from exc
        except DuplicateEmailError as exc:
            raise HTTPException(
                status_code=400,
                detail={"message": str(exc), "email": exc.email},
            ) from exc

        return _to_user_response(result.user)

    @router.post("/users/login", response_model=CredentialsResponse)
    async def login(request: Request) -> CredentialsResponse:
        fields, validation = validate_login_body(await request.body())
        try:
            result = await credential_service.authenticate(
                email=fields.email,
                password=fields.password,
                validation=validation,
            )
        except LoginValidationError as exc:
            raise HTTPException(
                status_code=400,
                detail={"message": str(exc), "field_errors": exc.field_errors},
            ) from exc
        except LoginError as exc:
            raise HTTPException(
                status_code=401,
                detail={"message": str(exc), "reason": exc.reason.value},
            ) from exc

        credentials = result.credentials
        return CredentialsResponse(
            user_id=credentials.user_id,
            email=credentials.email,
            token=credentials.token,
            token_basic=credentials.token_basic,
        )

    @router.get("/users/profile", response_model=UserResponse)
    async def profile(request: Request) -> UserResponse:
        try:
            token = extract_profile_token(request.headers.get("authorization"))
            result = await credential_service.get_profile(token=token)
        except MissingProfileTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except InvalidTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc

        return _to_user_response(result.user)

    return router


def _to_user_response(user: UserRecord) -> UserResponse:
    assert user.user_id is not None
    return UserResponse(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        token=user.token,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
