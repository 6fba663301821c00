"""credential-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from credential_service.application.services.credential_service import CredentialService
from credential_service.config.settings import load_settings
from credential_service.infrastructure.db.session import create_session_factory
from credential_service.infrastructure.db.user_repository import SqlAlchemyUserRepository
from credential_service.infrastructure.http.auth_router import build_auth_router
from credential_service.infrastructure.logging import configure_logging
from credential_service.infrastructure.security.password_hasher import (
    DEFAULT_BCRYPT_ROUNDS,
    BcryptPasswordHasher,
)
from credential_service.infrastructure.security.token_codec import Base64TokenCodec

API_HOST = "0.0.0.0"
API_PORT = 8000
logger = logging.getLogger(__name__)


def build_credential_service(
    database_url: str,
    *,
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> CredentialService:
    """Build credential service with SQLAlchemy-backed dependencies."""

    session_factory = create_session_factory(database_url)
    return CredentialService(
        users=SqlAlchemyUserRepository(session_factory),
        password_hasher=BcryptPasswordHasher(rounds=bcrypt_rounds),
        token_codec=Base64TokenCodec(),
    )


def create_app(*, credential_service: CredentialService | None = None) -> FastAPI:
    """Create FastAPI app for registration, login, and profile routes."""

    if credential_service is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        credential_service = build_credential_service(
            settings.database_url,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
        logger.info("credential_api_configured bcrypt_rounds=%s", settings.bcrypt_rounds)

    app = FastAPI()
    app.include_router(build_auth_router(credential_service=credential_service))

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run_asgi_server(*, host: str = API_HOST, port: int = API_PORT) -> None:
    """Run credential-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run credential-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
