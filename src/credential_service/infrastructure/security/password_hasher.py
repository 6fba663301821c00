"""Bcrypt password hasher adapter."""

from __future__ import annotations

import bcrypt

from credential_service.application.ports.password_hasher_port import PasswordHasherPort

DEFAULT_BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of its input.
_BCRYPT_MAX_INPUT_BYTES = 72


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt."""

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_encode_password(password), salt).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_encode_password(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False


def _encode_password(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_INPUT_BYTES]
