"""Port for deriving opaque identity tokens from credential pairs."""

from __future__ import annotations

from typing import Protocol


class TokenCodecPort(Protocol):
    """Deterministic token encoding contract."""

    def encode(self, *, email: str, password: str) -> str:
        """Return the plain token for one email/password pair."""

    def encode_basic(self, *, email: str, password: str) -> str:
        """Return the `Basic `-prefixed token for one email/password pair."""
