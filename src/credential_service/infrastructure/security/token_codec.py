"""Base64 token codec adapter for legacy credential tokens.

Tokens are `base64(ascii(email + ":" + password))`, optionally prefixed with
`Basic `. Anyone holding a token can decode the password from it; the format is
kept bit-for-bit so tokens already stored keep resolving.

Characters outside ASCII are replaced by `?` before encoding, so distinct
non-ASCII inputs can produce the same token.
"""

from __future__ import annotations

import base64

from credential_service.application.ports.token_codec_port import TokenCodecPort

BASIC_PREFIX = "Basic "


class Base64TokenCodec(TokenCodecPort):
    """Deterministic, reversible token encoder."""

    def encode(self, *, email: str, password: str) -> str:
        structure = f"{email}:{password}".encode("ascii", errors="replace")
        return base64.b64encode(structure).decode("ascii")

    def encode_basic(self, *, email: str, password: str) -> str:
        return BASIC_PREFIX + self.encode(email=email, password=password)
