"""
Token codec: authenticated symmetric encryption of small JSON payloads.

Used for CSRF tokens, email verification tokens and password reset tokens.
Tokens are Fernet tokens (AES-CBC + HMAC-SHA256) so holders of the server key
can read them and any tampering is detected. The codec enforces no expiry;
callers put an `expired_at` field in the payload and check it themselves.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
from functools import lru_cache
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from app.core.config import get_settings

logger = logging.getLogger(__name__)


def _fernet_key(secret: str) -> bytes:
    """Derive a valid 32-byte urlsafe-base64 Fernet key from an arbitrary secret."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class TokenCodec:
    """Encode JSON-serializable payloads into opaque tokens and back."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Token codec secret must be non-empty")
        self._fernet = Fernet(_fernet_key(secret))

    def encode(self, payload: Any) -> str:
        data = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return self._fernet.encrypt(data.encode("utf-8")).decode("ascii")

    def decode(self, token: str | None) -> Any | None:
        """Return the payload, or None if the token is malformed, tampered or foreign."""
        if not token:
            return None
        try:
            data = self._fernet.decrypt(token.encode("utf-8"))
            return json.loads(data.decode("utf-8"))
        except (InvalidToken, binascii.Error, UnicodeError, ValueError):
            logger.debug("Rejected undecodable token")
            return None


@lru_cache
def _codec_for(secret: str) -> TokenCodec:
    return TokenCodec(secret)


def get_token_codec() -> TokenCodec:
    """Dependency: codec keyed by the configured APP_KEY."""
    return _codec_for(get_settings().APP_KEY.get_secret_value())
