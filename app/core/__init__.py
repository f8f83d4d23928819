"""Core app configuration, database and token primitives."""

from app.core.config import get_settings, settings
from app.core.database import get_db, transaction
from app.core.tokens import TokenCodec, get_token_codec

__all__ = ["get_settings", "settings", "get_db", "transaction", "TokenCodec", "get_token_codec"]
