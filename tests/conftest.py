"""
Test configuration. Settings are read once (lru_cache) when app modules are
first imported, so the environment must point at in-memory SQLite before any
`app` import happens.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_KEY"] = "test-app-key-0123456789abcdef"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["CSRF_ENABLED"] = "true"
os.environ["REQUIRE_EMAIL_VERIFICATION"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import app.core.security as security  # noqa: E402

# Minimum bcrypt cost keeps the suite fast; hashes stay salted and verifiable.
security.BCRYPT_ROUNDS = 4
