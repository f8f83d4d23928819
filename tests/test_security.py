"""Unit tests for password hashing and access token signing."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.config import get_settings
from app.core.security import (
    access_token_lifetime,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_verifies_and_is_salted(self) -> None:
        first = hash_password("password1")
        second = hash_password("password1")
        self.assertNotEqual(first, "password1")
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("password1", first))
        self.assertTrue(verify_password("password1", second))

    def test_wrong_password_and_bad_hash(self) -> None:
        hashed = hash_password("password1")
        self.assertFalse(verify_password("password2", hashed))
        self.assertFalse(verify_password("password1", None))
        self.assertFalse(verify_password("password1", "not-a-bcrypt-hash"))


class TestAccessToken(unittest.TestCase):
    def test_round_trip_carries_subject_and_jti(self) -> None:
        expires_at = datetime.now(UTC) + timedelta(minutes=5)
        token = create_access_token(sub="user-1", jti="token-1", expires_at=expires_at)
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], "user-1")
        self.assertEqual(payload["jti"], "token-1")

    def test_expired_token_is_rejected(self) -> None:
        expires_at = datetime.now(UTC) - timedelta(seconds=5)
        token = create_access_token(sub="user-1", jti="token-1", expires_at=expires_at)
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_token_without_jti_is_rejected(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.MissingRequiredClaimError):
            decode_access_token(token)

    def test_default_lifetime_is_three_days(self) -> None:
        self.assertEqual(access_token_lifetime(get_settings()), timedelta(days=3))


if __name__ == "__main__":
    unittest.main()
