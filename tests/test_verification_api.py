"""API tests: registration, email verification and the forgot-password flow."""

import unittest
from datetime import timedelta

from support import API, PASSWORD, ApiTestCase, make_user, session, token_from_mail

from app.core.tokens import get_token_codec
from app.models import User
from app.models.base import utcnow
from app.services.users import UserRepository
from app.services.verification import PURPOSE_RESET, PURPOSE_VERIFY, mint_user_token

REGISTRATION = {
    "name": "Carol",
    "email": "Carol@Example.com",
    "username": "carol",
    "password": PASSWORD,
    "password_confirmation": PASSWORD,
}


def _expired_token(user: User, purpose: str) -> str:
    return mint_user_token(get_token_codec(), user, purpose, hours=1, now=utcnow() - timedelta(hours=2))


class TestRegistration(ApiTestCase):
    def _register(self, **overrides):
        return self.client.post(
            f"{API}/register", json={**REGISTRATION, **overrides}, headers=self.csrf_headers()
        )

    def test_register_then_verify_then_login(self) -> None:
        resp = self._register()
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["user"]["email"], "carol@example.com")
        self.assertIsNone(resp.json()["user"]["email_verified_at"])
        self.assertEqual(len(self.mailer.sent), 1)
        self.assertEqual(self.mailer.sent[0].to, "carol@example.com")

        login = {"username": "carol", "password": PASSWORD}
        resp = self.client.post(f"{API}/login", json=login, headers=self.csrf_headers())
        self.assertEqual(resp.status_code, 403)

        token = token_from_mail(self.mailer.sent[0])
        resp = self.client.get(f"{API}/verify", params={"token": token})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(self.event_names(), ["user:registered", "user:verified"])

        resp = self.client.post(f"{API}/login", json=login, headers=self.csrf_headers())
        self.assertEqual(resp.status_code, 200)

    def test_verifying_twice_keeps_the_first_timestamp(self) -> None:
        self._register()
        token = token_from_mail(self.mailer.sent[0])
        self.client.get(f"{API}/verify", params={"token": token})
        with session() as db:
            first = UserRepository(db).by_username("carol").email_verified_at
        self.assertEqual(self.client.get(f"{API}/verify", params={"token": token}).status_code, 200)
        with session() as db:
            self.assertEqual(UserRepository(db).by_username("carol").email_verified_at, first)

    def test_duplicate_username_and_email_are_field_errors(self) -> None:
        with session() as db:
            make_user(db, "carol")
        resp = self._register(email="carol@example.com")
        self.assertEqual(resp.status_code, 422)
        fields = {e["field"] for e in resp.json()["detail"]}
        self.assertEqual(fields, {"username", "email"})
        self.assertEqual(self.mailer.sent, [])

    def test_password_confirmation_must_match(self) -> None:
        resp = self._register(password_confirmation="different1")
        self.assertEqual(resp.status_code, 422)

    def test_custom_link_base_is_used(self) -> None:
        self._register(next="https://admin.example.com/app")
        self.assertIn("https://admin.example.com/app/verify?token=", self.mailer.sent[0].body)


class TestVerifyToken(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        with session() as db:
            self.user_id = make_user(db, "dave", verified=False).id

    def _user(self, db) -> User:
        return db.get(User, self.user_id)

    def test_missing_and_garbage_tokens_get_400(self) -> None:
        self.assertEqual(self.client.get(f"{API}/verify").status_code, 400)
        resp = self.client.get(f"{API}/verify", params={"token": "garbage"})
        self.assertEqual(resp.status_code, 400)

    def test_reset_token_cannot_verify_email(self) -> None:
        with session() as db:
            token = mint_user_token(get_token_codec(), self._user(db), PURPOSE_RESET, hours=1)
        self.assertEqual(self.client.get(f"{API}/verify", params={"token": token}).status_code, 400)

    def test_expired_token_gets_419_and_a_fresh_link(self) -> None:
        with session() as db:
            token = _expired_token(self._user(db), PURPOSE_VERIFY)
        resp = self.client.get(f"{API}/verify", params={"token": token})
        self.assertEqual(resp.status_code, 419)
        self.assertEqual(len(self.mailer.sent), 1)

        fresh = token_from_mail(self.mailer.sent[0])
        self.assertEqual(self.client.get(f"{API}/verify", params={"token": fresh}).status_code, 200)

    def test_token_for_deleted_user_gets_404(self) -> None:
        with session() as db:
            user = self._user(db)
            token = mint_user_token(get_token_codec(), user, PURPOSE_VERIFY, hours=1)
            UserRepository(db).delete(user)
        self.assertEqual(self.client.get(f"{API}/verify", params={"token": token}).status_code, 404)


class TestForgotPassword(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        with session() as db:
            self.user_id = make_user(db, "erin").id

    def _reset(self, token: str, password: str = "new-password1"):
        return self.client.put(
            f"{API}/forgot-password",
            json={"token": token, "password": password, "password_confirmation": password},
            headers=self.csrf_headers(),
        )

    def test_unknown_and_known_emails_get_the_same_answer(self) -> None:
        known = self.client.post(
            f"{API}/forgot-password", json={"email": "erin@example.com"}, headers=self.csrf_headers()
        )
        unknown = self.client.post(
            f"{API}/forgot-password", json={"email": "ghost@example.com"}, headers=self.csrf_headers()
        )
        self.assertEqual(known.status_code, 201)
        self.assertEqual(known.json(), unknown.json())
        self.assertEqual(len(self.mailer.sent), 1)

    def test_reset_changes_password_and_signs_out_everywhere(self) -> None:
        old_session = self.login("erin")
        self.client.post(
            f"{API}/forgot-password", json={"email": "ERIN@example.com"}, headers=self.csrf_headers()
        )
        token = token_from_mail(self.mailer.sent[0])
        self.assertIn("/reset-password?token=", self.mailer.sent[0].body)

        resp = self._reset(token)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertIn("user:password-reset", self.event_names())
        self.assertEqual(self.client.get(f"{API}/user", headers=self.auth(old_session)).status_code, 401)
        self.login("erin", "new-password1")

    def test_reset_link_works_only_once(self) -> None:
        self.client.post(
            f"{API}/forgot-password", json={"email": "erin@example.com"}, headers=self.csrf_headers()
        )
        token = token_from_mail(self.mailer.sent[0])
        self.assertEqual(self._reset(token).status_code, 200)
        self.assertEqual(self._reset(token, "third-password").status_code, 400)
        self.login("erin", "new-password1")

    def test_reset_link_dies_when_the_password_changes_elsewhere(self) -> None:
        with session() as db:
            user = db.get(User, self.user_id)
            token = mint_user_token(get_token_codec(), user, PURPOSE_RESET, hours=1)
            user.password = "changed-by-owner"
        self.assertEqual(self._reset(token).status_code, 400)

    def test_verification_token_cannot_reset_password(self) -> None:
        with session() as db:
            token = mint_user_token(get_token_codec(), db.get(User, self.user_id), PURPOSE_VERIFY, hours=1)
        self.assertEqual(self._reset(token).status_code, 400)

    def test_expired_reset_token_gets_419(self) -> None:
        with session() as db:
            token = _expired_token(db.get(User, self.user_id), PURPOSE_RESET)
        self.assertEqual(self._reset(token).status_code, 419)
        self.assertEqual(self.mailer.sent, [])
        self.login("erin")


if __name__ == "__main__":
    unittest.main()
