"""API tests: CSRF enforcement, login, bearer authentication and logout."""

import unittest

from support import API, ApiTestCase, make_user, session

from app.models import ApiToken


class TestCsrfEnforcement(ApiTestCase):
    def test_csrf_endpoint_issues_token_without_header(self) -> None:
        resp = self.client.post(f"{API}/csrf")
        self.assertEqual(resp.status_code, 201)
        self.assertTrue(resp.json()["token"])

    def test_mutating_request_without_token_gets_419(self) -> None:
        resp = self.client.post(f"{API}/login", json={"username": "x", "password": "password1"})
        self.assertEqual(resp.status_code, 419)
        self.assertIn("Page expired", resp.json()["detail"])

    def test_token_cannot_be_replayed(self) -> None:
        with session() as db:
            make_user(db, "alice")
        headers = self.csrf_headers()
        body = {"username": "alice", "password": "password1"}
        first = self.client.post(f"{API}/login", json=body, headers=headers)
        second = self.client.post(f"{API}/login", json=body, headers=headers)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 419)

    def test_safe_methods_are_not_checked(self) -> None:
        resp = self.client.get(f"{API}/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["database"], "connected")


class TestLogin(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        with session() as db:
            make_user(db, "alice")
            make_user(db, "pending", verified=False)

    def _login(self, username: str, password: str):
        return self.client.post(
            f"{API}/login",
            json={"username": username, "password": password},
            headers=self.csrf_headers(),
        )

    def test_success_returns_bearer_token(self) -> None:
        resp = self._login("Alice", "password1")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["type"], "bearer")
        self.assertEqual(data["expires_in"], 259200)
        self.assertEqual(data["user"]["username"], "alice")
        self.assertNotIn("password_hash", data["user"])
        self.assertEqual(self.event_names(), ["user:login"])

    def test_wrong_password_and_unknown_user_look_the_same(self) -> None:
        wrong = self._login("alice", "password2")
        unknown = self._login("nobody", "password1")
        self.assertEqual(wrong.status_code, 422)
        self.assertEqual(unknown.status_code, 422)
        self.assertEqual(wrong.json(), unknown.json())
        self.assertEqual(wrong.json()["detail"][0]["field"], "password")

    def test_unverified_user_is_refused_after_password_check(self) -> None:
        self.assertEqual(self._login("pending", "password1").status_code, 403)
        self.assertEqual(self._login("pending", "wrong-password").status_code, 422)


class TestBearerAuthentication(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        with session() as db:
            make_user(db, "alice")

    def test_missing_and_invalid_tokens_get_401(self) -> None:
        self.assertEqual(self.client.get(f"{API}/user").status_code, 401)
        resp = self.client.get(f"{API}/user", headers={"Authorization": "Bearer nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers["www-authenticate"], "Bearer")

    def test_logout_revokes_only_the_presented_token(self) -> None:
        first = self.login("alice")
        second = self.login("alice")
        resp = self.client.delete(f"{API}/logout", headers=self.auth(first, csrf=True))
        self.assertEqual(resp.status_code, 200)
        self.assertIn("user:logout", self.event_names())
        self.assertEqual(self.client.get(f"{API}/user", headers=self.auth(first)).status_code, 401)
        self.assertEqual(self.client.get(f"{API}/user", headers=self.auth(second)).status_code, 200)
        with session() as db:
            self.assertEqual(db.query(ApiToken).count(), 1)


if __name__ == "__main__":
    unittest.main()
