"""Route guard tests on a minimal app with the authenticated user overridden."""

import unittest
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.api.v1.auth import get_current_user
from app.api.v1.guards import require_ability, require_permission, require_role
from app.models import Permission, Role, User


def _build_app(user: User) -> FastAPI:
    app = FastAPI()

    @app.get("/permission")
    def permission_route(_u: Annotated[User, Depends(require_permission("read user", "update user"))]):
        return {"ok": True}

    @app.get("/role")
    def role_route(_u: Annotated[User, Depends(require_role("superuser"))]):
        return {"ok": True}

    @app.get("/ability")
    def ability_route(_u: Annotated[User, Depends(require_ability("superuser", "read role"))]):
        return {"ok": True}

    app.dependency_overrides[get_current_user] = lambda: user
    return app


class TestGuards(unittest.TestCase):
    def _client(self, permissions=(), roles=()) -> TestClient:
        user = User(id="u1", name="G", email="g@example.com", username="guarded", password_hash="x")
        user.permissions = list(permissions)
        user.roles = list(roles)
        return TestClient(_build_app(user))

    def test_permission_guard(self) -> None:
        client = self._client(permissions=[Permission(key="update user")])
        self.assertEqual(client.get("/permission").status_code, 200)
        self.assertEqual(client.get("/role").status_code, 403)

    def test_role_guard(self) -> None:
        client = self._client(roles=[Role(key="superuser")])
        self.assertEqual(client.get("/role").status_code, 200)
        self.assertEqual(client.get("/permission").status_code, 403)

    def test_ability_guard_accepts_role_or_permission(self) -> None:
        developer = Role(key="developer")
        developer.permissions = [Permission(key="read role")]
        self.assertEqual(self._client(roles=[developer]).get("/ability").status_code, 200)
        self.assertEqual(self._client(roles=[Role(key="superuser")]).get("/ability").status_code, 200)
        resp = self._client().get("/ability")
        self.assertEqual(resp.status_code, 403)
        self.assertIn("permission", resp.json()["detail"])


if __name__ == "__main__":
    unittest.main()
