"""Unit tests for the RBAC predicates on User and Role (no database needed)."""

import unittest

from app.models import Permission, Role, User
from app.models.permission import as_key_list


def _user(permissions=(), roles=()) -> User:
    user = User(name="Test", email="test@example.com", username="test", password_hash="x")
    user.permissions = list(permissions)
    user.roles = list(roles)
    return user


class TestKeyNormalization(unittest.TestCase):
    def test_single_key_and_lists(self) -> None:
        self.assertEqual(as_key_list("Read User "), ["read user"])
        self.assertEqual(as_key_list(["a", " ", "B"]), ["a", "b"])
        self.assertEqual(as_key_list(None), [])

    def test_model_keys_are_lowercased(self) -> None:
        self.assertEqual(Permission(key=" Update Role").key, "update role")
        self.assertEqual(Role(key="Developer").key, "developer")
        user = User(name="X", email="X@Example.COM", username="Alice", password_hash="x")
        self.assertEqual(user.email, "x@example.com")
        self.assertEqual(user.username, "alice")


class TestUserPredicates(unittest.TestCase):
    def setUp(self) -> None:
        self.read_user = Permission(key="read user")
        self.update_user = Permission(key="update user")
        self.read_role = Permission(key="read role")
        self.developer = Role(key="developer")
        self.developer.permissions = [self.read_role]

    def test_direct_permission(self) -> None:
        user = _user(permissions=[self.read_user])
        self.assertTrue(user.has_permission("read user"))
        self.assertFalse(user.has_permission("update user"))

    def test_permission_through_role(self) -> None:
        user = _user(roles=[self.developer])
        self.assertTrue(user.has_permission("read role"))
        self.assertEqual(user.granted_permission_keys(), {"read role"})

    def test_any_of_several_keys_is_enough(self) -> None:
        user = _user(permissions=[self.update_user])
        self.assertTrue(user.has_permission(["read user", "update user"]))
        self.assertFalse(user.has_permission(["read user", "delete user"]))

    def test_empty_request_is_never_granted(self) -> None:
        user = _user(permissions=[self.read_user], roles=[self.developer])
        self.assertFalse(user.has_permission([]))
        self.assertFalse(user.has_role([]))
        self.assertFalse(user.can([]))

    def test_has_role(self) -> None:
        user = _user(roles=[self.developer])
        self.assertTrue(user.has_role("developer"))
        self.assertTrue(user.has_role(["superuser", "Developer"]))
        self.assertFalse(user.has_role("superuser"))

    def test_can_matches_permissions_or_roles(self) -> None:
        user = _user(permissions=[self.read_user], roles=[self.developer])
        self.assertTrue(user.can("read user"))
        self.assertTrue(user.can("developer"))
        self.assertTrue(user.can(["nothing", "read role"]))
        self.assertFalse(user.can(["superuser", "delete user"]))

    def test_role_has_permission(self) -> None:
        self.assertTrue(self.developer.has_permission("read role"))
        self.assertFalse(self.developer.has_permission("read user"))

    def test_password_is_write_only(self) -> None:
        user = User(name="P", email="p@example.com", username="p", password="password1")
        self.assertIsNone(user.password)
        self.assertTrue(user.password_hash.startswith("$2"))


if __name__ == "__main__":
    unittest.main()
