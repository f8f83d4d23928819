"""Shared test helpers: fresh in-memory schema per test, seeded users and an API client."""

import unittest
from collections.abc import Iterator
from contextlib import contextmanager
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import SessionLocal, engine
from app.main import app
from app.models import Base, Permission, Role, User
from app.models.base import utcnow
from app.services.events import EventDispatcher
from app.services.mail import Mailer, MailMessage

API = get_settings().API_V1_PREFIX
PASSWORD = "password1"


class RecordingMailer(Mailer):
    def __init__(self) -> None:
        self.sent: list[MailMessage] = []

    def send(self, message: MailMessage) -> None:
        self.sent.append(message)


def token_from_mail(message: MailMessage) -> str:
    """Pull the `token` query parameter out of the link in a mail body."""
    for word in message.body.split():
        if "token=" in word:
            return parse_qs(urlparse(word).query)["token"][0]
    raise AssertionError(f"No token link in mail: {message.body!r}")


@contextmanager
def session() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    finally:
        db.close()


def make_user(
    db: Session,
    username: str,
    password: str = PASSWORD,
    verified: bool = True,
    roles: list[Role] | None = None,
    permissions: list[Permission] | None = None,
) -> User:
    user = User(
        name=username.title(),
        email=f"{username}@example.com",
        username=username,
        password=password,
        email_verified_at=utcnow() if verified else None,
    )
    user.roles = roles or []
    user.permissions = permissions or []
    db.add(user)
    db.flush()
    return user


class DatabaseTestCase(unittest.TestCase):
    """Creates every table before each test and drops them afterwards."""

    def setUp(self) -> None:
        Base.metadata.create_all(engine)

    def tearDown(self) -> None:
        Base.metadata.drop_all(engine)


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient with recording mailer and event log."""

    def setUp(self) -> None:
        super().setUp()
        self.mailer = RecordingMailer()
        self.events: list[tuple[str, dict]] = []
        dispatcher = EventDispatcher()
        for name in (
            "user:registered",
            "user:verified",
            "user:login",
            "user:logout",
            "user:password-reset",
            "auth:profile-updated",
            "auth:password-updated",
        ):
            dispatcher.on(name, lambda n, payload: self.events.append((n, payload)))
        app.state.mailer = self.mailer
        app.state.events = dispatcher
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]

    def csrf_headers(self) -> dict[str, str]:
        resp = self.client.post(f"{API}/csrf")
        assert resp.status_code == 201, resp.text
        return {"X-CSRF-Token": resp.json()["token"]}

    def login(self, username: str, password: str = PASSWORD) -> str:
        resp = self.client.post(
            f"{API}/login",
            json={"username": username, "password": password},
            headers=self.csrf_headers(),
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    def auth(self, token: str, csrf: bool = False) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {token}"}
        if csrf:
            headers.update(self.csrf_headers())
        return headers
