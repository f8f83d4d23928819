"""Request-scoped collaborators injected into handlers (no ambient globals)."""

from typing import TypeVar

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from app.services.events import EventDispatcher
from app.services.mail import Mailer

T = TypeVar("T")


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_events(request: Request) -> EventDispatcher:
    return request.app.state.events


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_or_404(db: Session, model: type[T], object_id: str, label: str) -> T:
    obj = db.get(model, object_id)
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found.")
    return obj
