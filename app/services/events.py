"""In-process domain event dispatch (e.g. user:registered, user:login)."""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], None]


class EventDispatcher:
    """Synchronous dispatcher; handlers run in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on(self, name: str, handler: EventHandler) -> None:
        self._handlers[name].append(handler)

    def emit(self, name: str, **payload: Any) -> None:
        logger.info("Event %s %s", name, payload)
        for handler in self._handlers.get(name, []):
            handler(name, payload)
