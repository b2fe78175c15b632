from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Type, TypeVar

if TYPE_CHECKING:  # pragma: no cover
    from .engine.state import SessionState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventBus:
    """Synchronous in-process event bus for session events.

    Subscribers are keyed by event class; events are emitted by instance, so a
    handler registered for a base class sees every subclass. Handler exceptions
    are logged and do not stop delivery to the remaining handlers.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[Type[Any], List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)  # type: ignore[arg-type]
        logger.debug("Subscribed %s to %s", getattr(handler, "__name__", handler), event_type.__name__)

    def unsubscribe(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            if not handlers:
                self._subscribers.pop(event_type, None)

    def clear(self) -> None:
        self._subscribers.clear()

    def emit(self, event: Any) -> None:
        for event_type, handlers in list(self._subscribers.items()):
            if isinstance(event, event_type):
                for h in list(handlers):
                    try:
                        h(event)
                    except Exception as exc:  # noqa: BLE001
                        logger.exception("Error in handler for %s: %s", type(event).__name__, exc)


@dataclass(frozen=True)
class SessionEvent:
    state: "SessionState"

    @property
    def session_id(self) -> str:
        return self.state.session_id


@dataclass(frozen=True)
class StateChanged(SessionEvent):
    """Published after every transition that changed the session."""


@dataclass(frozen=True)
class RoundEnded(SessionEvent):
    """Published once, when the session becomes over (won or timed out)."""

    @property
    def is_won(self) -> bool:
        return self.state.is_won
