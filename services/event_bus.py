"""In-process event bus for post-commit side effects.

Handlers run synchronously in subscription order. Each handler call is its own
failure boundary: an exception is logged and the remaining handlers still run,
and publish() itself never raises.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Type

logger = logging.getLogger("mealforge.events")

Handler = Callable[[Any], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: Dict[Type, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        with self._lock:
            if handler not in self._handlers[event_type]:
                self._handlers[event_type].append(handler)
        logger.debug(
            "Handler subscribed",
            extra={"event_type": event_type.__name__, "handler": _name(handler)},
        )

    def unsubscribe(self, event_type: Type, handler: Handler) -> bool:
        with self._lock:
            try:
                self._handlers[event_type].remove(handler)
                return True
            except ValueError:
                return False

    def publish(self, event: Any) -> int:
        """Deliver ``event`` to its handlers; returns how many of them failed."""
        event_type = type(event)
        with self._lock:
            handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return 0

        failures = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                failures += 1
                logger.exception(
                    "Event handler %s failed for %s",
                    _name(handler),
                    event_type.__name__,
                )
        return failures

    def handler_count(self, event_type: Type) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, []))


def _name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
