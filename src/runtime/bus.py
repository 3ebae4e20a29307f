from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar, cast

EventT = TypeVar("EventT")

_logger = logging.getLogger("runtime")


class EventBus:
    """Synchronous type-dispatched fan-out for derived events.

    A failing handler is logged and skipped so the remaining subscribers and
    the publishing stream keep going.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[object], None]]] = {}

    def subscribe(
        self, event_type: type[EventT], handler: Callable[[EventT], None]
    ) -> Callable[[], None]:
        registered = cast(Callable[[object], None], handler)
        self._handlers.setdefault(event_type, []).append(registered)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if registered in handlers:
                handlers.remove(registered)

        return unsubscribe

    def publish(self, event: object) -> int:
        handlers = [
            handler
            for event_type, registered in self._handlers.items()
            if isinstance(event, event_type)
            for handler in registered
        ]
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                _logger.error(
                    "runtime.handler_failed",
                    extra={"fields": {"event": type(event).__name__, "error_detail": repr(exc)}},
                )
        return len(handlers)
