"""In-memory event bus.

Handlers run synchronously in the publishing thread. A failing handler is
logged and skipped: events are published after commit, so there is no
transaction left for an exception to roll back.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

import structlog

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        return list(self._handlers.get(event_class, []))

    def publish(self, event: DomainEvent) -> None:
        log = logger.bind(**event.log_context())
        for handler in self.handlers_for(type(event)):
            try:
                handler.handle(event)
            except Exception:
                log.exception(
                    "event_bus.handler_failed", handler=type(handler).__name__
                )
        log.info("event_bus.published")

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)


event_bus = InMemoryEventBus()
