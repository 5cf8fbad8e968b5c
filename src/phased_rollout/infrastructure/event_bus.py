"""Synchronous event bus for rollout domain events.

Handlers subscribe to an event class (and receive its subclasses too) or to
every event.  A handler that raises is logged and skipped so a broken
listener never changes the outcome of a rollout run.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable

from phased_rollout.domain.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class EventBus:
    """Thread-safe synchronous pub-sub for domain events.

    Handlers are invoked **in registration order**: global handlers first,
    then typed handlers from the most specific event class outwards.

    Usage::

        bus = EventBus()
        bus.subscribe(CollectionIncluded, on_included)
        bus.publish(CollectionIncluded(...))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[type[DomainEvent], list[Handler]] = defaultdict(list)
        self._global_handlers: list[Handler] = []

    # -- subscription -------------------------------------------------------

    def subscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        """Register *handler* for *event_type* and its subclasses."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        """Register *handler* to receive **every** published event."""
        with self._lock:
            self._global_handlers.append(handler)

    # -- publishing ---------------------------------------------------------

    def _handlers_for(self, event: DomainEvent) -> list[Handler]:
        with self._lock:
            selected = list(self._global_handlers)
            for cls in type(event).__mro__:
                if cls in self._handlers:
                    selected.extend(self._handlers[cls])
        return selected

    def publish(self, event: DomainEvent) -> None:
        """Publish *event* to every matching handler."""
        for handler in self._handlers_for(event):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Error in handler %r for %s", handler, type(event).__name__
                )
