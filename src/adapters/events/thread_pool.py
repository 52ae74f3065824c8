"""
Thread pool event bus - Implements EventPublisher protocol.

Handlers are registered per exact event type and executed on a
ThreadPoolExecutor, out-of-band from the request that published the
event. publish() returns as soon as the handlers are enqueued.

Fail-open: a handler exception is logged and never reaches the
publisher or the other handlers.
"""

import logging
import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor

from src.domain.events import DomainEvent
from src.domain.ports import EventHandler

logger = logging.getLogger(__name__)


class ThreadPoolEventBus:
    """
    Implements EventPublisher protocol via concurrent.futures.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="events")

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """
        Register a handler for an event type.

        Only exact type matches are dispatched (no inheritance matching).
        """
        with self._lock:
            self._handlers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> list[Future]:
        """
        Enqueue an event for every handler registered for its type.

        Returns:
            Futures of the scheduled handler calls (empty when nobody listens).
            Callers are not expected to wait on them.
        """
        event_type = type(event)
        with self._lock:
            handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return []

        logger.debug(
            "Publishing %s (%s) to %d handler(s)", event_type.__name__, event.event_id, len(handlers)
        )

        futures = []
        for handler in handlers:
            try:
                future = self._executor.submit(self._dispatch, handler, event)
            except RuntimeError:
                logger.warning("Event bus shut down, dropping %s", event_type.__name__)
                break
            futures.append(future)
        return futures

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events and optionally drain the queued ones."""
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _dispatch(handler: EventHandler, event: DomainEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Event handler %s failed for %s (%s)",
                getattr(handler, "__name__", repr(handler)),
                type(event).__name__,
                event.event_id,
            )
