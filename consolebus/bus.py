"""In-process publish/subscribe bus with deferred delivery.

Events triggered before anyone listens are buffered per key and replayed,
in trigger order, as soon as the first subscriber for that key appears.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Hashable
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, Callable, ContextManager, Dict, List, Optional, Set, Tuple

from consolebus.logging import log_event

LOGGER = logging.getLogger(__name__)

EventKey = Hashable
EventHandler = Callable[..., Any]


@dataclass(eq=False)
class Subscription:
    handler: EventHandler
    once: bool = False
    spent: bool = False


@dataclass
class BufferedCall:
    key: EventKey
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


def _valid_key(key: Any) -> bool:
    if key is None or key == "":
        return False
    try:
        hash(key)
    except TypeError:
        return False
    return True


class EventBus:
    def __init__(self, thread_safe: bool = True, trace: bool = False) -> None:
        self._registry: Dict[EventKey, List[Subscription]] = {}
        self._buffer: Dict[EventKey, List[BufferedCall]] = {}
        self._lock: ContextManager[Any] = threading.RLock() if thread_safe else nullcontext()
        self._trace = trace
        self._tasks: Set["asyncio.Future[Any]"] = set()

    def listen(self, key: EventKey, handler: EventHandler, once: bool = False) -> None:
        """Subscribe ``handler`` to ``key`` and replay anything buffered for it.

        Invalid input (empty key, non-callable handler) is ignored.
        """
        if not _valid_key(key) or not callable(handler):
            return
        with self._lock:
            self._registry.setdefault(key, []).append(Subscription(handler, once))
            pending = self._buffer.pop(key, None)
        if pending:
            self._replay(key, pending)

    def once(self, key: EventKey, handler: EventHandler) -> None:
        self.listen(key, handler, once=True)

    def listen_all_task(self, key: EventKey, handler: EventHandler, once: bool = False) -> None:
        """Alias of :meth:`listen` for callers that expect earlier events too."""
        self.listen(key, handler, once=once)

    def trigger(self, key: EventKey, *args: Any, **kwargs: Any) -> None:
        """Deliver an event to every current subscriber of ``key``.

        With no subscribers the call is buffered until one appears. Handler
        failures are logged and never propagate to the caller.
        """
        if not _valid_key(key):
            LOGGER.warning("Dropping trigger for invalid event key %r", key)
            return
        with self._lock:
            snapshot = [s for s in self._registry.get(key, ()) if not s.spent]
            if not snapshot:
                self._buffer.setdefault(key, []).append(BufferedCall(key, args, kwargs))
                if self._trace:
                    log_event(LOGGER, "event.buffered", logging.DEBUG, key=key, pending=len(self._buffer[key]))
                return

            # Once subscriptions leave the registry before any handler runs.
            fired = [s for s in snapshot if s.once]
            for subscription in fired:
                subscription.spent = True
            if fired:
                self._compact(key)

        if self._trace:
            log_event(LOGGER, "event.dispatch", logging.DEBUG, key=key, subscribers=len(snapshot))
        # Handlers run outside the lock so they may take locks of their own.
        for subscription in snapshot:
            self._invoke(key, subscription.handler, args, kwargs)

    def remove(self, key: EventKey, handler: Optional[EventHandler] = None) -> None:
        """Drop every subscriber of ``key``, or only those registered with ``handler``."""
        if not _valid_key(key):
            return
        with self._lock:
            if key not in self._registry:
                return
            if handler is None:
                del self._registry[key]
                return
            remaining = [s for s in self._registry[key] if s.handler != handler]
            if remaining:
                self._registry[key] = remaining
            else:
                del self._registry[key]

    def remove_all(self) -> None:
        """Reset the bus: forget all subscribers and discard buffered calls."""
        with self._lock:
            self._registry.clear()
            self._buffer.clear()

    def listener_count(self, key: EventKey) -> int:
        if not _valid_key(key):
            return 0
        with self._lock:
            return sum(1 for s in self._registry.get(key, ()) if not s.spent)

    def has_listeners(self, key: EventKey) -> bool:
        return self.listener_count(key) > 0

    def event_names(self) -> List[EventKey]:
        with self._lock:
            return list(self._registry)

    def buffered_count(self, key: EventKey) -> int:
        if not _valid_key(key):
            return 0
        with self._lock:
            return len(self._buffer.get(key, ()))

    def buffered_names(self) -> List[EventKey]:
        with self._lock:
            return list(self._buffer)

    def _replay(self, key: EventKey, pending: List[BufferedCall]) -> None:
        if self._trace:
            log_event(LOGGER, "event.replay", logging.DEBUG, key=key, count=len(pending))
        # Calls that find no subscriber again (a spent once handler) are re-buffered in order.
        for call in pending:
            self.trigger(call.key, *call.args, **call.kwargs)

    def _compact(self, key: EventKey) -> None:
        current = self._registry.get(key)
        if current is None:
            return
        remaining = [s for s in current if not s.spent]
        if remaining:
            self._registry[key] = remaining
        else:
            del self._registry[key]

    def _invoke(self, key: EventKey, handler: EventHandler, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> None:
        try:
            result = handler(*args, **kwargs)
        except Exception:
            LOGGER.exception("Error in event handler for %r", key, extra={"event_key": repr(key)})
            return
        if inspect.isawaitable(result):
            self._schedule(key, result)

    def _schedule(self, key: EventKey, awaitable: Any) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning("Async handler for %r returned an awaitable with no running event loop", key)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable)
        # The loop only holds weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        def _report(done: "asyncio.Future[Any]") -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                LOGGER.error(
                    "Error in async event handler for %r",
                    key,
                    exc_info=(type(exc), exc, exc.__traceback__),
                    extra={"event_key": repr(key)},
                )

        task.add_done_callback(_report)


# Default bus instance
_bus: EventBus | None = None
_bus_lock = threading.Lock()


def get_bus() -> EventBus:
    """Get the process-wide default bus, building it from settings on first use."""
    global _bus
    with _bus_lock:
        if _bus is None:
            from consolebus.settings import get_settings

            settings = get_settings()
            _bus = EventBus(thread_safe=settings.thread_safe, trace=settings.trace_events)
        return _bus


def reset_bus() -> None:
    """Tear down the default bus (useful for testing)."""
    global _bus
    with _bus_lock:
        if _bus is not None:
            _bus.remove_all()
        _bus = None
