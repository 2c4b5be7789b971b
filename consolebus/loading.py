from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from pydantic import ValidationError

from consolebus.bus import EventBus
from consolebus.errors import PayloadError
from consolebus.events import EventName, LoadingState, publish

LOGGER = logging.getLogger(__name__)

_FLAGS = ("visible", "spinning")


class LoadingIndicator:
    """Reference-counted loading overlay state.

    Every ``open`` must be paired with a ``close``; the overlay is hidden only
    once the count drops back to zero. State changes are published on the bus
    under ``EventName.LOADING`` so views mounted later still catch up.
    """

    def __init__(self, bus: EventBus) -> None:
        self.bus = bus
        self._count = 0
        self._attrs: Dict[str, Any] = LoadingState().model_dump(exclude=set(_FLAGS))
        self._lock = threading.RLock()

    @property
    def count(self) -> int:
        return self._count

    @property
    def attrs(self) -> Dict[str, Any]:
        return dict(self._attrs)

    def is_loading(self) -> bool:
        return self._count > 0

    def change_attrs(self, **attrs: Any) -> None:
        """Merge display attributes without publishing.

        Raises:
            PayloadError: If the merged attributes are not a valid ``LoadingState``
        """
        with self._lock:
            self._attrs = self._merged(attrs)

    def open(self, **attrs: Any) -> LoadingState:
        with self._lock:
            if attrs:
                self._attrs = self._merged(attrs)
            self._count += 1
            state = self._state(visible=True)
        publish(self.bus, EventName.LOADING, state)
        return state

    def close(self) -> LoadingState | None:
        with self._lock:
            self._count -= 1
            if self._count > 0:
                return None
            self._count = 0
            state = self._state(visible=False)
        publish(self.bus, EventName.LOADING, state)
        return state

    def close_all(self) -> LoadingState:
        with self._lock:
            self._count = 0
            state = self._state(visible=False)
        publish(self.bus, EventName.LOADING, state)
        return state

    @contextmanager
    def track(self, **attrs: Any) -> Iterator[LoadingIndicator]:
        self.open(**attrs)
        try:
            yield self
        finally:
            self.close()

    def _merged(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        merged = {**self._attrs, **{k: v for k, v in attrs.items() if k not in _FLAGS}}
        try:
            LoadingState(**merged)
        except ValidationError as exc:
            raise PayloadError(f"Invalid loading attributes: {exc}") from exc
        return merged

    def _state(self, visible: bool) -> LoadingState:
        LOGGER.debug("Loading %s (count=%d)", "shown" if visible else "hidden", self._count)
        return LoadingState(**{**self._attrs, "visible": visible, "spinning": visible})
