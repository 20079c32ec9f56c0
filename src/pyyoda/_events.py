"""In-process callback registry keyed by event type.

Components hold an :class:`EventRegistry` instead of inheriting from an
emitter base class. Listener failures are logged and never interrupt the
remaining listeners or the emitting component.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_logger = logging.getLogger(__name__)

Listener = Callable[..., None]


@dataclass(slots=True)
class _Registration:
    callback: Listener
    once: bool = False


class EventRegistry:
    """Ordered publish/subscribe registry for local listeners."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[_Registration]] = {}

    def on(self, event_type: str, callback: Listener) -> Callable[[], None]:
        """Register *callback* for *event_type*.

        Returns a zero-argument function that removes the registration.
        """
        registration = _Registration(callback=callback)
        self._listeners.setdefault(event_type, []).append(registration)
        return lambda: self._remove(event_type, registration)

    def once(self, event_type: str, callback: Listener) -> Callable[[], None]:
        """Register *callback* for the next *event_type* emission only."""
        registration = _Registration(callback=callback, once=True)
        self._listeners.setdefault(event_type, []).append(registration)
        return lambda: self._remove(event_type, registration)

    def off(self, event_type: str, callback: Listener) -> None:
        """Remove every registration of *callback* for *event_type*."""
        registrations = self._listeners.get(event_type)
        if not registrations:
            return
        self._listeners[event_type] = [reg for reg in registrations if reg.callback is not callback]
        if not self._listeners[event_type]:
            self._listeners.pop(event_type, None)

    def _remove(self, event_type: str, registration: _Registration) -> None:
        registrations = self._listeners.get(event_type)
        if not registrations:
            return
        self._listeners[event_type] = [reg for reg in registrations if reg is not registration]
        if not self._listeners[event_type]:
            self._listeners.pop(event_type, None)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def remove_all_listeners(self, event_type: str | None = None) -> None:
        if event_type is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event_type, None)

    def emit(self, event_type: str, *args: Any) -> bool:
        """Call every listener of *event_type* in registration order.

        Returns ``True`` when at least one listener was registered.
        """
        registrations = self._listeners.get(event_type)
        if not registrations:
            return False

        # Snapshot so listeners may (un)register while we iterate.
        snapshot = list(registrations)
        for registration in snapshot:
            if registration.once:
                self._remove(event_type, registration)
            try:
                registration.callback(*args)
            except Exception:
                _logger.warning("Listener for %s failed", event_type, exc_info=True)
        return True
