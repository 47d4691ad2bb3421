"""In-process event notifications between controllers."""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


# Event names
COORDS_SELECTED = "coords_selected"


class EventBus:
    """Synchronous publish/subscribe by event name."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}

    def subscribe(self, name: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.setdefault(name, []).append(callback)

        def unsubscribe():
            listeners = self._listeners.get(name, [])
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def publish(self, name: str, payload: Any = None) -> int:
        """Deliver payload to every listener; returns how many were called."""
        listeners = list(self._listeners.get(name, []))
        logger.debug(f"Event {name} -> {len(listeners)} listener(s)")
        for callback in listeners:
            callback(payload)
        return len(listeners)
