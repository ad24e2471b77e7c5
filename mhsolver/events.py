"""
Event Channel

Sessions publish progress to an EventChannel; observers (a UI, a log
sink, tests) subscribe to it. The session never depends on whether
anyone is listening or on what a listener does.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Event types published by the solver."""
    STATUS = "solver-status"
    GRID_DETECTED = "grid-detected"
    KEY_PRESSED = "key-pressed"
    GRID_RESET = "grid-reset"
    TEMPLATE_STATUS = "template-status"


@dataclass(frozen=True)
class SolverEvent:
    """
    One published event.

    Payloads by kind:
        STATUS: {"status", "message", "execution_time"?}
        GRID_DETECTED: {"letters": [9 letters, '?' for unknown], "confidence"}
        KEY_PRESSED: {"index": 0-8, "symbol": "Q"}
        GRID_RESET: {}
        TEMPLATE_STATUS: {"loaded": bool, "count": int}
    """
    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


Subscriber = Callable[[SolverEvent], None]


class EventChannel:
    """Thread-safe publish/subscribe channel."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Args:
            callback: Called with each published SolverEvent

        Returns:
            Function that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: SolverEvent) -> None:
        """
        Deliver an event to all subscribers.

        A failing subscriber is logged and skipped; delivery continues.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception(f"Event subscriber failed on {event.kind.value}")

    def emit(self, kind: EventKind, **payload) -> SolverEvent:
        """Build and publish an event."""
        event = SolverEvent(kind=kind, payload=payload)
        self.publish(event)
        return event

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
