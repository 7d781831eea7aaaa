from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .common import PrintLogger


@dataclass
class Event:
    level: str
    msg: str
    fields: Dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[Event], None]


class Emitter:
    """Fan events out to in-process subscribers."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def emit(self, event: Event) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            subscriber(event)


class EventRecorder:
    """Subscriber that keeps every event, mostly for tests and summaries."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def named(self, msg: str) -> List[Event]:
        return [event for event in self.events if event.msg == msg]


def emit_log(
    emitter: Optional[Emitter],
    *,
    level: str,
    msg: str,
    logger: Optional[PrintLogger] = None,
    **fields: Any,
) -> None:
    if logger is not None:
        logger.log(level, msg, **fields)
    if emitter is not None:
        emitter.emit(Event(level=level.upper(), msg=msg, fields=dict(fields)))


__all__ = ["Emitter", "Event", "EventRecorder", "emit_log"]
