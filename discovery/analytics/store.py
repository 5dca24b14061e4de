from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any

_MAX_EVENTS = 10_000

_events: deque[dict[str, Any]] = deque(maxlen=_MAX_EVENTS)
_lock = threading.Lock()


def record_event(event_type: str, data: dict[str, Any]) -> None:
    """Append an event; the oldest events fall off past ``_MAX_EVENTS``."""
    event = {"type": event_type, "timestamp": time.time(), **data}
    with _lock:
        _events.append(event)


def get_events() -> list[dict[str, Any]]:
    with _lock:
        return list(_events)


def clear_events() -> None:
    with _lock:
        _events.clear()
