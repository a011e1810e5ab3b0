"""Clock and id providers injected into repositories and the order service."""

import threading
import time
import uuid
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class IdGenerator(Protocol):
    def new_id(self) -> str: ...


class SystemClock:
    """Wall-clock nanoseconds, bumped when needed so readings strictly increase."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(time.time_ns(), self._last + 1)
            return self._last


class UuidGenerator:
    def new_id(self) -> str:
        return str(uuid.uuid4())
