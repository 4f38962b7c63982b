import threading
from typing import Optional

from slowtail.config import INT32_MAX


SPEED_STEP_MS = 250


class PaceState:
    """
    The current inter-line delay, shared between the relay and the
    speed controller.

    All reads and writes go through the lock, the relay reads it every
    line while key events may change it from another thread.
    """

    def __init__(self, delay_ms: int = 0, step_ms: int = SPEED_STEP_MS):
        if delay_ms < 0 or delay_ms > INT32_MAX:
            raise ValueError(f"delay out of range: {delay_ms}")
        self._delay_ms = delay_ms
        self._step_ms = step_ms
        self._lock = threading.Lock()

    @property
    def current_delay_ms(self) -> int:
        with self._lock:
            return self._delay_ms

    def slower(self) -> int:
        """Add one step to the delay, unless that would overflow. Returns the new delay."""
        with self._lock:
            if self._delay_ms < INT32_MAX - self._step_ms:
                self._delay_ms += self._step_ms
            return self._delay_ms

    def faster(self) -> int:
        """Take one step off the delay, floored at zero. Returns the new delay."""
        with self._lock:
            self._delay_ms = max(0, self._delay_ms - self._step_ms)
            return self._delay_ms


class Pacer:
    """Sleeps for the current delay between relayed lines."""

    def __init__(self, state: PaceState, shutdown: Optional[threading.Event] = None):
        self.state = state
        self.shutdown = shutdown if shutdown is not None else threading.Event()

    def wait(self) -> None:
        # Read at call time so a speed change applies from the very next line
        delay_ms = self.state.current_delay_ms
        if delay_ms == 0:
            return
        self.shutdown.wait(delay_ms / 1000.0)
