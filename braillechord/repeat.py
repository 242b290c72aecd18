"""
Delete key auto-repeat.

States:
- idle: control not held
- armed: one delete issued, waiting out the initial delay
- repeating: deleting once per interval until release
"""

import logging
import threading
from enum import Enum, auto
from typing import Callable, Optional

log = logging.getLogger(__name__)

# (delay_seconds, callback) -> handle with a cancel() method
Scheduler = Callable[[float, Callable[[], None]], object]

DEFAULT_INITIAL_DELAY = 0.5
DEFAULT_INTERVAL = 0.1


class RepeatState(Enum):
    IDLE = auto()
    ARMED = auto()
    REPEATING = auto()


def thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Default scheduler: a started daemon threading.Timer."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class DeleteRepeater:
    """
    Press-and-hold repeat for the delete control.

    press() deletes once and arms a one-shot timer. When it fires the
    repeater deletes again and keeps deleting every interval until
    release(). Every exit transition cancels the pending timer, and
    deletes run under the state lock so none can land after release().
    """

    def __init__(
        self,
        on_delete: Callable[[], None],
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        interval: float = DEFAULT_INTERVAL,
        scheduler: Optional[Scheduler] = None
    ):
        if initial_delay <= 0 or interval <= 0:
            raise ValueError("Repeat delay and interval must be positive")

        self._on_delete = on_delete
        self._initial_delay = initial_delay
        self._interval = interval
        self._schedule = scheduler or thread_timer
        self._state = RepeatState.IDLE
        self._timer = None
        self._timer_token = None
        # Re-entrant: on_delete runs under the lock and may call release()
        self._lock = threading.RLock()

    @property
    def state(self) -> RepeatState:
        """Current repeat state."""
        with self._lock:
            return self._state

    @property
    def initial_delay(self) -> float:
        return self._initial_delay

    @property
    def interval(self) -> float:
        return self._interval

    def _cancel_timer(self):
        """Cancel any pending timer (must hold lock)."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm(self, delay: float, fire: Callable[[object], None]):
        """Schedule fire(token) after delay (must hold lock)."""
        self._cancel_timer()
        token = object()
        self._timer_token = token
        self._timer = self._schedule(delay, lambda: fire(token))

    def _is_current(self, token) -> bool:
        return self._timer is not None and self._timer_token is token

    def _delete(self):
        try:
            self._on_delete()
        except Exception as e:
            log.error(f"Error in delete callback: {e}")

    def press(self):
        """Delete control went down."""
        with self._lock:
            if self._state != RepeatState.IDLE:
                return  # Already held (OS key repeat)
            self._state = RepeatState.ARMED
            self._arm(self._initial_delay, self._on_initial_delay)
            log.debug("Delete pressed")
            self._delete()

    def _on_initial_delay(self, token):
        """Called when the one-shot timer fires."""
        with self._lock:
            if self._state != RepeatState.ARMED or not self._is_current(token):
                return  # Released in the meantime
            self._state = RepeatState.REPEATING
            self._arm(self._interval, self._on_tick)
            log.debug("Delete repeat started")
            self._delete()

    def _on_tick(self, token):
        """Called by the repeating timer."""
        with self._lock:
            if self._state != RepeatState.REPEATING or not self._is_current(token):
                return
            self._arm(self._interval, self._on_tick)
            self._delete()

    def release(self):
        """Delete control went up. No delete is issued after this returns."""
        with self._lock:
            if self._state == RepeatState.IDLE:
                return
            self._cancel_timer()
            self._state = RepeatState.IDLE
        log.debug("Delete released")

    def cancel(self):
        """Stop repeating, e.g. on teardown."""
        self.release()
