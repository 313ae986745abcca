"""One-shot, thread-safe cancellation broadcast.

Created once by the Supervisor and handed to every keepalive loop when it is
spawned. The first trigger wins; the signal is never reset.

USAGE (from a loop thread - BLOCKING):
    if cancel.wait(timeout=delay):
        return  # cancelled while sleeping

USAGE (waiting on "cancelled OR something else"):
    wake = threading.Event()
    cancel.add_listener(wake)
    ...  # something else also sets `wake`
    wake.wait()
"""

import logging
import threading

logger = logging.getLogger(__name__)


class CancellationSignal:
    """Write-once, read-many shutdown trigger."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._listeners: list[threading.Event] = []
        self._lock = threading.Lock()

    def trigger(self) -> bool:
        """Fire the signal.

        Returns True for the call that actually fired it, False for every later
        call.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            listeners = list(self._listeners)
            self._listeners.clear()
        for listener in listeners:
            listener.set()
        logger.debug(f"Cancellation triggered, woke {len(listeners)} waiter(s)")
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until triggered or the timeout elapses. Returns is_set()."""
        return self._event.wait(timeout=timeout)

    def add_listener(self, event: threading.Event) -> None:
        """Set `event` when the signal fires (immediately if it already has)."""
        with self._lock:
            if not self._event.is_set():
                self._listeners.append(event)
                return
        event.set()

    def remove_listener(self, event: threading.Event) -> None:
        with self._lock:
            try:
                self._listeners.remove(event)
            except ValueError:
                pass  # already fired or never added
