"""Cancellable periodic background task."""

import threading
from collections.abc import Callable


class PeriodicTask:
    """Runs a callback every ``interval`` seconds on a daemon thread.

    The task is owned by whoever starts it and is stopped deterministically
    with cancel(), which waits for an in-flight run to finish.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = "logfanout-periodic",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """True while the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread. Calling start twice is a no-op."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def cancel(self, timeout: float | None = 5.0) -> None:
        """Stop the task and wait for the thread to exit."""
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._callback()
