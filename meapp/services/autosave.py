import threading
from typing import Any, Callable, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


class AutosaveScheduler:
    """
    Trailing debounce around a flush callback.

    Every schedule() restarts the quiet window; only the last one fires.
    A superseded write is dropped, never queued. The callback reads whatever
    state is current when it runs.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        delay: float,
        timer_factory: Optional[TimerFactory] = None,
    ):
        self.callback = callback
        self.delay = delay
        self.timer_factory = timer_factory or threading.Timer
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            timer = self.timer_factory(self.delay, lambda: self._fire(generation))
            # daemon: exit is not delayed; build_controller flushes via atexit
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> bool:
        """Run a pending callback right away. Returns False if nothing was pending."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
        self._run()
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            # a timer cancelled too late to stop must not fire for its successor
            if self._timer is None or generation != self._generation:
                return
            self._timer = None
        self._run()

    def _run(self) -> None:
        try:
            self.callback()
        except Exception:
            # runs on the timer thread; there is no caller to report to
            logger.exception("Autosave failed")
