"""Main queue: the single logical thread that owns all conversation state.

Audio, recognition and synthesis engines call back from their own threads.
Those callbacks never touch state directly; they ``post`` a function onto the
main queue, which runs posted functions one at a time in FIFO order.

Interface:
  main = MainQueue()
  main.start()                           # background thread (or main.run() to block)
  main.post(fn, arg)                     # run fn(arg) on the queue thread
  call = main.post_after(1.5, fn, arg)   # delayed; call.cancel() is always safe
  main.stop()
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_STOP = object()


class ScheduledCall:
    """A delayed post that can be cancelled up to the moment it runs.

    The timer thread only enqueues; the cancelled flag is checked again on the
    queue thread, so a cancel() issued from the queue thread wins even if the
    timer has already expired.
    """

    def __init__(self, main: "MainQueue", delay: float, fn: Callable[..., Any], args: tuple):
        self._fn = fn
        self._args = args
        self._cancelled = False
        self._done = False
        self._timer = threading.Timer(max(0.0, delay), main.post, args=(self._fire,))
        self._timer.daemon = True

    def start(self) -> "ScheduledCall":
        self._timer.start()
        return self

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._done = True
        self._fn(*self._args)

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()

    @property
    def active(self) -> bool:
        """True while the call may still run."""
        return not (self._cancelled or self._done)


class MainQueue:
    """Serial executor for every state mutation in the pipeline."""

    def __init__(self, name: str = "wordy-main"):
        self.name = name
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule fn(*args) to run on the queue thread."""
        self._queue.put((fn, args))

    def post_after(self, delay: float, fn: Callable[..., Any], *args: Any) -> ScheduledCall:
        """Schedule fn(*args) after `delay` seconds. Returns a cancellable handle."""
        return ScheduledCall(self, delay, fn, args).start()

    def run(self) -> None:
        """Drain the queue on the calling thread until stop() is called."""
        self._running = True
        try:
            while True:
                item = self._queue.get()
                if item is _STOP:
                    break
                fn, args = item
                try:
                    fn(*args)
                except Exception:
                    logger.exception("Unhandled error in main-queue callback %r", fn)
        finally:
            self._running = False

    def start(self) -> None:
        """Run the queue on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 2.0) -> None:
        """Ask the loop to exit after the callbacks already posted."""
        self._queue.put(_STOP)
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    @property
    def running(self) -> bool:
        return self._running
