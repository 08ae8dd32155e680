"""
FixedRateTimer — runs a tick function on its own daemon thread.

Fixed rate: ticks are spaced from their scheduled start, not from when the
previous one ended. A tick that overruns delays the next one; missed ticks
are dropped rather than run back-to-back.
"""

import threading
import time

from .config import log


class FixedRateTimer:
    def __init__(self, name, interval, tick, on_error=None, clock=time.monotonic):
        self.name = name
        self.interval = interval
        self._tick = tick
        self._on_error = on_error
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self):
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout=None):
        """Stop scheduling. Joins the thread unless called from inside a tick."""
        self._stop_event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        if thread.is_alive():
            log.warning("Timer %s did not stop within %ss", self.name, timeout)

    def _loop(self):
        next_run = self._clock()
        while not self._stop_event.is_set():
            try:
                self._tick()
            except Exception as e:
                if self._on_error is None:
                    log.error("Timer %s tick failed: %s", self.name, e, exc_info=True)
                else:
                    self._on_error(self, e)

            next_run += self.interval
            now = self._clock()
            if next_run < now:
                next_run = now
            self._stop_event.wait(next_run - now)
