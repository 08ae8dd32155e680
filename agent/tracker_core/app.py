"""
TrackerApp — wires the components together and owns the two timers.

  run timer (1s)      → RunLifecycle.tick()        header, events, dispatch
  session timer (50ms) → PlaySessionTracker.tick()  wall / play / reset stats

The timers share no locks; see AgentContext for what crosses between them.

Standalone: run() blocks the main thread until stop() or a crash. A crash in
a tick shows a crash notice and exits with code 1.
Hosted (as_plugin=True): start() returns immediately; a crash only stops this
agent's timers and leaves the host alone.
"""

import threading
import time

from .constants import AGENT_VERSION, RUN_TICK_SEC, SESSION_TICK_SEC, SHUTDOWN_JOIN_SEC
from .config import log, safe_print, POINTER_FILE
from .api import Dispatcher
from .context import AgentContext
from .crash import to_detailed_string, show_crash_notice
from .lifecycle import RunLifecycle
from .scheduler import FixedRateTimer
from .session import PlaySessionTracker

CRASH_MESSAGE = "PaceMan Tracker has crashed! Please report this bug to the developers."


class TrackerApp:
    def __init__(self, options, as_plugin=False, dispatcher=None,
                 pointer_path=POINTER_FILE, clock=time.time, sleep=time.sleep):
        dispatcher = dispatcher or Dispatcher(options, sleep=sleep)
        self.context = AgentContext(options, dispatcher, clock=clock, sleep=sleep)
        self.as_plugin = as_plugin
        self.play_tracker = PlaySessionTracker(self.context)
        self.lifecycle = RunLifecycle(self.context, self.play_tracker, pointer_path)

        self._run_timer = FixedRateTimer("paceman-tracker", RUN_TICK_SEC,
                                         self._run_tick, self._on_tick_error)
        self._session_timer = FixedRateTimer("paceman-state", SESSION_TICK_SEC,
                                             self.play_tracker.tick, self._on_tick_error)
        self._finished = threading.Event()
        self._stopped = False
        self.crash = None

    # ─── Lifecycle ───────────────────────────────────────────

    def should_run(self):
        """Re-checked every tick: options may change while running."""
        options = self.context.options
        if not options.access_key:
            return False
        return not self.as_plugin or options.enabled_for_plugin

    def start(self):
        log.info("PaceMan Tracker v%s started (%s)", AGENT_VERSION,
                 "plugin" if self.as_plugin else "standalone")
        if not self.context.options.access_key:
            log.warning("No access key set, nothing will be sent to PaceMan.gg")
        self._run_timer.start()
        self._session_timer.start()

    def run(self):
        """Start, then block until stop() or a crash. Returns the exit code."""
        self.start()
        safe_print("Tracker running.\n")
        self._finished.wait()

        if self.crash is not None:
            show_crash_notice(CRASH_MESSAGE + "\n" + str(self.crash),
                              to_detailed_string(self.crash))
            return 1
        return 0

    def stop(self):
        """Stop both timers, then retract a run that is on the server."""
        if self._stopped:
            return
        self._stopped = True
        self._run_timer.stop(SHUTDOWN_JOIN_SEC)
        self._session_timer.stop(SHUTDOWN_JOIN_SEC)
        try:
            self.lifecycle.cancel_if_submitted()
        finally:
            self._finished.set()
            log.info("TrackerApp shut down.")

    # ─── Ticks ───────────────────────────────────────────────

    def _run_tick(self):
        if not self.should_run():
            return
        self.lifecycle.tick()

    def _on_tick_error(self, timer, exc):
        log.error("%s (%s) %s", CRASH_MESSAGE, timer.name, to_detailed_string(exc))
        self._run_timer.stop()
        self._session_timer.stop()
        if self.as_plugin:
            log.error("PaceMan Tracker will now shutdown, the host will need to be "
                      "restarted to use PaceMan Tracker.")
            try:
                self.lifecycle.cancel_if_submitted()
            except Exception as e:
                log.error("Failed to cancel run after crash: %s", e)
        else:
            self.crash = exc
            self._finished.set()
