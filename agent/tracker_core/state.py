"""
RunSession — single source of truth for the run currently being tracked.

Only the run timer thread mutates it. The event buffer is appended to or
cleared in full, never partially truncated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .config import log
from .header import RunHeader


class RunProgress(Enum):
    NONE = "NONE"
    STARTING = "STARTING"
    PACING = "PACING"
    ENDED = "ENDED"


@dataclass
class RunSession:
    # ── Run identity ──────────────────────────────────────────
    header: Optional[RunHeader] = None
    pending_header: Optional[RunHeader] = None   # Sent with the next dump, then cleared
    world_uniquifier: str = ""
    run_start_ms: Optional[int] = None           # Wall-clock estimate of run time zero

    # ── Buffered events (raw lines) ───────────────────────────
    events: List[str] = field(default_factory=list)

    # ── Lifecycle ─────────────────────────────────────────────
    progress: RunProgress = RunProgress.NONE
    submitted: bool = False                      # Some data of this run reached the server

    def set_progress(self, progress):
        log.debug("Run Progress set to %s", progress.value)
        self.progress = progress

    def start(self, header):
        """Called on every header change."""
        self.header = header
        self.pending_header = header
        self.events.clear()
        self.world_uniquifier = ""
        self.run_start_ms = None
        self.submitted = False
        self.set_progress(RunProgress.STARTING)

    def end(self):
        self.set_progress(RunProgress.ENDED)
        self.submitted = False

    def on_dump_success(self):
        self.pending_header = None
        self.events.clear()
        self.submitted = True

    @property
    def is_ended(self):
        return self.progress == RunProgress.ENDED

    @property
    def is_pacing(self):
        return self.progress == RunProgress.PACING

    def time_since_run_start(self, now_ms):
        if self.run_start_ms is None:
            return 0
        return abs(now_ms - self.run_start_ms)
