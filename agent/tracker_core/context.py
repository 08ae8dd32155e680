"""
AgentContext — what the components share, built once at startup.

The run timer publishes the active world path here and the session timer
reads it. There is no lock: the session timer may act on a value up to one
run tick (≤1s) old.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .api import Dispatcher
from .config import Options


@dataclass
class AgentContext:
    options: Options
    dispatcher: Dispatcher
    clock: Callable[[], float] = time.time
    sleep: Callable[[float], None] = field(default=time.sleep)

    # Latest world path seen by the run timer (immutable snapshot)
    active_world_path: Optional[Path] = None

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def publish_world_path(self, path):
        self.active_world_path = Path(path) if path is not None else None
