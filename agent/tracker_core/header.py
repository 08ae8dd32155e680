"""
RunHeader record and HeaderWatcher for the SpeedRunIGT pointer file.

The pointer file (latest_world.json) is rewritten whenever a world is opened.
A byte-for-byte different content means a new (or resumed) run context.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import log
from .constants import DEFAULT_SRIGT_VERSION, FILE_WAIT_DELAY_SEC, TAIL_WAIT_ATTEMPTS
from .tailer import mtime_ns, read_terminated, wait_for


class HeaderError(ValueError):
    """Pointer file content is not a usable run header."""


@dataclass(frozen=True)
class RunHeader:
    world_path: str
    version: str
    category: str
    mods: List[str] = field(default_factory=list)
    mod_version: str = DEFAULT_SRIGT_VERSION
    raw: str = ""

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise HeaderError(f"pointer file is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise HeaderError("pointer file is not a JSON object")

        missing = [k for k in ("world_path", "version", "category") if k not in data]
        if missing:
            raise HeaderError(f"pointer file is missing {', '.join(missing)}")

        mods = data.get("mods") or []
        if not isinstance(mods, list):
            raise HeaderError("pointer file 'mods' is not a list")

        mod_version = data.get("mod_version")
        if mod_version is None:
            mod_version = DEFAULT_SRIGT_VERSION
        else:
            mod_version = str(mod_version).split("+")[0]

        return cls(
            world_path=str(data["world_path"]),
            version=str(data["version"]),
            category=str(data["category"]),
            mods=[str(m) for m in mods],
            mod_version=mod_version,
            raw=text,
        )

    @property
    def world_dir(self) -> Path:
        return Path(self.world_path)

    @property
    def world_name(self) -> str:
        return self.world_dir.name

    @property
    def event_log_path(self) -> Path:
        return self.world_dir / "speedrunigt" / "events.log"

    @property
    def record_path(self) -> Path:
        return self.world_dir / "speedrunigt" / "record.json"

    @property
    def instance_path(self) -> Path:
        # Random Speedrun #X -> saves -> .minecraft
        return self.world_dir.parent.parent


class HeaderWatcher:
    """Reports pointer-file content changes and keeps the decoded header."""

    def __init__(self, path, wait_attempts=TAIL_WAIT_ATTEMPTS,
                 wait_delay=FILE_WAIT_DELAY_SEC, sleep=time.sleep):
        self.path = Path(path)
        self.header: Optional[RunHeader] = None
        self.raw = ""
        self._last_mtime_ns = None
        self._wait_attempts = wait_attempts
        self._wait_delay = wait_delay
        self._sleep = sleep

    def update(self) -> bool:
        """True when the pointer file now holds a different, valid header."""
        current = mtime_ns(self.path)
        if current is None or current == self._last_mtime_ns:
            return False

        # A read error leaves the mtime unrecorded so the next tick retries
        data = wait_for(lambda: read_terminated(self.path),
                        self._wait_attempts, self._wait_delay, self._sleep)
        if data is None:
            log.warning("Gave up waiting for %s to be fully written", self.path)
            return False
        self._last_mtime_ns = current

        text = data.decode("utf-8", errors="replace").strip()
        if text == self.raw:
            return False

        try:
            header = RunHeader.from_json(text)
        except HeaderError as e:
            log.error("Error reading %s: %s", self.path, e)
            return False

        self.raw = text
        self.header = header
        return True
