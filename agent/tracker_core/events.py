"""
Event lines, event vocabularies and game / mod version handling.

An event log line looks like "rsg.enter_nether 15000 14500":
name, real time since run start (ms), in-game time (ms).
"""

import re
from dataclasses import dataclass
from typing import Optional

from .config import log
from .constants import (
    DEFAULT_START_EVENTS, START_EVENTS_BY_MAJOR, END_EVENTS, UNIMPORTANT_EVENTS,
    GAME_VERSION_PATTERN,
)

_GAME_VERSION_RE = re.compile(GAME_VERSION_PATTERN)
_NUMERIC_VERSION_RE = re.compile(r"[0-9]+(\.[0-9]+)*")


@dataclass(frozen=True)
class Event:
    name: str
    realtime_ms: Optional[int]
    igt_ms: Optional[int]
    raw: str
    parts: int = 3

    @property
    def is_end(self):
        return self.name in END_EVENTS

    @property
    def is_unimportant(self):
        return self.name in UNIMPORTANT_EVENTS

    def uniquifier(self):
        """Identity of the start event, used to tell apart runs in the same world path."""
        if self.parts in (2, 3):
            return ";" + ";".join(self.raw.split(" "))
        return self.name


def _to_int(token):
    try:
        return int(token)
    except ValueError:
        return None


def parse_event_line(line):
    """Best-effort parse. Odd token counts are logged, never fatal."""
    tokens = line.split(" ")
    name = tokens[0]
    if len(tokens) == 3:
        return Event(name, _to_int(tokens[1]), _to_int(tokens[2]), line, 3)
    if len(tokens) == 2:
        log.warning('Event log contained only 2 parts for an event line! "%s"', line)
        return Event(name, _to_int(tokens[1]), None, line, 2)
    log.warning('Event log contained a strange number of parts for an event line! "%s"', line)
    realtime = _to_int(tokens[1]) if len(tokens) > 1 else None
    return Event(name, realtime, None, line, len(tokens))


def realtime_of(line):
    """Real time field of a line, or None. Quiet: no warnings for odd lines."""
    tokens = line.split(" ")
    if len(tokens) < 2:
        return None
    return _to_int(tokens[1])


# ─── Game versions ───────────────────────────────────────────────

def major_release(game_version):
    """'1.16.1' → 16. None for anything else (snapshots, april fools...)."""
    match = _GAME_VERSION_RE.fullmatch(game_version or "")
    if not match:
        return None
    return int(match.group(1))


def start_events_for(game_version):
    """Start events for this game version, or None when the version is unsupported."""
    major = major_release(game_version)
    if major is None:
        return None
    return START_EVENTS_BY_MAJOR.get(major, DEFAULT_START_EVENTS)


# ─── Numeric version comparison (mod versions) ───────────────────

def compare_versions(a, b):
    """-1 / 0 / 1 like a comparator. Raises ValueError for non-numeric versions."""
    for v in (a, b):
        if v is None or not _NUMERIC_VERSION_RE.fullmatch(v):
            raise ValueError(f"Invalid version format: {v!r}")
    a_parts = [int(p) for p in a.split(".")]
    b_parts = [int(p) for p in b.split(".")]
    length = max(len(a_parts), len(b_parts))
    a_parts += [0] * (length - len(a_parts))
    b_parts += [0] * (length - len(b_parts))
    if a_parts < b_parts:
        return -1
    if a_parts > b_parts:
        return 1
    return 0


def try_compare_versions(a, b, on_failure=0):
    try:
        return compare_versions(a, b)
    except ValueError:
        return on_failure
