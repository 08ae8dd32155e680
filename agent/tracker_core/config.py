"""
Paths, logging setup, options load/save, safe_print.
"""

import os
import json
import sys
import logging
from dataclasses import dataclass, fields
from pathlib import Path

from .constants import (
    EVENT_RECENT_ENOUGH_MS, RUN_TOO_LONG_MS, MAX_PLAY_TIME_MS,
    AFK_GAP_MS, WALL_BREAK_MS,
)


# ─── Paths ───────────────────────────────────────────────────────
# Shared with the other PaceMan launchers: one options file per user.
BASE_DIR = Path.home() / ".PaceMan"

OPTIONS_FILE = BASE_DIR / "options.json"
LOG_FILE = BASE_DIR / "tracker.log"

# Written by SpeedRunIGT; points at the world currently being played
POINTER_FILE = Path.home() / "speedrunigt" / "latest_world.json"

_LOG_MAX_BYTES = 1_000_000


# ─── Safe print (no crash when --noconsole) ──────────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

log = logging.getLogger("paceman")


def setup_logging(log_file=LOG_FILE, debug=False):
    """File + console logging for standalone runs. Hosted runs use the host's handlers."""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    try:
        if log_file.exists() and log_file.stat().st_size > _LOG_MAX_BYTES:
            log_file.write_text("")
    except OSError:
        pass

    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        filename=str(log_file),
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        encoding="utf-8",
    )
    log.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    log.addHandler(console_handler)


# ─── Options ─────────────────────────────────────────────────────

@dataclass
class Options:
    """User options. Field names map to the camelCase keys of options.json."""

    access_key: str = ""
    enabled_for_plugin: bool = False
    allow_any_world_name: bool = False
    reset_stats_enabled: bool = True

    # ── Tunables (rarely changed by hand) ────────────────────
    event_recent_enough_ms: int = EVENT_RECENT_ENOUGH_MS
    run_too_long_ms: int = RUN_TOO_LONG_MS
    max_play_time_ms: int = MAX_PLAY_TIME_MS
    afk_gap_ms: int = AFK_GAP_MS
    wall_break_ms: int = WALL_BREAK_MS

    @classmethod
    def from_dict(cls, data):
        """Build options from a decoded options.json; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):
            key = _camel(f.name)
            if key not in data:
                continue
            default = getattr(cls, f.name)
            value = data[key]
            if isinstance(default, bool):
                kwargs[f.name] = bool(value)
            elif isinstance(default, int):
                kwargs[f.name] = int(value)
            else:
                kwargs[f.name] = str(value).strip()
        return cls(**kwargs)

    def to_dict(self):
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}


def _camel(name):
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def load_options(path=OPTIONS_FILE):
    """Load options from disk. Missing or unreadable file → defaults."""
    path = Path(path)
    options = Options()
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                options = Options.from_dict(json.load(f))
        except (json.JSONDecodeError, OSError, TypeError, ValueError) as e:
            log.warning("Could not read options from %s (%s) — using defaults", path, e)

    env_key = os.environ.get("PACEMAN_ACCESS_KEY", "").strip()
    if env_key:
        options.access_key = env_key
    return options


def save_options(options, path=OPTIONS_FILE):
    """Save options to disk."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(options.to_dict(), f, indent=2)
    log.info("Options saved to %s", path)
