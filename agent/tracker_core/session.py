"""
PlaySessionTracker — reset statistics for one game instance.

Polled every 50ms from its own timer:
  check_world_path() → follows the world published by the run timer
  tick_state()       → wpstateout.txt (wall / inworld / generating / title ...)
  tick_resets()      → rsg-attempts.txt (lifetime reset counter)

Accumulates play time (capped per segment, pauses excluded), wall time
(resets less than 5s apart), nether time (play time after a run was sent)
and seeds played. Everything is submitted once per run, right after the
run's first successful send, and then zeroed.
"""

import json
from enum import Enum

from .config import log
from .constants import SMALL_FILE_READ_ATTEMPTS, FILE_WAIT_DELAY_SEC, STATS_REQUIRED_MODS
from .fairness import is_random_speedrun_world
from .tailer import mtime_ns, wait_for


class SessionState(Enum):
    UNKNOWN = "UNKNOWN"
    IDLE = "IDLE"
    WALL = "WALL"
    LOADING = "LOADING"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"


PLAYING_LIKE = frozenset({SessionState.PLAYING, SessionState.PAUSED})


def parse_state(text):
    tokens = [t.strip() for t in text.strip().split(",")]
    first = tokens[0]
    if first in ("wall", "previewing"):
        return SessionState.WALL
    if first == "inworld":
        if len(tokens) > 1 and tokens[1] == "paused":
            return SessionState.PAUSED
        return SessionState.PLAYING
    if first in ("generating", "waiting"):
        return SessionState.LOADING
    if first == "title":
        return SessionState.IDLE
    return SessionState.UNKNOWN


class PlaySessionTracker:
    def __init__(self, context, read_attempts=SMALL_FILE_READ_ATTEMPTS,
                 read_delay=FILE_WAIT_DELAY_SEC):
        self._ctx = context
        self._read_attempts = read_attempts
        self._read_delay = read_delay

        # ── Watched files ─────────────────────────────────────
        self.last_world_path = None
        self.instance_path = None
        self.state_path = None
        self.resets_path = None
        self._state_last_mod = None
        self._resets_last_mod = None
        self.last_state_update_ms = None

        # ── State machine ─────────────────────────────────────
        self.current_state = SessionState.UNKNOWN
        self.playing_start_ms = None
        self.pause_start_ms = None
        self.paused_ms = 0
        self.is_practicing = False
        self.is_nether = False

        # ── Accumulators ──────────────────────────────────────
        self.resets = 0
        self.last_resets = None
        self.last_wall_reset_ms = None
        self.seeds_played = 0
        self.play_time_ms = 0
        self.wall_time_ms = 0
        self.nether_time_ms = 0

    # ─── Fine tick (every 50ms) ──────────────────────────────

    def tick(self):
        for step in (self.check_world_path, self.tick_state, self.tick_resets):
            try:
                step()
            except Exception as e:
                log.warning("Error while checking state: %s", e, exc_info=True)
                log.warning("The above error only affects the reset stats tracking, "
                            "and can be ignored if it happens rarely.")

    def reset_accumulators(self):
        self.seeds_played = 0
        self.play_time_ms = 0
        self.wall_time_ms = 0
        self.nether_time_ms = 0
        self.last_wall_reset_ms = None
        self.last_resets = self.resets if self.last_resets is not None else None

    def check_world_path(self):
        world_path = self._ctx.active_world_path
        if world_path is None or world_path == self.last_world_path:
            return
        self.last_world_path = world_path

        options = self._ctx.options
        self.is_practicing = (not options.allow_any_world_name
                              and not is_random_speedrun_world(world_path.name))

        instance = world_path.parent.parent
        if instance == self.instance_path:
            return

        if self.instance_path is not None:
            log.info("Instance changed to %s — resetting session stats", instance)
        self.instance_path = instance
        self.state_path = instance / "wpstateout.txt"
        self.resets_path = instance / "config" / "mcsr" / "atum" / "rsg-attempts.txt"
        self._state_last_mod = None
        self._resets_last_mod = None
        self.last_state_update_ms = None
        self.current_state = SessionState.UNKNOWN
        self.playing_start_ms = None
        self.pause_start_ms = None
        self.paused_ms = 0
        self.resets = 0
        self.last_resets = None
        self.reset_accumulators()

    # ─── State file ──────────────────────────────────────────

    def _read_state(self):
        last_text = [""]

        def attempt():
            text = self.state_path.read_text(encoding="utf-8")
            last_text[0] = text
            state = parse_state(text)
            return None if state == SessionState.UNKNOWN else state

        state = wait_for(attempt, self._read_attempts, self._read_delay, self._ctx.sleep)
        if state is None:
            log.warning("State cannot be determined after %d attempts: %r",
                        self._read_attempts, last_text[0])
        return state

    def tick_state(self):
        if self.state_path is None:
            return
        current = mtime_ns(self.state_path)
        if current is None or current == self._state_last_mod:
            return
        self._state_last_mod = current
        at_ms = current // 1_000_000

        if (self.last_state_update_ms is not None
                and at_ms - self.last_state_update_ms > self._ctx.options.afk_gap_ms):
            log.info("No state updates for %.0f min — treating as AFK/restart, resetting session stats",
                     (at_ms - self.last_state_update_ms) / 60_000)
            self.reset_accumulators()
            if self.current_state in PLAYING_LIKE:
                self._restart_segment(at_ms)
        self.last_state_update_ms = at_ms

        new_state = self._read_state()
        if new_state is None:
            return
        self.apply_state(new_state, at_ms)

    def apply_state(self, new_state, at_ms):
        old_state = self.current_state
        was_playing = old_state in PLAYING_LIKE
        now_playing = new_state in PLAYING_LIKE

        # joined a world
        if not was_playing and now_playing:
            self._restart_segment(at_ms)
            if old_state != SessionState.UNKNOWN:
                # tracker restarted while in a world: not a new seed
                self.seeds_played += 1

        if new_state == SessionState.PAUSED and old_state != SessionState.PAUSED:
            self.pause_start_ms = at_ms
        elif old_state == SessionState.PAUSED and new_state != SessionState.PAUSED:
            if self.pause_start_ms is not None:
                self.paused_ms += at_ms - self.pause_start_ms
            self.pause_start_ms = None

        # left the world
        if was_playing and not now_playing:
            self._commit_segment(at_ms)
            self.playing_start_ms = None
            self.is_practicing = False
            self.is_nether = False

        self.current_state = new_state

    def _restart_segment(self, at_ms):
        self.playing_start_ms = at_ms
        self.paused_ms = 0
        self.pause_start_ms = at_ms if self.current_state == SessionState.PAUSED else None

    def _commit_segment(self, at_ms):
        """Add the current overworld segment (capped, minus pauses) to the right bucket."""
        if self.playing_start_ms is None:
            return 0
        paused = self.paused_ms
        if self.pause_start_ms is not None:
            paused += at_ms - self.pause_start_ms
        elapsed = at_ms - self.playing_start_ms - paused
        diff = max(0, min(self._ctx.options.max_play_time_ms, elapsed))
        if self.is_practicing:
            return 0
        if self.is_nether:
            self.nether_time_ms += diff
        else:
            self.play_time_ms += diff
        return diff

    # ─── Reset counter file ──────────────────────────────────

    def _read_resets(self):
        def attempt():
            contents = self.resets_path.read_text(encoding="utf-8").strip()
            if not contents:
                return None
            try:
                return int(contents)
            except ValueError:
                return None

        value = wait_for(attempt, self._read_attempts, self._read_delay, self._ctx.sleep)
        if value is None:
            log.warning("Reset counter cannot be read after %d attempts: %s",
                        self._read_attempts, self.resets_path)
        return value

    def tick_resets(self):
        if self.resets_path is None:
            return
        current = mtime_ns(self.resets_path)
        if current is None or current == self._resets_last_mod:
            return
        self._resets_last_mod = current
        at_ms = current // 1_000_000

        resets = self._read_resets()
        if resets is None:
            return
        self.apply_resets(resets, at_ms)

    def apply_resets(self, resets, at_ms):
        self.resets = resets
        if self.last_resets is None:
            self.last_resets = resets

        if self.current_state != SessionState.WALL:
            return

        # first wall reset
        if self.last_wall_reset_ms is None:
            self.last_wall_reset_ms = at_ms
            return

        wall_diff = at_ms - self.last_wall_reset_ms
        self.last_wall_reset_ms = at_ms
        if wall_diff < self._ctx.options.wall_break_ms:
            self.wall_time_ms += wall_diff

    # ─── Stats submission ────────────────────────────────────

    def submit_stats(self, game_data, access_key):
        """
        Send accumulated stats for the run that was just sent for the first
        time. Starts the nether grace window. Returns the DispatchResult, or
        None when nothing was sent.
        """
        if not self._ctx.options.reset_stats_enabled:
            log.debug("Not submitting stats since user opted out")
            return None
        mods = json.dumps(game_data.get("modList", []))
        if any(mod not in mods for mod in STATS_REQUIRED_MODS):
            log.warning("Could not submit reset stats as either SeedQueue or State Output is missing")
            return None

        now_ms = self._ctx.now_ms()
        # overworld time of this run so far
        if self.current_state in PLAYING_LIKE:
            self._commit_segment(now_ms)
            self._restart_segment(now_ms)

        baseline = self.last_resets if self.last_resets is not None else self.resets
        snapshot = {
            "wallTime": self.wall_time_ms,
            "playTime": self.play_time_ms,
            "netherTime": self.nether_time_ms,
            "seedsPlayed": self.seeds_played,
        }
        total_resets = self.resets
        payload = {
            "gameData": json.dumps(game_data),
            "accessKey": access_key,
            **snapshot,
            "resets": total_resets - baseline,
            "totalResets": total_resets,
        }
        self.is_nether = True

        result = self._ctx.dispatcher.submit_stats(payload)
        if result.ok:
            self.wall_time_ms -= snapshot["wallTime"]
            self.play_time_ms -= snapshot["playTime"]
            self.nether_time_ms -= snapshot["netherTime"]
            self.seeds_played -= snapshot["seedsPlayed"]
            self.last_resets = total_resets
        else:
            log.warning("Stats submission failed (%s): %s", result.type.value,
                        result.message or result.error)
        return result
