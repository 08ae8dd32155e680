"""
Constants, thresholds, endpoints and event vocabularies.
"""

AGENT_VERSION = "1.0.0"

# ─── Scheduling ──────────────────────────────────────────────────
RUN_TICK_SEC = 1.0             # header → events → run state → dispatch
SESSION_TICK_SEC = 0.05        # state file + reset counter polls
SHUTDOWN_JOIN_SEC = 10         # Max wait for a timer thread on stop

# ─── File waits ──────────────────────────────────────────────────
FILE_WAIT_DELAY_SEC = 0.005    # Producer still flushing → retry after 5ms
TAIL_WAIT_ATTEMPTS = 200       # 200 x 5ms = give up on a partial line after ~1s
SMALL_FILE_READ_ATTEMPTS = 5   # State / reset files: 5 reads, 5ms apart

# ─── Run lifecycle ───────────────────────────────────────────────
RUN_TOO_LONG_MS = 3_600_000          # 1 hour
EVENT_RECENT_ENOUGH_MS = 60_000      # 1 minute
ENDED_BUFFER_MAX_LINES = 1_000      # Lines kept for a run that will not be sent
MIN_FULL_FEATURE_SRIGT_VERSION = "14.2"
DEFAULT_SRIGT_VERSION = "14.0"

# ─── Play session ────────────────────────────────────────────────
MAX_PLAY_TIME_MS = 600_000     # Cap each overworld segment at 10 min (AFK skew)
AFK_GAP_MS = 3_600_000         # No state update for 1h → AFK / restart
WALL_BREAK_MS = 5_000          # Longer gaps on the wall are breaks

# ─── Network ─────────────────────────────────────────────────────
EVENT_ENDPOINT = "https://paceman.gg/api/sendevent"
STATS_ENDPOINT = "https://paceman.gg/stats/api/submitStats/"
TEST_ENDPOINT = "https://paceman.gg/api/test"
API_TIMEOUT_SEC = 15
MIN_DENY_CODE = 400
MIN_KEY_TEST_FAIL_CODE = 300   # Key test: redirects count as failures too
SEND_ATTEMPTS = 5
SEND_RETRY_DELAY_SEC = 5

# ─── Event vocabularies ──────────────────────────────────────────
# Reaching one of these ends the run. Already-sent runs get this last event.
END_EVENTS = frozenset({
    "common.multiplayer",
    "common.old_world",
    "common.open_to_lan",
    "common.enable_cheats",
    "common.view_seed",
    "rsg.credits",
})

DEFAULT_START_EVENTS = frozenset({"rsg.enter_nether"})

# Older majors lack some start markers
START_EVENTS_BY_MAJOR = {
    8: frozenset({"rsg.enter_nether", "rsg.trade"}),
    14: frozenset({"rsg.enter_nether", "rsg.trade", "rsg.obtain_gold_block"}),
    15: frozenset({"rsg.enter_nether", "rsg.trade", "rsg.obtain_gold_block"}),
}

# Not considered when deciding whether a run is recent enough to send
UNIMPORTANT_EVENTS = frozenset({"common.leave_world", "common.rejoin_world"})

# ─── Item data (1.16.1 only) ─────────────────────────────────────
ITEM_DATA_GAME_VERSION = "1.16.1"
IMPORTANT_ITEM_COUNTS = frozenset({
    "minecraft:ender_pearl",
    "minecraft:obsidian",
    "minecraft:blaze_rod",
})
IMPORTANT_ITEM_USAGES = frozenset({"minecraft:ender_pearl", "minecraft:obsidian"})
IMPORTANT_ITEM_CRAFTS = frozenset()

# ─── Stats submission ────────────────────────────────────────────
STATS_REQUIRED_MODS = ("seedqueue", "state-output")

RANDOM_WORLD_PATTERN = r"^Random Speedrun #\d+$"
GAME_VERSION_PATTERN = r"1\.(\d+)(?:\.\d+)?"

# ─── Crash notice colors ─────────────────────────────────────────
THEME = {
    "bg_card":       "#1e293b",   # window background
    "bg_dark":       "#0f172a",   # details box
    "primary":       "#3b82f6",   # OK button
    "error":         "#ef4444",   # header bar, copy button
    "text_primary":  "#f1f5f9",
    "text_muted":    "#94a3b8",
}
