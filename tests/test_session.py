import json

import pytest

from tracker_core.constants import STATS_ENDPOINT
from tracker_core.session import PlaySessionTracker, SessionState, parse_state

from conftest import FakeTransport, connection_error, make_world, set_mtime

MIN = 60_000
STATS_MODS = ["speedrunigt", "atum", "seedqueue", "state-output"]
GAME_DATA = {"worldId": "abc", "modList": STATS_MODS}


@pytest.fixture
def tracker(context):
    return PlaySessionTracker(context)


@pytest.mark.parametrize("text, state", [
    ("wall", SessionState.WALL),
    ("previewing,37", SessionState.WALL),
    ("inworld,unpaused", SessionState.PLAYING),
    ("inworld,paused", SessionState.PAUSED),
    ("inworld,gamescreenopen", SessionState.PLAYING),
    ("generating,50", SessionState.LOADING),
    ("waiting", SessionState.LOADING),
    ("title", SessionState.IDLE),
    ("", SessionState.UNKNOWN),
])
def test_parse_state(text, state):
    assert parse_state(text) == state


def test_long_overworld_segment_is_capped(tracker):
    tracker.apply_state(SessionState.WALL, 0)
    tracker.apply_state(SessionState.PLAYING, 1_000)
    tracker.apply_state(SessionState.WALL, 1_000 + 20 * MIN)
    assert tracker.play_time_ms == 10 * MIN
    assert tracker.seeds_played == 1


def test_pauses_are_excluded(tracker):
    tracker.apply_state(SessionState.WALL, 0)
    tracker.apply_state(SessionState.PLAYING, 0)
    tracker.apply_state(SessionState.PAUSED, 1 * MIN)
    tracker.apply_state(SessionState.PLAYING, 2 * MIN)
    tracker.apply_state(SessionState.WALL, 3 * MIN)
    assert tracker.play_time_ms == 2 * MIN


def test_tracker_started_mid_world_is_not_a_seed(tracker):
    tracker.apply_state(SessionState.PLAYING, 0)
    tracker.apply_state(SessionState.WALL, 1 * MIN)
    assert tracker.seeds_played == 0
    assert tracker.play_time_ms == 1 * MIN


def test_practice_worlds_add_no_time(context, tracker, instance):
    context.publish_world_path(make_world(instance, "Practice Map"))
    tracker.check_world_path()
    tracker.apply_state(SessionState.WALL, 0)
    tracker.apply_state(SessionState.PLAYING, 0)
    assert tracker.is_practicing
    tracker.apply_state(SessionState.WALL, 2 * MIN)
    assert tracker.play_time_ms == 0
    assert not tracker.is_practicing


def test_wall_time_counts_quick_resets_only(tracker):
    tracker.apply_state(SessionState.WALL, 0)
    tracker.apply_resets(100, 1_000)
    tracker.apply_resets(101, 3_000)
    tracker.apply_resets(102, 4_500)
    tracker.apply_resets(103, 60_000)
    assert tracker.wall_time_ms == 3_500
    assert tracker.last_resets == 100
    assert tracker.resets == 103


def test_resets_outside_the_wall_add_no_wall_time(tracker):
    tracker.apply_state(SessionState.PLAYING, 0)
    tracker.apply_resets(5, 1_000)
    tracker.apply_resets(6, 2_000)
    assert tracker.wall_time_ms == 0


def test_submit_stats_payload_and_reset(context, clock, tracker, transport):
    tracker.apply_state(SessionState.WALL, 0)
    tracker.apply_resets(100, 0)
    tracker.apply_resets(101, 2_000)
    now = context.now_ms()
    tracker.apply_state(SessionState.PLAYING, now - 3 * MIN)

    result = tracker.submit_stats(GAME_DATA, "secret-key")
    assert result.ok

    url, payload = transport.calls[0]
    assert url == STATS_ENDPOINT
    assert json.loads(payload["gameData"]) == GAME_DATA
    assert payload["accessKey"] == "secret-key"
    assert payload["playTime"] == 3 * MIN
    assert payload["wallTime"] == 2_000
    assert payload["seedsPlayed"] == 1
    assert payload["resets"] == 1
    assert payload["totalResets"] == 101
    assert payload["netherTime"] == 0

    assert (tracker.play_time_ms, tracker.wall_time_ms, tracker.seeds_played) == (0, 0, 0)
    assert tracker.is_nether

    # Time played after the run was sent is nether time
    clock.advance(90)
    tracker.apply_state(SessionState.WALL, context.now_ms())
    assert tracker.nether_time_ms == 90_000
    assert tracker.play_time_ms == 0
    assert not tracker.is_nether


def test_failed_stats_keep_accumulators(context, tracker):
    context.dispatcher._post = FakeTransport(connection_error())
    tracker.apply_state(SessionState.WALL, 0)
    tracker.apply_state(SessionState.PLAYING, 0)
    tracker.apply_state(SessionState.WALL, 1 * MIN)

    result = tracker.submit_stats(GAME_DATA, "secret-key")
    assert not result.ok
    assert tracker.play_time_ms == 1 * MIN
    assert tracker.seeds_played == 1


def test_stats_need_seedqueue_and_state_output(tracker, transport, caplog):
    assert tracker.submit_stats({"modList": ["speedrunigt", "seedqueue"]}, "k") is None
    assert transport.calls == []
    assert "SeedQueue or State Output is missing" in caplog.text


def test_stats_opt_out(options, tracker, transport):
    options.reset_stats_enabled = False
    assert tracker.submit_stats(GAME_DATA, "k") is None
    assert transport.calls == []


def test_reads_instance_files(context, tracker, instance):
    state_file = instance / "wpstateout.txt"
    resets_file = instance / "config" / "mcsr" / "atum" / "rsg-attempts.txt"
    resets_file.parent.mkdir(parents=True)
    state_file.write_text("wall")
    set_mtime(state_file, 10_000)
    resets_file.write_text("42")
    set_mtime(resets_file, 10_000)

    context.publish_world_path(make_world(instance))
    tracker.tick()
    assert tracker.state_path == state_file
    assert tracker.current_state == SessionState.WALL
    assert tracker.resets == 42

    state_file.write_text("inworld,unpaused")
    set_mtime(state_file, 12_000)
    tracker.tick()
    assert tracker.current_state == SessionState.PLAYING
    assert tracker.seeds_played == 1

    state_file.write_text("wall")
    set_mtime(state_file, 72_000)
    tracker.tick()
    assert tracker.play_time_ms == 60_000


def test_afk_gap_resets_stats(context, tracker, instance):
    state_file = instance / "wpstateout.txt"
    state_file.write_text("wall")
    set_mtime(state_file, 0)
    context.publish_world_path(make_world(instance))
    tracker.tick()
    tracker.wall_time_ms = 5_000
    tracker.seeds_played = 3

    state_file.write_text("title")
    set_mtime(state_file, 2 * 3_600_000)
    tracker.tick()
    assert tracker.wall_time_ms == 0
    assert tracker.seeds_played == 0
    assert tracker.current_state == SessionState.IDLE


def test_instance_change_resets(context, tracker, instance, tmp_path):
    context.publish_world_path(make_world(instance))
    tracker.check_world_path()
    tracker.seeds_played = 4

    # Same instance, next world: counters kept
    context.publish_world_path(make_world(instance, "Random Speedrun #8"))
    tracker.check_world_path()
    assert tracker.seeds_played == 4

    other = tmp_path / "second" / ".minecraft"
    context.publish_world_path(make_world(other))
    tracker.check_world_path()
    assert tracker.seeds_played == 0
    assert tracker.instance_path == other


def test_tick_never_raises(context, tracker, instance):
    state_file = instance / "wpstateout.txt"
    state_file.write_text("garbage")
    set_mtime(state_file, 1_000)
    context.publish_world_path(make_world(instance))
    tracker.tick()
    assert tracker.current_state == SessionState.UNKNOWN
