"""
RunLifecycle — decides when a run starts, ends, and gets sent.

Run timer tick (every 1s):
  header watcher → event log tailer → process_lines() → flush() when due

  NONE → STARTING (header change) → PACING (start event) → ENDED
"""

from .config import log, POINTER_FILE
from .constants import (
    ITEM_DATA_GAME_VERSION, IMPORTANT_ITEM_COUNTS, IMPORTANT_ITEM_USAGES,
    IMPORTANT_ITEM_CRAFTS, MIN_FULL_FEATURE_SRIGT_VERSION, ENDED_BUFFER_MAX_LINES,
)
from .dispatch import ResponseType
from .events import parse_event_line, realtime_of, start_events_for, try_compare_versions
from .fairness import is_random_speedrun_world, are_atum_settings_good
from .header import HeaderWatcher
from .items import ItemTracker
from .state import RunSession, RunProgress
from .tailer import FileTailer


class RunLifecycle:
    def __init__(self, context, play_tracker=None, pointer_path=POINTER_FILE,
                 item_tracker=None):
        self._ctx = context
        self._play_tracker = play_tracker
        self._items = item_tracker or ItemTracker()
        self.header_watcher = HeaderWatcher(pointer_path, sleep=context.sleep)
        self.session = RunSession()
        self.tailer = None

    # ─── Tick ────────────────────────────────────────────────

    def tick(self):
        lines = []
        log_mtime_ms = None
        try:
            if self.header_watcher.update():
                self.on_new_header(self.header_watcher.header)

            if self.tailer is not None:
                lines = self.tailer.poll()
                log_mtime_ms = self.tailer.last_mtime_ms
        except OSError as e:
            # Locked or vanished mid-read, retried next tick
            log.error("Exception while updating event tracker: %s", e)
            return
        if lines:
            log.debug("New Lines: %s", lines)

        self.process_lines(lines, self._ctx.now_ms(), log_mtime_ms)

    # ─── Header change ───────────────────────────────────────

    def on_new_header(self, header):
        session = self.session
        if session.submitted:
            self._ctx.dispatcher.submit_cancel()

        log.debug("New Header: %s", header.raw)
        session.start(header)
        self.tailer = FileTailer(header.event_log_path, sleep=self._ctx.sleep)
        self._ctx.publish_world_path(header.world_dir)

        options = self._ctx.options
        is_random = is_random_speedrun_world(header.world_name)
        if not options.allow_any_world_name and not is_random:
            log.warning('World name is not "Random Speedrun #..." so this run will not be on '
                        'PaceMan.gg (this prevents practice maps and tourney worlds). '
                        'Set allowAnyWorldName in your options to track manually created worlds.')
            session.end()

        if is_random and not are_atum_settings_good(header.world_dir):
            session.end()

        if try_compare_versions(MIN_FULL_FEATURE_SRIGT_VERSION, header.mod_version, 0) > 0:
            log.warning("Your SpeedRunIGT version is %s! This means some tracking features will be "
                        "missing, consider updating SpeedRunIGT to the latest version.",
                        header.mod_version)

    # ─── New lines ───────────────────────────────────────────

    def _estimate_run_start(self, lines, log_mtime_ms):
        # Anchor on the most recent line: its time is closest to the log's mtime
        for line in reversed(lines):
            realtime = realtime_of(line)
            if realtime is not None:
                self.session.run_start_ms = log_mtime_ms - realtime
                log.debug("Run start estimated at %d", self.session.run_start_ms)
                return

    def _buffer_ended(self, lines):
        # Never flushed; dropped whole once past the cap
        events = self.session.events
        events.extend(lines)
        if len(events) > ENDED_BUFFER_MAX_LINES:
            events.clear()

    def process_lines(self, lines, now_ms, log_mtime_ms=None):
        session = self.session
        options = self._ctx.options

        if lines and session.run_start_ms is None and log_mtime_ms is not None:
            self._estimate_run_start(lines, log_mtime_ms)

        if (not session.is_ended and session.run_start_ms is not None
                and session.time_since_run_start(now_ms) > options.run_too_long_ms):
            log.debug("Run started too long ago, this run won't be sent to PaceMan.gg")
            session.end()

        if not lines or session.header is None:
            return

        if session.is_ended:
            self._buffer_ended(lines)
            return

        start_events = start_events_for(session.header.version)
        if start_events is None:
            # snapshot / april fools build
            log.warning("Unsupported game version %s, this run won't be sent to PaceMan.gg",
                        session.header.version)
            session.end()
            self._buffer_ended(lines)
            return

        should_flush = session.submitted

        for line in lines:
            session.events.append(line)
            event = parse_event_line(line)

            if event.is_end:
                if session.submitted:
                    # Already on PaceMan: send this last end event before ending
                    self.flush(now_ms)
                else:
                    session.events.clear()
                session.end()
                should_flush = False
                break
            elif not session.is_pacing and event.name in start_events:
                log.debug("PaceMan Tracker start event reached!")
                session.world_uniquifier = event.uniquifier()
                session.set_progress(RunProgress.PACING)

            # Is the event recent enough to send the run?
            if (not should_flush and session.is_pacing and not event.is_unimportant
                    and event.realtime_ms is not None and session.run_start_ms is not None):
                time_diff = abs(now_ms - (event.realtime_ms + session.run_start_ms))
                if time_diff < options.event_recent_enough_ms:
                    should_flush = True
                    log.info("Run will now be sent to PaceMan.gg!")
                else:
                    log.debug("Event %s happened %d milliseconds ago (not recent enough).",
                              event.name, time_diff)

        if should_flush:
            self.flush(now_ms)

    # ─── Dispatch ────────────────────────────────────────────

    def _item_data(self):
        header = self.session.header
        if header is None or header.version != ITEM_DATA_GAME_VERSION:
            return None
        self._items.try_update(header.record_path)
        return self._items.construct_item_data(
            IMPORTANT_ITEM_COUNTS, IMPORTANT_ITEM_USAGES, IMPORTANT_ITEM_CRAFTS,
        )

    def flush(self, now_ms):
        """Send buffered events (and the header, if not sent yet)."""
        session = self.session
        dispatcher = self._ctx.dispatcher
        log.debug("Dumping to paceman")

        payload = dispatcher.build_run_payload(session, now_ms, self._item_data())
        was_submitted = session.submitted
        result = dispatcher.submit_run(payload)

        if result.type == ResponseType.DENIED:
            log.error("PaceMan.gg denied run data (%s), no more data will be sent for this run.",
                      result.message)
            session.end()
        elif result.type == ResponseType.SEND_ERROR:
            log.error("Failed to send to PaceMan.gg after a couple tries, "
                      "no more data will be sent for this run.")
            session.end()
        else:
            log.debug("Successfully sent to PaceMan.gg")
            if not was_submitted and "gameData" in payload and self._play_tracker is not None:
                self._submit_stats(payload)
            session.on_dump_success()
        return result

    def _submit_stats(self, payload):
        log.debug("Submitting reset stats")
        try:
            self._play_tracker.submit_stats(payload["gameData"], payload["accessKey"])
        except Exception as e:
            log.warning("Error while submitting stats: %s", e, exc_info=True)
            log.warning("The above error only affects the reset stats tracking.")

    # ─── Shutdown ────────────────────────────────────────────

    def cancel_if_submitted(self):
        """Retract a run that is on the server. Used on shutdown."""
        if self.session.submitted:
            self._ctx.dispatcher.submit_cancel()
            self.session.submitted = False
