"""
Server API calls — run events, run cancellation, reset stats, key check.

All calls are blocking and run on the timer thread that needs them.
Run/cancel sends retry up to 5 times, 5s apart (see dispatch.send_with_retry).
Nothing is persisted: a send that finally fails is dropped.
"""

import hashlib
import json
import logging
import time

import requests

from .config import log
from .constants import (
    AGENT_VERSION, EVENT_ENDPOINT, STATS_ENDPOINT, TEST_ENDPOINT,
    SEND_ATTEMPTS, SEND_RETRY_DELAY_SEC,
)
from .dispatch import ResponseType, classify, send_with_retry
from . import http_client


def sha256_hex(text):
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class Dispatcher:
    """
    Builds request payloads and sends them.

    `post(url, payload) -> PostResponse` is the transport; it raises
    requests.RequestException (or OSError) on transport failure.
    """

    def __init__(self, options, post=None, sleep=time.sleep,
                 event_endpoint=EVENT_ENDPOINT, stats_endpoint=STATS_ENDPOINT,
                 test_endpoint=TEST_ENDPOINT, tracker_version=AGENT_VERSION,
                 attempts=SEND_ATTEMPTS, retry_delay=SEND_RETRY_DELAY_SEC):
        self._options = options
        self._post = post or http_client.post_json
        self._sleep = sleep
        self.event_endpoint = event_endpoint
        self.stats_endpoint = stats_endpoint
        self.test_endpoint = test_endpoint
        self.tracker_version = tracker_version
        self._attempts = attempts
        self._retry_delay = retry_delay

    @property
    def access_key(self):
        return self._options.access_key

    # ─── Payloads ────────────────────────────────────────────

    def build_game_data(self, header, world_uniquifier):
        return {
            "worldId": sha256_hex(header.world_path + world_uniquifier),
            "gameVersion": header.version,
            "modVersion": header.mod_version,
            "category": header.category,
            "modList": list(header.mods),
            "trackerVersion": self.tracker_version,
        }

    def build_run_payload(self, session, now_ms, item_data=None):
        payload = {"accessKey": self.access_key}
        if session.pending_header is not None:
            payload["gameData"] = self.build_game_data(session.pending_header,
                                                       session.world_uniquifier)
        payload["eventList"] = list(session.events)
        payload["timeSinceRunStart"] = session.time_since_run_start(now_ms)
        if item_data:
            payload["itemData"] = item_data
        return payload

    def build_cancel_payload(self):
        return {"accessKey": self.access_key, "eventList": [], "kill": True}

    # ─── Sends ───────────────────────────────────────────────

    def _send(self, url, payload, what):
        if log.isEnabledFor(logging.DEBUG):
            body = json.dumps(payload)
            if self.access_key:
                body = body.replace(self.access_key, "KEY_HIDDEN")
            log.debug("Sending %s exactly: %s", what, body)
        return send_with_retry(
            lambda: classify(lambda: self._post(url, payload)),
            attempts=self._attempts,
            delay=self._retry_delay,
            sleep=self._sleep,
            what=what,
        )

    def submit_run(self, payload):
        """Send run events (and game data). Returns the final DispatchResult."""
        result = self._send(self.event_endpoint, payload, "run data")
        log.debug("Run data response: %s %s", result.type.value, result.message or "")
        return result

    def submit_cancel(self):
        """Tell the server the current run is over. A denial counts as done."""
        log.debug("Telling PaceMan to cancel the run.")
        result = self._send(self.event_endpoint, self.build_cancel_payload(), "run cancel")
        if result.type == ResponseType.DENIED:
            # Most likely there is no run to cancel
            log.debug("Cancel denied (%s) — treating as cancelled", result.message)
        elif result.type == ResponseType.SEND_ERROR:
            log.error("Failed to tell PaceMan.gg to cancel the run: %s", result.error)
        return result

    def submit_stats(self, payload):
        """Single attempt; the caller decides what a failure means."""
        result = classify(lambda: self._post(self.stats_endpoint, payload))
        log.debug("Stats response: %s %s", result.type.value, result.message or result.error or "")
        return result

    def test_access_key(self, access_key):
        """POST the key to the test endpoint. PostResponse, or None on transport error."""
        try:
            return self._post(self.test_endpoint, {"accessKey": access_key})
        except (requests.RequestException, OSError) as e:
            log.warning("Access key test failed: %s", e)
            return None
