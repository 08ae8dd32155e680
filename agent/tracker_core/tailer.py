"""
FileTailer — incremental reader for files another process is appending to.

Only complete, newline-terminated records are ever handed out. When the
writer is mid-flush (new bytes without a trailing newline) the read is retried
after a short delay without moving the offset. The retry loop is bounded:
after TAIL_WAIT_ATTEMPTS the poll gives up for this tick and the same bytes
are read again on the next one.
"""

import os
import time

from .config import log
from .constants import FILE_WAIT_DELAY_SEC, TAIL_WAIT_ATTEMPTS


# ─── Byte-scanning primitives ────────────────────────────────────

def mtime_ns(path):
    """Modification time in ns, or None if the file is missing."""
    try:
        return os.stat(path).st_mtime_ns
    except FileNotFoundError:
        return None


def read_complete(path, offset):
    """
    Read everything after `offset`.
    Returns (new_offset, data) when the new bytes end with a newline (or there
    are none), or None when the last record is still being written.
    """
    with open(path, "rb") as f:
        f.seek(offset)
        data = f.read()
    if not data:
        return offset, b""
    if not data.endswith(b"\n"):
        return None
    return offset + len(data), data


def read_first_line(path):
    """First line of the file without its newline, or None if it is not terminated yet."""
    with open(path, "rb") as f:
        line = f.readline()
    if not line.endswith(b"\n"):
        return None
    return line[:-1]


def read_terminated(path):
    """Whole file content, or None if it does not end with a newline yet."""
    with open(path, "rb") as f:
        data = f.read()
    if not data.endswith(b"\n"):
        return None
    return data


def split_lines(data):
    """Decode, split on newlines, strip and drop empties."""
    text = data.decode("utf-8", errors="replace")
    return [line.strip() for line in text.split("\n") if line.strip()]


def wait_for(attempt, attempts=TAIL_WAIT_ATTEMPTS, delay=FILE_WAIT_DELAY_SEC, sleep=time.sleep):
    """
    Call `attempt` until it returns something other than None, sleeping
    `delay` between calls. Returns None if every attempt came back empty.
    """
    for i in range(attempts):
        result = attempt()
        if result is not None:
            return result
        if i < attempts - 1:
            sleep(delay)
    return None


# ─── FileTailer ──────────────────────────────────────────────────

class FileTailer:
    """
    Tails one file from a persisted byte offset.

      poll()         → complete lines appended since the last successful poll
      read_header()  → first line, re-basing the body offset when it changes
      rebase(offset) → explicit offset reset (header change)

    read_header() is the single-file header mode, for logs that carry their
    own header as the first line. The run pipeline reads its header from the
    pointer file through HeaderWatcher instead.
    """

    def __init__(self, path, offset=0, wait_attempts=TAIL_WAIT_ATTEMPTS,
                 wait_delay=FILE_WAIT_DELAY_SEC, sleep=time.sleep):
        self.path = path
        self.offset = offset
        self._wait_attempts = wait_attempts
        self._wait_delay = wait_delay
        self._sleep = sleep
        self._last_mtime_ns = None
        self._header = None
        self._header_changed = False
        self.last_mtime_ms = None

    def _wait(self, attempt):
        return wait_for(attempt, self._wait_attempts, self._wait_delay, self._sleep)

    def poll(self):
        """Return the new complete lines, or [] if there are none (yet)."""
        current = mtime_ns(self.path)
        if current is None or current == self._last_mtime_ns:
            return []

        # Until a read succeeds the mtime stays unrecorded and the next tick reads again
        result = self._wait(lambda: read_complete(self.path, self.offset))
        if result is None:
            log.warning("Gave up waiting for %s to finish a line (offset=%d)",
                        self.path, self.offset)
            return []

        new_offset, data = result
        self._last_mtime_ns = current
        self.offset = new_offset
        self.last_mtime_ms = current // 1_000_000
        return split_lines(data)

    def read_header(self):
        """
        Read the first line. When it differs from the last one seen, the body
        offset is re-based to the header's length and header_changed() fires.
        Returns the header text, or None if it could not be read completely.
        """
        raw = self._wait(lambda: read_first_line(self.path))
        if raw is None:
            log.warning("Gave up waiting for the header line of %s", self.path)
            return None
        header = raw.decode("utf-8", errors="replace")
        if header != self._header:
            self._header = header
            self._header_changed = True
            self.rebase(len(raw))
        return header

    def header_changed(self):
        """One-shot flag: True once after each header change."""
        if self._header_changed:
            self._header_changed = False
            return True
        return False

    def rebase(self, offset):
        self.offset = offset
        self._last_mtime_ns = None
