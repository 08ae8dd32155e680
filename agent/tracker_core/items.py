"""
ItemTracker — item statistics from SpeedRunIGT's world-local record.json.

The "stats" section is keyed by a per-player id, so the first entry is used.
Estimated count of an item = picked up − dropped − used.
"""

import json
from pathlib import Path

from .config import log


class ItemTracker:
    def __init__(self):
        self._estimated = {}
        self._usages = {}
        self._crafted = {}

    def try_update(self, record_path):
        """Reload counters; any problem is logged and leaves the counters empty."""
        try:
            self.update(record_path)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            log.error("ItemTracker update failed: %s", e)

    def update(self, record_path):
        self._estimated = {}
        self._usages = {}
        self._crafted = {}

        record_path = Path(record_path)
        if not record_path.exists():
            return

        data = json.loads(record_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict) or not data.get("stats"):
            return

        player_stats = next(iter(data["stats"].values()))
        stats = player_stats.get("stats", {})

        for item, count in stats.get("minecraft:picked_up", {}).items():
            self._estimated[item] = int(count)

        for item, count in stats.get("minecraft:dropped", {}).items():
            if item in self._estimated:
                self._estimated[item] -= int(count)

        for item, count in stats.get("minecraft:used", {}).items():
            if item in self._estimated:
                self._estimated[item] -= int(count)
            self._usages[item] = int(count)

        for item, count in stats.get("minecraft:crafted", {}).items():
            self._crafted[item] = int(count)

    def estimated_count(self, item):
        return self._estimated.get(item, 0)

    def usages(self, item):
        return self._usages.get(item, 0)

    def crafted(self, item):
        return self._crafted.get(item, 0)

    def construct_item_data(self, counts, usages, crafted=frozenset()):
        """
        Build the itemData block. Each requested section is included (possibly
        empty); returns None when every requested counter is zero.
        """
        estimated = {i: self.estimated_count(i) for i in sorted(counts) if self.estimated_count(i) > 0}
        used = {i: self.usages(i) for i in sorted(usages) if self.usages(i) > 0}
        made = {i: self.crafted(i) for i in sorted(crafted) if self.crafted(i) > 0}

        if not (estimated or used or made):
            return None

        item_data = {}
        if counts:
            item_data["estimatedCounts"] = estimated
        if crafted:
            item_data["crafted"] = made
        if usages:
            item_data["usages"] = used
        return item_data
