"""
PaceMan Tracker — Standalone Agent
==================================
Watches the SpeedRunIGT pointer file (~/speedrunigt/latest_world.json) and
the active world's event log, and sends runs that reach the nether (or a
version-specific start event) to PaceMan.gg while they are in progress.

Reads local files and sends ONLY: run events, game/mod versions, a hashed
world id and reset statistics. The access key never appears in logs.

Usage:
    python agent.py [--debug] [--test-key] [--set-key KEY]
"""

import sys

from tracker_core.runner import main

if __name__ == "__main__":
    sys.exit(main())
