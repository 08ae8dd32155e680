"""
Entry point: command line, logging, options, then the standalone app.
"""

import argparse

from .constants import AGENT_VERSION, MIN_KEY_TEST_FAIL_CODE
from .config import log, safe_print, setup_logging, load_options, save_options, OPTIONS_FILE
from .api import Dispatcher
from .app import TrackerApp


def build_parser():
    ap = argparse.ArgumentParser(
        prog="paceman-tracker",
        description="Tail SpeedRunIGT event logs and send runs to PaceMan.gg",
    )
    ap.add_argument("--debug", action="store_true", help="Log debug messages (payloads are logged with the key hidden)")
    ap.add_argument("--options", default=str(OPTIONS_FILE), help="Path to options.json (default: %(default)s)")
    ap.add_argument("--set-key", metavar="KEY", default=None, help="Save this access key to the options file and exit")
    ap.add_argument("--test-key", action="store_true", help="Check the configured access key with PaceMan.gg and exit")
    ap.add_argument("--allow-any-world-name", action="store_true",
                    help="Track worlds not named \"Random Speedrun #...\" for this session")
    ap.add_argument("--no-reset-stats", action="store_true", help="Do not submit reset stats for this session")
    return ap


def check_access_key(options, dispatcher=None):
    """Print whether the key is accepted. Returns an exit code."""
    dispatcher = dispatcher or Dispatcher(options)
    response = dispatcher.test_access_key(options.access_key)
    if response is None:
        safe_print("Access key is not valid! (no response)")
        return 1
    if response.code >= MIN_KEY_TEST_FAIL_CODE:
        safe_print(f"Access key is not valid! ({response.code}: {response.message})")
        return 1
    safe_print("Your access key is valid! Please make sure you have SpeedRunIGT 14.2+ "
               "installed on all your instances!")
    return 0


def main(argv=None):
    """Primary entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    safe_print("PaceMan Tracker v" + AGENT_VERSION)
    safe_print()

    options = load_options(args.options)

    if args.set_key is not None:
        options.access_key = args.set_key.strip()
        save_options(options, args.options)
        return 0

    if not options.access_key:
        safe_print("No access key set. Get one from PaceMan.gg and run with --set-key KEY.")
        return 1

    if args.test_key:
        return check_access_key(options)

    if args.allow_any_world_name:
        options.allow_any_world_name = True
    if args.no_reset_stats:
        options.reset_stats_enabled = False

    app = TrackerApp(options)
    try:
        return app.run()
    except KeyboardInterrupt:
        safe_print("\nTracker stopped by user.")
        log.info("Stopped by user")
        app.stop()
        return 0
