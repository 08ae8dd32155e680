"""
tracker_core — PaceMan Tracker agent
====================================
Architecture: two fixed-rate timer threads, no shared locks.

  constants.py   → Version, intervals, endpoints, event vocabularies
  config.py      → Paths, logging, Options load/save, helpers
  tailer.py      → FileTailer (complete lines only, bounded waits)
  header.py      → RunHeader + HeaderWatcher (latest_world.json)
  events.py      → Event lines, start events per version, version compare
  fairness.py    → World name check, Atum settings check
  items.py       → ItemTracker (record.json → item data, 1.16.1 only)
  state.py       → RunSession dataclass (one run's progress and buffer)
  dispatch.py    → Response classification + fixed-delay retry
  http_client.py → HTTP session with pooling + CA bundle
  api.py         → Dispatcher (payloads, run / cancel / stats / key test)
  context.py     → AgentContext (what the timers share)
  lifecycle.py   → RunLifecycle (run timer: header → events → dispatch)
  session.py     → PlaySessionTracker (session timer: reset stats)
  scheduler.py   → FixedRateTimer (daemon thread per timer)
  crash.py       → Crash notice (Tk) for standalone runs
  app.py         → TrackerApp (wires it all, crash policy)
  runner.py      → main() command line entry point
"""
