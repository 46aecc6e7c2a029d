"""Flask dashboard server for house timers."""

import argparse
import os
from pathlib import Path

from flask import Flask, jsonify

# Kept free of Qt imports so the server runs as a plain subprocess
from clock import Clock
from config import DASHBOARD_PID_FILE, DASHBOARD_PORT, TIMERS_FILE, load_config
from models import Phase, format_remaining
from storage import SnapshotStore

app = Flask(__name__)
app.config.update(TIMERS_FILE=TIMERS_FILE, CONFIG_FILE=None)


def _open_store() -> SnapshotStore:
    """Read the snapshot file fresh on every request; the GUI owns writes."""
    return SnapshotStore(Path(app.config["TIMERS_FILE"]))


def _format_house(index: int, name: str, city: str, snapshot, initial: int, now_ms: int) -> dict:
    """Format one house for the API response."""
    if snapshot is None or not snapshot.running or snapshot.start_time is None:
        phase = Phase.IDLE
        remaining = initial
    else:
        phase = Phase.OVERTIME if snapshot.overtime else Phase.RUNNING
        remaining = snapshot.current_duration(now_ms)

    return {
        "index": index,
        "name": name,
        "city": city,
        "phase": phase.value,
        "remaining_seconds": remaining,
        "display": format_remaining(remaining),
        "negative": remaining < 0,
    }


@app.route("/api/timers")
def api_timers():
    """Return every house with its current phase and remaining time."""
    cfg = load_config(app.config["CONFIG_FILE"])
    store = _open_store()
    now_ms = Clock().now_ms()

    houses = [
        _format_house(i, cfg.house_name(i), cfg.house_city(i), store.load(i), cfg.initial_duration_seconds, now_ms)
        for i in range(cfg.total_houses)
    ]
    return jsonify({
        "active": sum(1 for h in houses if h["phase"] != Phase.IDLE.value),
        "timers": houses,
    })


@app.route("/api/export")
def api_export():
    """Return stored timers in the export shape, durations recomputed."""
    cfg = load_config(app.config["CONFIG_FILE"])
    return jsonify(_open_store().export(cfg.total_houses, Clock().now_ms()))


def main():
    parser = argparse.ArgumentParser(description="house timers dashboard server")
    parser.add_argument("--port", type=int, default=DASHBOARD_PORT)
    parser.add_argument("--timers-file", type=str, default=None,
                        help="Snapshot file to serve (default ~/.housetimers/timers.json)")
    parser.add_argument("--config", type=str, default=None,
                        help="Configuration file (default ~/.housetimers/config.json)")
    args = parser.parse_args()

    if args.timers_file:
        app.config["TIMERS_FILE"] = Path(args.timers_file)
    if args.config:
        app.config["CONFIG_FILE"] = Path(args.config)

    # Write PID file
    pid_file = DASHBOARD_PID_FILE
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))

    try:
        app.run(host="127.0.0.1", port=args.port, debug=False)
    finally:
        pid_file.unlink(missing_ok=True)


if __name__ == "__main__":
    main()
