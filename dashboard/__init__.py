"""Background launcher for the house timers dashboard."""

import os
import signal
import subprocess
import sys
from pathlib import Path
from typing import Optional

from config import DASHBOARD_PORT, DASHBOARD_PID_FILE

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def running_pid(pid_file: Path = DASHBOARD_PID_FILE) -> Optional[int]:
    """
    PID of a live dashboard process.

    A pid file that is unreadable or names a dead process is removed.

    Returns:
        The PID, or None when no dashboard is running.
    """
    try:
        pid = int(pid_file.read_text().strip())
    except FileNotFoundError:
        return None
    except (ValueError, OSError):
        pid_file.unlink(missing_ok=True)
        return None

    try:
        os.kill(pid, 0)
    except OSError:
        pid_file.unlink(missing_ok=True)
        return None
    return pid


def server_command(port: int, timers_file: Optional[Path] = None,
                   config_file: Optional[Path] = None) -> list:
    """Command line that starts the server module with the given files."""
    cmd = [sys.executable, "-m", "dashboard.server", "--port", str(port)]
    if timers_file:
        cmd += ["--timers-file", str(timers_file)]
    if config_file:
        cmd += ["--config", str(config_file)]
    return cmd


def launch(port: int = DASHBOARD_PORT, timers_file: Optional[Path] = None,
           config_file: Optional[Path] = None,
           pid_file: Path = DASHBOARD_PID_FILE) -> int:
    """Start the dashboard server detached from this process.

    Does nothing if the pid file names a live dashboard.

    Args:
        port: Port to serve on.
        timers_file: Snapshot file to serve instead of the default.
        config_file: Configuration file instead of the default.
        pid_file: Where the server PID is recorded.

    Returns:
        PID of the running dashboard.
    """
    pid = running_pid(pid_file)
    if pid is not None:
        print(f"Dashboard already running (PID {pid}) on port {port}")
        return pid

    proc = subprocess.Popen(
        server_command(port, timers_file, config_file),
        cwd=str(PROJECT_ROOT),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(proc.pid))
    print(f"Dashboard launched (PID {proc.pid}) on http://localhost:{port}")
    return proc.pid


def stop(pid_file: Path = DASHBOARD_PID_FILE) -> bool:
    """
    Terminate the running dashboard.

    Returns:
        True if a dashboard process was signalled.
    """
    pid = running_pid(pid_file)
    if pid is None:
        print("Dashboard not running")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError as e:
        print(f"Failed to stop dashboard: {e}")
        return False
    finally:
        pid_file.unlink(missing_ok=True)
    print(f"Dashboard stopped (PID {pid})")
    return True
