"""Refresh daemon: runs the refresh scheduler until signalled to stop.

Usage:
    airwatch daemon --config airwatch.yaml
    airwatch daemon --status
    airwatch daemon --stop
"""

import json
import logging
import os
import signal
import sys
import threading
import time
from datetime import UTC, datetime
from pathlib import Path

from airwatch.config.schema import AppConfig
from airwatch.models.reporting import CycleReport
from airwatch.service import App, build_app

logger = logging.getLogger(__name__)

PID_DIR = Path("data")
PID_FILE = PID_DIR / "daemon.pid"
STATE_FILE = PID_DIR / "daemon_state.json"
LOG_DIR = Path("logs")
MAX_LOG_FILES = 50


class RefreshDaemon:
    """Owns one App and drives its scheduler from the main thread."""

    def __init__(self, config: AppConfig, app: App | None = None):
        self.config = config
        self._app = app
        self._cancel = threading.Event()
        self._started_at: str | None = None
        self._last_report: CycleReport | None = None
        self._log_handler: logging.Handler | None = None

    @property
    def app(self) -> App:
        if self._app is None:
            self._app = build_app(self.config)
        return self._app

    @property
    def interval(self) -> int:
        return self.config.scheduler.interval_minutes * 60

    def start(self) -> None:
        self._check_not_already_running()
        self._write_pid()
        self._setup_signals()
        self._open_log()
        self._started_at = datetime.now(UTC).isoformat()

        scheduler = self.app.scheduler
        scheduler.on_cycle = self._on_cycle
        logger.info(
            "Daemon started, interval=%ds targets=%d pid=%d",
            self.interval, len(scheduler.targets), os.getpid(),
        )
        print(f"Refresh daemon started (pid {os.getpid()}, every {self.interval}s)")
        print(f"   Logs: {LOG_DIR}/")
        print("   Stop: airwatch daemon --stop")

        try:
            scheduler.run(self._cancel)
        finally:
            self._cleanup()

    def stop(self) -> None:
        self._cancel.set()

    def _on_cycle(self, report: CycleReport) -> None:
        self._last_report = report
        if report.failed:
            logger.warning(
                "Cycle #%d had %d failed targets: %s",
                report.cycle, len(report.failed), ", ".join(sorted(report.failed)),
            )
        self._save_state()

    def _setup_signals(self) -> None:
        def _stop(signum: int, frame: object) -> None:
            sig_name = signal.Signals(signum).name
            logger.info("Received %s, finishing current cycle...", sig_name)
            self._cancel.set()

        signal.signal(signal.SIGTERM, _stop)
        signal.signal(signal.SIGINT, _stop)

    def _open_log(self) -> None:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        handler = logging.FileHandler(LOG_DIR / f"daemon_{timestamp}.log")
        handler.setLevel(logging.INFO)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(handler)
        self._log_handler = handler
        self._rotate_logs()

    def _close_log(self) -> None:
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler.close()
            self._log_handler = None

    def _rotate_logs(self) -> None:
        if not LOG_DIR.exists():
            return
        logs = sorted(LOG_DIR.glob("daemon_*.log"))
        if len(logs) > MAX_LOG_FILES:
            for old in logs[: len(logs) - MAX_LOG_FILES]:
                old.unlink(missing_ok=True)

    def _check_not_already_running(self) -> None:
        if PID_FILE.exists():
            try:
                pid = int(PID_FILE.read_text().strip())
                os.kill(pid, 0)
                print(f"Daemon already running (pid {pid}). Stop it first:")
                print("   airwatch daemon --stop")
                sys.exit(1)
            except (ProcessLookupError, ValueError):
                # stale
                PID_FILE.unlink(missing_ok=True)
            except PermissionError:
                print(f"Daemon may be running (pid {pid}), can't verify.")
                sys.exit(1)

    def _write_pid(self) -> None:
        PID_DIR.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text(str(os.getpid()))

    def _save_state(self) -> None:
        scheduler = self.app.scheduler
        report = self._last_report
        state = {
            "pid": os.getpid(),
            "started_at": self._started_at,
            "interval": self.interval,
            "state": scheduler.state.value,
            "targets": scheduler.targets,
            "total_cycles": scheduler.total_cycles,
            "total_successes": scheduler.total_successes,
            "total_failures": scheduler.total_failures,
            "last_cycle": None if report is None else {
                "cycle": report.cycle,
                "started_at": report.started_at.isoformat(),
                "duration_seconds": round(report.duration_seconds, 3),
                "succeeded": sorted(report.succeeded),
                "failed": report.failed,
                "skipped": sorted(report.skipped),
            },
            "last_update": datetime.now(UTC).isoformat(),
        }
        PID_DIR.mkdir(parents=True, exist_ok=True)
        STATE_FILE.write_text(json.dumps(state, indent=2))

    def _cleanup(self) -> None:
        PID_FILE.unlink(missing_ok=True)
        self._save_state()
        scheduler = self.app.scheduler
        logger.info(
            "Daemon stopped, %d cycles (%d refreshes ok, %d failed)",
            scheduler.total_cycles, scheduler.total_successes, scheduler.total_failures,
        )
        print(
            f"Daemon stopped: {scheduler.total_cycles} cycles "
            f"({scheduler.total_successes} refreshes ok, {scheduler.total_failures} failed)"
        )
        self.app.close()
        self._close_log()


def stop_daemon(wait_seconds: int = 60) -> int:
    """Stop a running daemon by sending SIGTERM."""
    if not PID_FILE.exists():
        print("No daemon running (no PID file found)")
        return 1

    try:
        pid = int(PID_FILE.read_text().strip())
    except ValueError:
        print("Corrupt PID file, removing")
        PID_FILE.unlink(missing_ok=True)
        return 1

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        print(f"Daemon not running (stale pid {pid}), cleaning up")
        PID_FILE.unlink(missing_ok=True)
        STATE_FILE.unlink(missing_ok=True)
        return 0

    print(f"Stopping daemon (pid {pid})...")
    os.kill(pid, signal.SIGTERM)

    # An in-flight cycle is allowed to finish.
    for _ in range(wait_seconds):
        time.sleep(1)
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            print("Daemon stopped")
            PID_FILE.unlink(missing_ok=True)
            return 0

    print(f"Daemon didn't stop in {wait_seconds}s, sending SIGKILL")
    os.kill(pid, signal.SIGKILL)
    PID_FILE.unlink(missing_ok=True)
    return 0


def daemon_status() -> int:
    """Print daemon status from the state file."""
    if not STATE_FILE.exists():
        print("No daemon state found")
        if PID_FILE.exists():
            try:
                pid = int(PID_FILE.read_text().strip())
                os.kill(pid, 0)
                print(f"  (but PID file exists: {pid}, process running)")
            except (ProcessLookupError, ValueError):
                print("  (stale PID file found)")
        return 1

    state = json.loads(STATE_FILE.read_text())
    pid = state.get("pid", "?")

    running = False
    try:
        os.kill(int(pid), 0)
        running = True
    except (ProcessLookupError, ValueError, TypeError):
        pass

    print(f"Daemon {'running' if running else 'stopped'}")
    print(f"  PID: {pid}")
    print(f"  Interval: {state.get('interval', '?')}s")
    print(f"  Targets: {', '.join(state.get('targets', []))}")
    print(f"  Started: {state.get('started_at', '?')}")
    print(f"  Cycles: {state.get('total_cycles', 0)}")
    print(f"  Refreshes ok: {state.get('total_successes', 0)}")
    print(f"  Refreshes failed: {state.get('total_failures', 0)}")
    last = state.get("last_cycle")
    if last:
        print(
            f"  Last cycle: #{last['cycle']} at {last['started_at']} "
            f"({last['duration_seconds']}s, {len(last['failed'])} failed)"
        )
    print(f"  Last update: {state.get('last_update', '?')}")
    return 0
