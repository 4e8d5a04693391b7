"""Periodic multi-target refresh scheduler with per-target failure isolation."""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import StrEnum

from airwatch.models.common import Clock, normalize_target, utc_now
from airwatch.models.reporting import CycleReport, RefreshResult
from airwatch.pipeline.refresh_pipeline import RefreshPipeline

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 600.0  # 10 minutes


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    STOPPED = "stopped"


class RefreshScheduler:
    """Refreshes every target concurrently once per interval.

    The first cycle starts immediately. The interval is measured from cycle
    start, so a slow cycle shortens the following wait. Cancellation ends
    the loop: it interrupts a wait, and targets not yet started when it is
    observed are skipped, but a refresh already in flight always finishes.
    """

    def __init__(
        self,
        pipeline: RefreshPipeline,
        targets: list[str],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
        on_cycle: Callable[[CycleReport], None] | None = None,
    ):
        self.pipeline = pipeline
        self.targets = list(dict.fromkeys(normalize_target(t) for t in targets))
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._monotonic = monotonic
        self.on_cycle = on_cycle
        self.state = SchedulerState.IDLE
        self.total_cycles = 0
        self.total_successes = 0
        self.total_failures = 0
        self.last_report: CycleReport | None = None
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None

    def run(self, cancel: threading.Event | None = None) -> None:
        """Run cycles until ``cancel`` is set. Blocks the calling thread."""
        if cancel is None:
            cancel = self._cancel
        logger.info(
            "Refresh scheduler starting with %d targets (%s), interval %.0fs",
            len(self.targets), ", ".join(self.targets), self.interval_seconds,
        )
        try:
            while not cancel.is_set():
                cycle_start = self._monotonic()
                report = self.run_cycle(cancel)
                if self.on_cycle is not None:
                    self.on_cycle(report)
                if cancel.is_set():
                    break

                remaining = max(0.0, self.interval_seconds - (self._monotonic() - cycle_start))
                self.state = SchedulerState.WAITING
                if cancel.wait(remaining):
                    break
        finally:
            self.state = SchedulerState.STOPPED
            logger.info(
                "Refresh scheduler stopped after %d cycles (%d ok, %d failed refreshes)",
                self.total_cycles, self.total_successes, self.total_failures,
            )

    def run_cycle(self, cancel: threading.Event | None = None) -> CycleReport:
        """Refresh all targets concurrently and wait for every one to finish."""
        self.state = SchedulerState.RUNNING
        self.total_cycles += 1
        report = CycleReport(cycle=self.total_cycles, started_at=self.clock())
        started = self._monotonic()
        logger.info("Starting refresh cycle #%d for %d targets", report.cycle, len(self.targets))

        if self.targets:
            with ThreadPoolExecutor(
                max_workers=len(self.targets), thread_name_prefix="refresh"
            ) as pool:
                futures = {
                    pool.submit(self._refresh_isolated, target, cancel): target
                    for target in self.targets
                }
                for future in as_completed(futures):
                    target = futures[future]
                    outcome = future.result()
                    if outcome is None:
                        report.skipped.append(target)
                    elif isinstance(outcome, Exception):
                        report.failed[target] = str(outcome) or type(outcome).__name__
                    else:
                        report.succeeded.append(target)

        report.duration_seconds = self._monotonic() - started
        self.total_successes += len(report.succeeded)
        self.total_failures += len(report.failed)
        self.last_report = report
        logger.info(
            "Completed refresh cycle #%d in %.1fs: %d ok, %d failed, %d skipped",
            report.cycle, report.duration_seconds,
            len(report.succeeded), len(report.failed), len(report.skipped),
        )
        return report

    def refresh_one(self, target: str) -> RefreshResult:
        """Synchronous single-target refresh for the read path. Errors propagate."""
        return self.pipeline.refresh(target)

    def start(self) -> threading.Thread:
        """Run the loop on a background daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Refresh scheduler already running")
        self._cancel.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._cancel,), name="refresh-scheduler", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        """Signal cancellation and wait for the in-flight cycle to finish."""
        self._cancel.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def _refresh_isolated(
        self, target: str, cancel: threading.Event | None
    ) -> RefreshResult | Exception | None:
        if cancel is not None and cancel.is_set():
            logger.info("Skipping refresh for %s: scheduler cancelled", target)
            return None
        try:
            result = self.pipeline.refresh(target)
        except Exception as e:
            logger.exception("Failed to refresh data for %s", target)
            return e
        logger.info(
            "Refreshed %s: AQI %d (%s), %d forecast days",
            target, result.snapshot.index,
            "saved" if result.written else "unchanged", result.forecast_days,
        )
        return result
