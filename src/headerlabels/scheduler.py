"""Periodic triggering of the primary and reconciliation passes."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from types import FrameType
from typing import Any

SignalHandler = Callable[[int, FrameType | None], Any] | int | signal.Handlers | None

LOGGER = logging.getLogger(__name__)


@dataclass
class Job:
    """A callable run every ``interval`` seconds."""

    name: str
    interval: float
    action: Callable[[], object]
    next_run: float = 0.0
    runs: int = 0
    failures: int = 0


class Scheduler:
    """Run jobs on fixed intervals until stopped.

    Jobs run one at a time on the calling thread. A failing job is logged and
    retried at its next slot.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._jobs: list[Job] = []
        self._clock = clock
        self._stop_event = threading.Event()
        self._installed_signals: dict[int, SignalHandler] = {}

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    def every(self, interval: float, name: str, action: Callable[[], object]) -> Job:
        if interval <= 0:
            raise ValueError(f"Interval for job '{name}' must be positive.")
        job = Job(name=name, interval=interval, action=action, next_run=self._clock())
        self._jobs.append(job)
        return job

    def stop(self) -> None:
        self._stop_event.set()

    def run(self, *, install_signals: bool = True) -> None:
        if install_signals:
            self._install_signal_handlers()
        try:
            while not self._stop_event.is_set():
                self.run_pending()
                self._stop_event.wait(self._seconds_until_next())
        except KeyboardInterrupt:
            LOGGER.info("Interrupt received; shutting down scheduler.")
        finally:
            self._restore_signal_handlers()

    def run_pending(self) -> int:
        """Run every job that is due and return how many ran."""

        ran = 0
        for job in self._jobs:
            if self._stop_event.is_set():
                break
            now = self._clock()
            if now < job.next_run:
                continue
            self._run_job(job)
            job.next_run = now + job.interval
            ran += 1
        return ran

    def _run_job(self, job: Job) -> None:
        LOGGER.debug("Running job '%s'", job.name)
        job.runs += 1
        try:
            job.action()
        except Exception:
            job.failures += 1
            LOGGER.exception("Scheduled job '%s' failed", job.name)

    def _seconds_until_next(self) -> float:
        if not self._jobs:
            return 1.0
        soonest = min(job.next_run for job in self._jobs)
        return max(0.0, soonest - self._clock())

    def _install_signal_handlers(self) -> None:
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                previous = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)
            except ValueError:
                # not on the main thread
                continue
            self._installed_signals[sig] = previous

    def _restore_signal_handlers(self) -> None:
        for sig, handler in self._installed_signals.items():
            try:
                signal.signal(sig, handler)
            except ValueError:  # pragma: no cover - not on the main thread
                continue
        self._installed_signals.clear()

    def _handle_signal(self, signum: int, _frame: FrameType | None) -> None:
        LOGGER.info("Signal %s received; initiating shutdown.", signum)
        self._stop_event.set()


__all__ = ["Job", "Scheduler"]
