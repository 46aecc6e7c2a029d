"""Periodic evaluation of running house timers."""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from clock import Clock
from config import RESUME_GAP_FACTOR
from errors import ClockUnavailable
from timer_engine import TimerEngine

logger = logging.getLogger(__name__)


class Scheduler(QObject):
    """
    Drives one shared QTimer that re-evaluates every active house.

    Nothing here counts ticks: each evaluation passes the real current time
    to the engine, which derives remaining time from timestamps.
    """

    # Emitted after a resume pass with the number of houses re-evaluated
    resumed = pyqtSignal(int)

    def __init__(self, engine: TimerEngine, interval_ms: Optional[int] = None,
                 clock: Optional[Clock] = None):
        """
        Initialize the scheduler (not started).

        Args:
            engine: Engine whose active houses are evaluated.
            interval_ms: Nominal cadence. Defaults to the engine config.
            clock: Wall-clock source. Defaults to the engine's clock.
        """
        super().__init__()
        self.engine = engine
        self.clock = clock or engine.clock
        self.interval_ms = interval_ms or engine.config.tick_interval_ms
        self._last_tick_ms: Optional[int] = None

        self.timer = QTimer(self)
        self.timer.timeout.connect(self._on_tick)
        self.timer.setInterval(self.interval_ms)

    def start(self) -> None:
        """Start periodic evaluation."""
        self._last_tick_ms = self._now()
        self.timer.start()

    def stop(self) -> None:
        """Stop periodic evaluation."""
        self.timer.stop()

    def is_running(self) -> bool:
        return self.timer.isActive()

    def _now(self) -> int:
        try:
            return self.clock.now_ms()
        except ClockUnavailable:
            logger.critical("Clock unavailable, halting scheduler")
            self.timer.stop()
            raise

    def _on_tick(self) -> None:
        """Handle timer tick: evaluate all active houses, or resume after a gap."""
        now = self._now()
        if self._last_tick_ms is not None:
            gap = now - self._last_tick_ms
            if gap > self.interval_ms * RESUME_GAP_FACTOR:
                logger.info("Tick arrived %d ms after the previous one, resuming", gap)
                self.resume(now)
                return
        self._last_tick_ms = now
        self._evaluate_all(now)

    def resume(self, now: Optional[int] = None) -> int:
        """
        Re-evaluate every active house immediately, before any further
        periodic tick. Call when the host returns from suspension.

        Args:
            now: Current epoch milliseconds. Defaults to the clock.

        Returns:
            Number of houses evaluated.
        """
        was_running = self.timer.isActive()
        self.timer.stop()

        now = self._now() if now is None else now
        count = self._evaluate_all(now)
        self._last_tick_ms = now

        if was_running:
            self.timer.start()
        logger.debug("Resume evaluated %d timer(s)", count)
        self.resumed.emit(count)
        return count

    def _evaluate_all(self, now: int) -> int:
        handles = self.engine.active_handles()
        for handle in handles:
            self.engine.tick(handle, now)
        return len(handles)
