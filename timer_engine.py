"""Timer engine with phase transitions and alert checking for house timers."""

import json
import logging
from typing import Dict, List, Optional, Tuple, Union

from PyQt6.QtCore import QObject, pyqtSignal

from clock import Clock
from config import TimerConfig
from errors import CorruptSnapshot, InvalidIndex
from models import (
    AlertEvent, AlertKind, DisplayEvent, Phase, PhaseEvent,
    TimerHandle, TimerSnapshot, TimerState, elapsed_seconds,
)
from storage import SnapshotStore, key_for

logger = logging.getLogger(__name__)

Target = Union[int, TimerHandle]


class TimerEngine(QObject):
    """
    Owns every house's TimerState and drives its state machine.

    Remaining time is always recomputed from the segment's start timestamp,
    so late or skipped evaluations never accumulate drift.
    """

    # Signals
    display = pyqtSignal(int, int)        # (index, signed remaining seconds)
    phase_changed = pyqtSignal(int, str)  # (index, Phase value)
    alert = pyqtSignal(int, str)          # (index, alert label e.g. "overtime5")

    def __init__(self, config: TimerConfig, store: SnapshotStore, clock: Optional[Clock] = None):
        """
        Initialize timer engine with every house Idle.

        Args:
            config: Timer options (house count, durations, thresholds).
            store: Snapshot store used for persistence and recovery.
            clock: Wall-clock source. Defaults to the system clock.
        """
        super().__init__()
        self.config = config
        self.store = store
        self.clock = clock or Clock()
        initial = config.initial_duration_seconds
        self.states: List[TimerState] = [
            TimerState(i, total_duration=initial, displayed_remaining=initial)
            for i in range(config.total_houses)
        ]

    # ------------------------------------------------------------------
    # Lookup helpers

    def _now(self, now: Optional[int]) -> int:
        return self.clock.now_ms() if now is None else now

    def _get(self, index) -> TimerState:
        """Return the state for an index or raise InvalidIndex."""
        if isinstance(index, bool) or not isinstance(index, int) \
                or not 0 <= index < len(self.states):
            raise InvalidIndex(index, len(self.states))
        return self.states[index]

    def _resolve(self, target: Target) -> Optional[TimerState]:
        """Resolve an index or handle. None if the handle's segment has ended."""
        if isinstance(target, TimerHandle):
            state = self._get(target.index)
            if target.segment != state.segment:
                logger.debug("Ignoring stale handle %s (segment now %d)", target, state.segment)
                return None
            return state
        return self._get(target)

    def house_name(self, index: int) -> str:
        self._get(index)
        return self.config.house_name(index)

    def phase(self, index: int) -> Phase:
        return self._get(index).phase

    def handle(self, index: int) -> Optional[TimerHandle]:
        """Handle for the house's current segment, None when idle."""
        return self._get(index).handle()

    def active_handles(self) -> List[TimerHandle]:
        return [s.handle() for s in self.states if s.active]

    def active_count(self) -> int:
        """Number of houses that are Running or in Overtime."""
        return sum(1 for s in self.states if s.active)

    def snapshot(self, index: int) -> TimerSnapshot:
        """Current persisted-shape fields for one house."""
        return self._get(index).to_snapshot()

    # ------------------------------------------------------------------
    # Commands

    def start(self, index: int, now: Optional[int] = None) -> TimerHandle:
        """
        Start a fresh countdown. Re-starting a running house restarts its segment.

        Returns:
            Handle for the new segment.
        """
        state = self._get(index)
        now = self._now(now)
        initial = self.config.initial_duration_seconds

        state.begin(now, initial)
        self._persist(state)
        logger.info("Timer %s started", self.config.house_name(index))
        self._emit([PhaseEvent(index, Phase.RUNNING), DisplayEvent(index, initial)])
        return state.handle()

    def stop(self, index: int) -> bool:
        """
        Return a house to Idle with the configured duration.

        Returns:
            True if the house was running or in overtime.
        """
        state = self._get(index)
        was_active = state.active
        initial = self.config.initial_duration_seconds

        state.reset(initial)
        self._persist(state)
        if was_active:
            logger.info("Timer %s stopped", self.config.house_name(index))
        self._emit([PhaseEvent(index, Phase.IDLE), DisplayEvent(index, initial)])
        return was_active

    def restart(self, index: int, now: Optional[int] = None) -> TimerHandle:
        """Stop and start again as one step, persisting only the new segment."""
        state = self._get(index)
        now = self._now(now)
        initial = self.config.initial_duration_seconds

        state.reset(initial)
        state.begin(now, initial)
        self._persist(state)
        logger.info("Timer %s restarted", self.config.house_name(index))
        self._emit([PhaseEvent(index, Phase.RUNNING), DisplayEvent(index, initial)])
        return state.handle()

    def stop_all(self) -> int:
        """
        Stop every active house.

        Returns:
            Number of houses stopped.
        """
        stopped = 0
        for state in self.states:
            if state.active:
                self.stop(state.index)
                stopped += 1
        logger.info("Stopped %d timer(s)", stopped)
        return stopped

    # ------------------------------------------------------------------
    # Evaluation

    def tick(self, target: Target, now: Optional[int] = None) -> Tuple[int, list]:
        """
        Recompute one house from timestamps and apply any transitions.

        Args:
            target: House index or segment handle. Stale handles are ignored.
            now: Current epoch milliseconds. Defaults to the engine clock.

        Returns:
            (signed remaining seconds, list of events emitted). Idle houses
            and stale handles yield no events.
        """
        state = self._resolve(target)
        if state is None:
            return self._get(target.index).displayed_remaining, []
        if not state.active:
            return state.displayed_remaining, []

        now = self._now(now)
        try:
            events = self._evaluate(state, now)
        except Exception:
            # Next tick retries from the same timestamps
            logger.exception("Error evaluating timer %d", state.index)
            return state.displayed_remaining, []

        self._emit(events)
        return state.displayed_remaining, events

    def _evaluate(self, state: TimerState, now: int) -> list:
        """Recompute, resolve alert edges, mutate phase and flags, persist."""
        cfg = self.config
        events = []

        if state.phase == Phase.RUNNING:
            remaining = state.compute_remaining(now)
            if remaining > 0:
                self._check_preview(state, remaining, events)
                state.displayed_remaining = remaining
            else:
                # Re-anchor at the zero crossing so overtime counts from here
                state.phase = Phase.OVERTIME
                state.started_at = now
                state.total_duration = 0
                state.displayed_remaining = 0
                state.preview_fired = True
                events.append(AlertEvent(state.index, AlertKind.ZERO_CROSSING))
                events.append(PhaseEvent(state.index, Phase.OVERTIME))
                logger.info("Timer %s in overtime", cfg.house_name(state.index))

        elif state.phase == Phase.OVERTIME:
            overtime = elapsed_seconds(state.started_at, now) - state.total_duration
            self._check_overtime(state, overtime, events)
            state.displayed_remaining = -overtime

            if cfg.auto_stop_at_ceiling and overtime >= cfg.negative_ceiling_seconds:
                events.append(AlertEvent(state.index, AlertKind.AUTO_STOPPED, cfg.negative_ceiling_seconds))
                state.reset(cfg.initial_duration_seconds)
                events.append(PhaseEvent(state.index, Phase.IDLE))
                logger.info("Timer %s stopped automatically at -%ds",
                            cfg.house_name(state.index), cfg.negative_ceiling_seconds)

        self._persist(state)
        events.append(DisplayEvent(state.index, state.displayed_remaining))
        return events

    def _check_preview(self, state: TimerState, remaining: int, events: list) -> None:
        threshold = self.config.preview_alert_seconds
        if state.preview_fired or not 0 < remaining <= threshold:
            return
        state.preview_fired = True
        if self._within_catchup(threshold - remaining):
            events.append(AlertEvent(state.index, AlertKind.PREVIEW, threshold))
        else:
            logger.debug("Timer %d skipped stale preview alert", state.index)

    def _check_overtime(self, state: TimerState, overtime: int, events: list) -> None:
        for offset in self.config.overtime_alert_offsets:
            if offset in state.overtime_alerts_fired or overtime < offset:
                continue
            state.overtime_alerts_fired.add(offset)
            if self._within_catchup(overtime - offset):
                events.append(AlertEvent(state.index, AlertKind.OVERTIME, offset))
            else:
                logger.debug("Timer %d skipped stale overtime alert at %ds", state.index, offset)

    def _within_catchup(self, lag: int) -> bool:
        return lag <= self.config.alert_catchup_seconds

    def _persist(self, state: TimerState) -> None:
        self.store.save(state.index, state.to_snapshot())

    def _emit(self, events: list) -> None:
        """Forward events to connected presentation slots."""
        for event in events:
            if isinstance(event, DisplayEvent):
                self.display.emit(event.index, event.remaining)
            elif isinstance(event, PhaseEvent):
                self.phase_changed.emit(event.index, event.phase.value)
            elif isinstance(event, AlertEvent):
                self.alert.emit(event.index, event.label)

    # ------------------------------------------------------------------
    # Recovery and persistence

    def restore(self, index: int, snapshot, now: Optional[int] = None) -> Optional[TimerHandle]:
        """
        Rehydrate one house from a persisted snapshot.

        A running snapshot is fast-forwarded with one tick so phase and
        remaining reflect the wall-clock gap since it was saved.

        Args:
            index: House index.
            snapshot: TimerSnapshot, raw snapshot mapping, or None.
            now: Current epoch milliseconds. Defaults to the engine clock.

        Returns:
            Handle for the restored segment, or None if the house is Idle.
        """
        state = self._get(index)
        now = self._now(now)
        initial = self.config.initial_duration_seconds

        if snapshot is not None and not isinstance(snapshot, TimerSnapshot):
            try:
                snapshot = TimerSnapshot.from_dict(snapshot)
            except CorruptSnapshot as e:
                logger.warning("Discarding corrupt snapshot for timer %d: %s", index, e)
                self.store.delete(index)
                snapshot = None

        if snapshot is None or not snapshot.running or snapshot.start_time is None:
            state.reset(initial)
            self._emit([PhaseEvent(index, Phase.IDLE), DisplayEvent(index, initial)])
            return None

        state.phase = Phase.OVERTIME if snapshot.overtime else Phase.RUNNING
        state.started_at = snapshot.start_time
        state.total_duration = snapshot.total_duration
        state.displayed_remaining = snapshot.duration
        state.clear_alerts()
        self._mark_passed_alerts(state, snapshot.duration)
        state.segment += 1
        logger.info("Timer %s restored (%s)", self.config.house_name(index), state.phase.value)

        self._emit([PhaseEvent(index, state.phase)])
        self.tick(index, now)
        return state.handle()

    def _mark_passed_alerts(self, state: TimerState, saved_duration: int) -> None:
        """Flag thresholds the saved duration shows were already reached in this segment."""
        if state.phase == Phase.OVERTIME:
            state.preview_fired = True
            state.overtime_alerts_fired = {
                offset for offset in self.config.overtime_alert_offsets
                if offset <= -saved_duration
            }
        elif saved_duration <= self.config.preview_alert_seconds:
            state.preview_fired = True

    def load_saved(self, now: Optional[int] = None) -> int:
        """
        Restore every house from the store at start-up.

        Returns:
            Number of houses left running or in overtime.
        """
        now = self._now(now)
        for state in self.states:
            raw = self.store.load_raw(state.index)
            if raw is not None:
                self.restore(state.index, raw, now)
        restored = self.active_count()
        logger.info("Loaded %d active timer(s)", restored)
        return restored

    def save_all(self, now: Optional[int] = None) -> None:
        """Persist every active house with a freshly recomputed duration."""
        now = self._now(now)
        for state in self.states:
            if not state.active:
                continue
            remaining = state.compute_remaining(now)
            state.displayed_remaining = max(remaining, 0) if state.phase == Phase.RUNNING else remaining
            self._persist(state)

    def export_snapshots(self, now: Optional[int] = None) -> Dict[str, dict]:
        """
        Read every stored house, recomputing duration for running ones.

        Returns:
            Mapping of 'timer-<i>' to snapshot objects.
        """
        return self.store.export(len(self.states), self._now(now))

    def export_json(self, now: Optional[int] = None) -> str:
        return json.dumps(self.export_snapshots(now), indent=2)

    def import_snapshots(self, data, now: Optional[int] = None) -> int:
        """
        Write imported records verbatim and restore the affected houses.

        Args:
            data: Mapping of 'timer-<i>' keys to snapshot objects.
            now: Current epoch milliseconds. Defaults to the engine clock.

        Returns:
            Number of records imported.

        Raises:
            CorruptSnapshot: If data is not a mapping.
        """
        if not isinstance(data, dict):
            raise CorruptSnapshot("import data must be a JSON object")
        now = self._now(now)

        records = {}
        for state in self.states:
            key = key_for(state.index)
            if data.get(key):
                records[key] = data[key]
        self.store.save_all(records)

        for state in self.states:
            if key_for(state.index) in records:
                self.restore(state.index, records[key_for(state.index)], now)
        logger.info("Imported %d timer(s)", len(records))
        return len(records)

    def import_json(self, text: str, now: Optional[int] = None) -> int:
        """Parse exported JSON text and import it. Raises CorruptSnapshot on bad input."""
        text = (text or "").strip()
        if not text:
            raise CorruptSnapshot("No JSON provided")
        try:
            data = json.loads(text)
        except ValueError as e:
            raise CorruptSnapshot(f"Invalid JSON: {e}") from e
        return self.import_snapshots(data, now)
