"""Data models for the house timers application."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set

from config import INITIAL_DURATION_S
from errors import CorruptSnapshot


class Phase(str, Enum):
    """Timer lifecycle phases."""
    IDLE = "idle"            # Not counting
    RUNNING = "running"      # Counting down towards zero
    OVERTIME = "overtime"    # Past zero, counting up as negative time


class AlertKind(str, Enum):
    """One-shot alerts emitted by the engine."""
    PREVIEW = "preview"
    ZERO_CROSSING = "zeroCrossing"
    OVERTIME = "overtime"
    AUTO_STOPPED = "autoStopped"


def elapsed_seconds(started_at: int, now_ms: int) -> int:
    """Whole seconds between a start timestamp and now, never negative."""
    return max(0, now_ms - started_at) // 1000


def remaining_at(overtime: bool, started_at: int, total_duration: int, now_ms: int) -> int:
    """
    Compute signed remaining seconds from timestamps alone.

    Args:
        overtime: Whether the segment is past its zero crossing.
        started_at: Segment anchor in epoch milliseconds.
        total_duration: Seconds the segment counts down from (0 once in overtime).
        now_ms: Current time in epoch milliseconds.

    Returns:
        Remaining seconds; zero or negative once overtime.
    """
    elapsed = elapsed_seconds(started_at, now_ms)
    if overtime:
        return -(elapsed - total_duration)
    return total_duration - elapsed


def format_remaining(seconds: int) -> str:
    """Format signed seconds as MM:SS, with a leading '-' when negative."""
    total = abs(int(seconds))
    sign = "-" if seconds < 0 else ""
    return f"{sign}{total // 60:02d}:{total % 60:02d}"


@dataclass(frozen=True)
class TimerHandle:
    """Token identifying one running segment of a house timer."""
    index: int
    segment: int


@dataclass(frozen=True)
class DisplayEvent:
    index: int
    remaining: int


@dataclass(frozen=True)
class PhaseEvent:
    index: int
    phase: Phase


@dataclass(frozen=True)
class AlertEvent:
    index: int
    kind: AlertKind
    seconds: int = 0  # threshold the alert belongs to

    @property
    def label(self) -> str:
        """Alert name as shown to collaborators, e.g. 'overtime5'."""
        if self.kind == AlertKind.OVERTIME:
            return f"overtime{self.seconds}"
        return self.kind.value


@dataclass
class TimerSnapshot:
    """Persisted shape of one house timer (one JSON object per 'timer-<i>' key)."""

    duration: int
    extended: bool
    negative: bool
    running: bool
    start_time: Optional[int]
    total_duration: int

    KEYS = ("duration", "extended", "negative", "running", "startTime", "totalDuration")

    @property
    def overtime(self) -> bool:
        return self.extended or self.negative

    def current_duration(self, now_ms: int) -> int:
        """Duration as of now for a running snapshot, the stored one otherwise."""
        if not self.running or self.start_time is None:
            return self.duration
        remaining = remaining_at(self.overtime, self.start_time, self.total_duration, now_ms)
        return remaining if self.overtime else max(remaining, 0)

    def to_dict(self) -> dict:
        """Convert to the JSON object written to storage and exports."""
        return {
            "duration": self.duration,
            "extended": self.extended,
            "negative": self.negative,
            "running": self.running,
            "startTime": self.start_time,
            "totalDuration": self.total_duration,
        }

    @classmethod
    def from_dict(cls, d) -> 'TimerSnapshot':
        """
        Validate and parse a stored or imported snapshot.

        Raises:
            CorruptSnapshot: If the value does not have the snapshot shape.
        """
        if not isinstance(d, dict):
            raise CorruptSnapshot(f"snapshot must be an object, got {type(d).__name__}")
        missing = [k for k in cls.KEYS if k not in d]
        if missing:
            raise CorruptSnapshot(f"snapshot missing keys: {', '.join(missing)}")

        for flag in ("extended", "negative", "running"):
            if not isinstance(d[flag], bool):
                raise CorruptSnapshot(f"{flag} must be a boolean, got {d[flag]!r}")

        start_time = d["startTime"]
        if start_time is not None:
            start_time = _as_int(start_time, "startTime")

        return cls(
            duration=_as_int(d["duration"], "duration"),
            extended=d["extended"],
            negative=d["negative"],
            running=d["running"],
            start_time=start_time,
            total_duration=_as_int(d["totalDuration"], "totalDuration"),
        )


def _as_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise CorruptSnapshot(f"{name} must be a number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    raise CorruptSnapshot(f"{name} must be an integer, got {value!r}")


@dataclass
class TimerState:
    """Live state of one house timer, owned by the engine."""

    index: int
    phase: Phase = Phase.IDLE
    started_at: Optional[int] = None           # Epoch ms of the current segment anchor
    total_duration: int = INITIAL_DURATION_S   # 0 once re-anchored in overtime
    displayed_remaining: int = INITIAL_DURATION_S
    preview_fired: bool = False
    overtime_alerts_fired: Set[int] = field(default_factory=set)  # offsets already alerted
    segment: int = 0                           # Bumped on every start/stop/restore

    @property
    def active(self) -> bool:
        return self.phase != Phase.IDLE

    def clear_alerts(self) -> None:
        """Forget alert history for a fresh segment."""
        self.preview_fired = False
        self.overtime_alerts_fired = set()

    def reset(self, initial_duration: int) -> None:
        """Return to Idle with the configured duration."""
        self.phase = Phase.IDLE
        self.started_at = None
        self.total_duration = initial_duration
        self.displayed_remaining = initial_duration
        self.clear_alerts()
        self.segment += 1

    def begin(self, now_ms: int, initial_duration: int) -> None:
        """Start a fresh Running segment anchored at now."""
        self.phase = Phase.RUNNING
        self.started_at = now_ms
        self.total_duration = initial_duration
        self.displayed_remaining = initial_duration
        self.clear_alerts()
        self.segment += 1

    def compute_remaining(self, now_ms: int) -> int:
        """Signed remaining seconds at now; pure function of the stored fields."""
        if self.phase == Phase.IDLE or self.started_at is None:
            return self.displayed_remaining
        return remaining_at(self.phase == Phase.OVERTIME, self.started_at, self.total_duration, now_ms)

    def handle(self) -> Optional[TimerHandle]:
        """Handle for the current segment, or None when idle."""
        if not self.active:
            return None
        return TimerHandle(self.index, self.segment)

    def to_snapshot(self) -> TimerSnapshot:
        """Convert to the persisted shape."""
        overtime = self.phase == Phase.OVERTIME
        return TimerSnapshot(
            duration=self.displayed_remaining,
            extended=overtime,
            negative=overtime,
            running=self.active,
            start_time=self.started_at,
            total_duration=self.total_duration,
        )
