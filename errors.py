"""Exception types for the house timers application."""


class TimerError(Exception):
    """Base class for timer errors."""


class InvalidIndex(TimerError, IndexError):
    """House index outside the configured range."""

    def __init__(self, index, total: int):
        super().__init__(f"House index {index!r} out of range 0..{total - 1}")
        self.index = index
        self.total = total


class CorruptSnapshot(TimerError, ValueError):
    """Persisted or imported timer data failed shape validation."""


class ClockUnavailable(TimerError, RuntimeError):
    """The host could not supply the current time."""
