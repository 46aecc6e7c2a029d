"""Wall-clock access for the timer engine."""

import logging
import time

from errors import ClockUnavailable

logger = logging.getLogger(__name__)


class Clock:
    """Wall-clock source returning milliseconds since the epoch.

    Everything that needs "now" goes through here, so tests can swap in a
    clock they control.
    """

    def now_ms(self) -> int:
        """
        Return the current wall-clock time.

        Returns:
            Milliseconds since the epoch.

        Raises:
            ClockUnavailable: If the host cannot report the time.
        """
        try:
            return int(time.time() * 1000)
        except (OSError, OverflowError, ValueError) as e:
            logger.critical("Wall clock unavailable: %s", e)
            raise ClockUnavailable(str(e)) from e
