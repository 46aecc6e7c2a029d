"""Configuration constants and loader for the house timers application."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Directories and files
DATA_DIR = Path.home() / ".housetimers"
TIMERS_FILE = DATA_DIR / "timers.json"
CONFIG_FILE = DATA_DIR / "config.json"
ALARM_SOUND_FILE = DATA_DIR / "alarm.wav"          # zero crossing
ALERT_SOUND_FILE = DATA_DIR / "alert.wav"          # preview and overtime alerts
START_SOUND_FILE = DATA_DIR / "start.wav"          # looped on start
END_SOUND_FILE = DATA_DIR / "end.wav"              # auto-stop at the overtime ceiling

# Timer defaults
TOTAL_HOUSES = 12
INITIAL_DURATION_S = 35 * 60
PREVIEW_ALERT_S = 10               # seconds before zero
OVERTIME_ALERT_OFFSETS = (5, 10)   # seconds into overtime
NEGATIVE_CEILING_S = 600           # not enforced unless auto_stop_at_ceiling
SOUND_LOOPS = 4                    # times the start sound repeats
ALERT_CATCHUP_S = 2                # late alerts older than this are skipped silently

# Scheduler
TIMER_INTERVAL_MS = 1000
RESUME_GAP_FACTOR = 3  # a tick this many intervals late counts as a resume

DEFAULT_HOUSE_NAMES = (
    "Colinas", "Low", "Willow", "C1", "C2", "C3",
    "C4", "Norte 1", "Norte 2", "Sprunk", "El Quebrados", "Cruce",
)

# Colors (hex codes)
COLOR_ACTIVE = "#FFF8E1"    # Card background for running houses
COLOR_IDLE = "#FFFFFF"
COLOR_NEGATIVE = "#D32F2F"  # Red text for overtime
COLOR_NORMAL = "#000000"
COLOR_RESTART = "#FBC02D"
COLOR_STOP = "#C62828"

# Fonts
FONT_FAMILY_MONO = "Menlo"
FONT_SIZE = 14
TIMER_FONT_SIZE = 22

# Board
BOARD_COLUMNS = 4
STATUS_MESSAGE_MS = 3000  # how long a status message stays visible
ALL_CITIES_LABEL = "All cities"

# Dashboard
DASHBOARD_PORT = 5174
DASHBOARD_PID_FILE = DATA_DIR / "dashboard.pid"


@dataclass
class TimerConfig:
    """Runtime options recognised by the engine and scheduler."""

    total_houses: int = TOTAL_HOUSES
    initial_duration_seconds: int = INITIAL_DURATION_S
    preview_alert_seconds: int = PREVIEW_ALERT_S
    overtime_alert_offsets: List[int] = field(default_factory=lambda: list(OVERTIME_ALERT_OFFSETS))
    negative_ceiling_seconds: int = NEGATIVE_CEILING_S
    auto_stop_at_ceiling: bool = False
    tick_interval_ms: int = TIMER_INTERVAL_MS
    alert_catchup_seconds: int = ALERT_CATCHUP_S
    sound_loops: int = SOUND_LOOPS
    house_names: List[str] = field(default_factory=lambda: list(DEFAULT_HOUSE_NAMES))
    house_cities: List[str] = field(default_factory=list)  # "" means unassigned

    # camelCase keys used in config.json
    _KEYS = {
        "totalEntities": "total_houses",
        "initialDurationSeconds": "initial_duration_seconds",
        "previewAlertSeconds": "preview_alert_seconds",
        "overtimeAlertOffsets": "overtime_alert_offsets",
        "negativeCeilingSeconds": "negative_ceiling_seconds",
        "autoStopAtCeiling": "auto_stop_at_ceiling",
        "tickIntervalMs": "tick_interval_ms",
        "alertCatchupSeconds": "alert_catchup_seconds",
        "soundLoops": "sound_loops",
        "houseNames": "house_names",
        "houseCities": "house_cities",
    }

    def __post_init__(self):
        """Validate and normalise option values."""
        for name in ("total_houses", "initial_duration_seconds", "tick_interval_ms"):
            value = getattr(self, name)
            if not _is_int(value) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        for name in ("preview_alert_seconds", "alert_catchup_seconds", "sound_loops"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if not _is_int(self.negative_ceiling_seconds):
            raise ValueError(f"negative_ceiling_seconds must be an integer, got {self.negative_ceiling_seconds!r}")
        # Ceilings may be written as a negative remaining value
        self.negative_ceiling_seconds = abs(self.negative_ceiling_seconds)

        offsets = list(self.overtime_alert_offsets)
        if any(not _is_int(o) or o <= 0 for o in offsets):
            raise ValueError(f"overtime_alert_offsets must be positive integers, got {offsets!r}")
        self.overtime_alert_offsets = sorted(set(offsets))

        if not isinstance(self.auto_stop_at_ceiling, bool):
            raise ValueError("auto_stop_at_ceiling must be a boolean")
        self.house_names = [str(n) for n in self.house_names]
        self.house_cities = [str(c) if c else "" for c in self.house_cities]

    def house_name(self, index: int) -> str:
        """Return the display name for a house, falling back to 'Casa <i>'."""
        if 0 <= index < len(self.house_names) and self.house_names[index]:
            return self.house_names[index]
        return f"Casa {index}"

    def house_city(self, index: int) -> str:
        """Return the city a house belongs to, or "" when unassigned."""
        if 0 <= index < len(self.house_cities):
            return self.house_cities[index]
        return ""

    @classmethod
    def from_dict(cls, d: dict) -> 'TimerConfig':
        """
        Build a config from a config.json mapping.

        Args:
            d: Mapping keyed by the camelCase option names.

        Returns:
            TimerConfig with unspecified options left at their defaults.

        Raises:
            ValueError: If the mapping or any recognised value is invalid.
        """
        if not isinstance(d, dict):
            raise ValueError("configuration must be a JSON object")
        kwargs = {}
        for key, value in d.items():
            attr = cls._KEYS.get(key)
            if attr is None:
                logger.warning("Ignoring unknown configuration option %r", key)
                continue
            kwargs[attr] = value
        return cls(**kwargs)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def load_config(path: Optional[Path] = None) -> TimerConfig:
    """
    Load configuration from config.json.

    Args:
        path: File to read. Defaults to CONFIG_FILE.

    Returns:
        Parsed TimerConfig. Defaults if the file is missing, unreadable or invalid.
    """
    path = Path(path) if path is not None else CONFIG_FILE
    if not path.exists():
        return TimerConfig()

    try:
        with open(path, 'r') as f:
            data = json.load(f)
        return TimerConfig.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Failed to load %s, using defaults: %s", path, e)
        return TimerConfig()
