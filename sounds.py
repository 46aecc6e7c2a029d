"""Sound playback for timer alerts."""

import logging
from pathlib import Path
from typing import Dict, Optional

from PyQt6.QtCore import QUrl
from PyQt6.QtMultimedia import QSoundEffect
from PyQt6.QtWidgets import QApplication

from config import ALARM_SOUND_FILE, ALERT_SOUND_FILE, START_SOUND_FILE, END_SOUND_FILE, SOUND_LOOPS

logger = logging.getLogger(__name__)

_effects: Dict[Path, QSoundEffect] = {}  # Keep references to prevent garbage collection


def _effect_for(path: Path) -> Optional[QSoundEffect]:
    """Load (once) the sound effect for a file, None if the file is missing."""
    if path in _effects:
        return _effects[path]
    if not path.exists():
        return None
    effect = QSoundEffect()
    effect.setSource(QUrl.fromLocalFile(str(path)))
    _effects[path] = effect
    return effect


def _play(path: Path, loops: int = 1) -> None:
    """
    Play a sound file, falling back to the system beep.

    Args:
        path: Custom sound in the data directory.
        loops: Number of times to play it.
    """
    effect = _effect_for(path)
    if effect is None:
        logger.debug("No sound at %s, beeping instead", path)
        QApplication.beep()
        return
    effect.setLoopCount(max(1, loops))
    effect.play()


def play_start_loop(loops: int = SOUND_LOOPS) -> None:
    """Play the start sound, repeated a few times."""
    _play(START_SOUND_FILE, loops)


def play_alert() -> None:
    """Play the short single alert (preview and overtime thresholds)."""
    _play(ALERT_SOUND_FILE)


def play_alarm() -> None:
    """Play the alarm for a countdown reaching zero."""
    _play(ALARM_SOUND_FILE)


def play_end() -> None:
    """Play the end sound for an automatic stop."""
    _play(END_SOUND_FILE)


def stop_all() -> None:
    """Stop every sound currently playing."""
    for effect in _effects.values():
        if effect.isPlaying():
            effect.stop()
