"""File storage layer for house timer snapshots."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from errors import CorruptSnapshot
from models import TimerSnapshot

logger = logging.getLogger(__name__)

KEY_PREFIX = "timer-"


def key_for(index: int) -> str:
    """Storage key for a house index, e.g. 'timer-3'."""
    return f"{KEY_PREFIX}{index}"


class SnapshotStore:
    """
    Key/value store of timer snapshots, one record per house.

    Records are kept in memory and mirrored to a single JSON object on disk
    keyed by 'timer-<i>'. With no path the store is memory-only.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the store, reading any existing file.

        Args:
            path: JSON file backing the store, or None for memory only.
        """
        self.path = Path(path) if path is not None else None
        self._records: Dict[str, object] = self._read_file()

    def _read_file(self) -> Dict[str, object]:
        """Load the backing file. Empty dict if it doesn't exist or is corrupt."""
        if self.path is None or not self.path.exists():
            return {}

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load %s, starting fresh: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("%s is not a JSON object, starting fresh", self.path)
            return {}
        return data

    def _write_file(self) -> None:
        """Write all records using an atomic replace. Errors are logged, not raised."""
        if self.path is None:
            return

        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix='.timers_',
                suffix='.json.tmp'
            )
            with os.fdopen(fd, 'w') as f:
                json.dump(self._records, f, indent=2)
            os.replace(temp_path, self.path)
            temp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save %s: %s", self.path, e)
        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass

    def save(self, index: int, snapshot: TimerSnapshot) -> None:
        """Store the snapshot for one house."""
        self._records[key_for(index)] = snapshot.to_dict()
        self._write_file()

    def load(self, index: int) -> Optional[TimerSnapshot]:
        """
        Load the last snapshot for one house.

        Returns:
            The snapshot, or None if missing or corrupt.
        """
        raw = self._records.get(key_for(index))
        if raw is None:
            return None
        try:
            return TimerSnapshot.from_dict(raw)
        except CorruptSnapshot as e:
            logger.warning("Discarding corrupt snapshot for %s: %s", key_for(index), e)
            return None

    def load_raw(self, index: int):
        """Stored value for one house exactly as written, or None."""
        return self._records.get(key_for(index))

    def delete(self, index: int) -> None:
        """Remove one house's record, if any."""
        if self._records.pop(key_for(index), None) is not None:
            self._write_file()

    def load_all(self) -> Dict[str, object]:
        """Copy of every stored record keyed by 'timer-<i>'."""
        return dict(self._records)

    def save_all(self, records: Dict[str, object]) -> None:
        """Write many records verbatim in one pass."""
        self._records.update(records)
        self._write_file()

    def export(self, total: int, now_ms: int) -> Dict[str, dict]:
        """
        Read houses 0..total-1 for export.

        Running records get their duration recomputed for now instead of
        the value stored at the last save. Corrupt records are skipped.

        Args:
            total: Number of houses to read.
            now_ms: Current epoch milliseconds.

        Returns:
            Mapping of 'timer-<i>' to snapshot objects.
        """
        data = {}
        for index in range(total):
            snapshot = self.load(index)
            if snapshot is None:
                continue
            record = snapshot.to_dict()
            record["duration"] = snapshot.current_duration(now_ms)
            data[key_for(index)] = record
        return data
