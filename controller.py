"""Application controller wiring the engine to the board, dialogs and sounds."""

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, Qt
from PyQt6.QtWidgets import QApplication

from clock import Clock
from config import TimerConfig
from errors import CorruptSnapshot
from json_dialog import JsonDialog
from overlay import BoardWindow
from scheduler import Scheduler
from storage import SnapshotStore
from timer_engine import TimerEngine
import dashboard
import sounds

logger = logging.getLogger(__name__)


class AppController(QObject):
    """Main application controller."""

    def __init__(self, config: TimerConfig, store: SnapshotStore,
                 clock: Optional[Clock] = None, launch_dashboard: bool = True,
                 config_path: Optional[Path] = None):
        super().__init__()
        self.config = config
        self.config_path = config_path
        self.store = store
        self.clock = clock or Clock()
        self.launch_dashboard = launch_dashboard

        self.engine = None
        self.scheduler = None
        self.board = None
        self.json_dialog = None

        self._initialize()

    def _initialize(self):
        """Initialize application components."""
        houses = range(self.config.total_houses)
        self.board = BoardWindow([self.config.house_name(i) for i in houses],
                                 self.config.initial_duration_seconds,
                                 [self.config.house_city(i) for i in houses])
        self.board.start_requested.connect(self.start_timer)
        self.board.restart_requested.connect(self.restart_timer)
        self.board.stop_requested.connect(self.stop_timer)
        self.board.stop_all_requested.connect(self.stop_all_timers)
        self.board.export_requested.connect(self.export_timers)
        self.board.import_requested.connect(self.import_timers)

        self.json_dialog = JsonDialog(self.board)
        self.json_dialog.json_submitted.connect(self._on_import_submitted)

        # Engine signals drive the board; connect before restoring saved state
        self.engine = TimerEngine(self.config, self.store, self.clock)
        self.engine.display.connect(self.board.on_display)
        self.engine.phase_changed.connect(self.board.on_phase_changed)
        self.engine.phase_changed.connect(self._on_phase_changed)
        self.engine.alert.connect(self._on_alert)

        restored = self.engine.load_saved()
        self.board.set_active_count(self.engine.active_count())

        self.scheduler = Scheduler(self.engine)
        self.scheduler.start()

        # Foregrounding the app forces one evaluation of every active house
        app = QApplication.instance()
        if app is not None:
            app.applicationStateChanged.connect(self._on_application_state)

        self.board.show()
        self.board.show_message(f"Loaded {restored} active timer(s)")

        if self.launch_dashboard:
            dashboard.launch(timers_file=self.store.path, config_file=self.config_path)

        logger.info("Application initialized successfully")

    def _name(self, index: int) -> str:
        return self.config.house_name(index)

    def start_timer(self, index: int):
        sounds.stop_all()
        self.engine.start(index)
        sounds.play_start_loop(self.config.sound_loops)
        self.board.show_message(f"Timer {self._name(index)} started")

    def restart_timer(self, index: int):
        sounds.stop_all()
        self.engine.restart(index)
        sounds.play_start_loop(self.config.sound_loops)
        self.board.show_message(f"Timer {self._name(index)} restarted")

    def stop_timer(self, index: int):
        self.engine.stop(index)
        sounds.stop_all()
        self.board.show_message(f"Timer {self._name(index)} stopped")

    def stop_all_timers(self):
        stopped = self.engine.stop_all()
        sounds.stop_all()
        if stopped:
            self.board.show_message(f"{stopped} timer(s) stopped")
        else:
            self.board.show_message("No active timers")

    def _on_phase_changed(self, index: int, phase: str):
        self.board.set_active_count(self.engine.active_count())

    def _on_alert(self, index: int, label: str):
        """Play the sound and message for an engine alert."""
        name = self._name(index)
        if label == "zeroCrossing":
            sounds.play_alarm()
            self.board.show_message(f"Timer {name} in overtime")
        elif label == "preview":
            sounds.play_alert()
            self.board.show_message(f"Timer {name}: {self.config.preview_alert_seconds} seconds left")
        elif label.startswith("overtime"):
            sounds.play_alert()
            seconds = int(label[len("overtime"):])
            self.board.show_message(f"Timer {name}: -{seconds // 60:02d}:{seconds % 60:02d}")
        elif label == "autoStopped":
            sounds.play_end()
            self.board.show_message(f"Timer {name} stopped automatically")

    def _on_application_state(self, state):
        """Resume on activation; silence sounds when hidden."""
        if state == Qt.ApplicationState.ApplicationActive:
            self.scheduler.resume()
            self.board.set_active_count(self.engine.active_count())
        elif state in (Qt.ApplicationState.ApplicationHidden, Qt.ApplicationState.ApplicationSuspended):
            sounds.stop_all()

    def export_timers(self):
        self.json_dialog.show_export(self.engine.export_json())
        self.board.show_message("Timers exported to clipboard")

    def import_timers(self):
        self.json_dialog.show_import()

    def _on_import_submitted(self, text: str):
        try:
            imported = self.engine.import_json(text)
        except CorruptSnapshot as e:
            self.json_dialog.show_error(str(e))
            return
        self.json_dialog.accept()
        self.board.set_active_count(self.engine.active_count())
        self.board.show_message(f"{imported} timer(s) imported")

    def shutdown(self):
        """Stop ticking and save every active house with current durations."""
        self.scheduler.stop()
        self.engine.save_all()
        sounds.stop_all()
