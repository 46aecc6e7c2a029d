"""Board window showing one card per house timer."""

from typing import Dict, List, Optional

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel,
    QPushButton, QCheckBox, QComboBox, QSizePolicy
)
from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QFont

from models import Phase, format_remaining
from config import (
    COLOR_ACTIVE, COLOR_IDLE, COLOR_NEGATIVE, COLOR_NORMAL, COLOR_RESTART, COLOR_STOP,
    FONT_FAMILY_MONO, FONT_SIZE, TIMER_FONT_SIZE, BOARD_COLUMNS, STATUS_MESSAGE_MS, ALL_CITIES_LABEL,
)


def card_matches(city: str, active: bool, selected_city: Optional[str], only_active: bool) -> bool:
    """Whether a card passes the city and active-only filters. None selects every city."""
    if selected_city is not None and city != selected_city:
        return False
    return active or not only_active


class HouseCard(QWidget):
    """Widget displaying a single house timer."""

    start_clicked = pyqtSignal(int)
    restart_clicked = pyqtSignal(int)
    stop_clicked = pyqtSignal(int)

    def __init__(self, index: int, name: str, remaining: int, city: str = ""):
        super().__init__()
        self.index = index
        self.city = city
        self.is_active = False
        self.is_negative = False

        layout = QVBoxLayout()
        layout.setContentsMargins(10, 8, 10, 8)
        layout.setSpacing(6)

        self.name_label = QLabel(name)
        name_font = QFont()
        name_font.setPointSize(FONT_SIZE)
        name_font.setBold(True)
        self.name_label.setFont(name_font)
        self.name_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.name_label)

        # Time display (monospace font)
        self.time_label = QLabel()
        time_font = QFont(FONT_FAMILY_MONO, TIMER_FONT_SIZE)
        time_font.setStyleHint(QFont.StyleHint.Monospace)
        self.time_label.setFont(time_font)
        self.time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.time_label)

        # Start button when idle; Restart/Stop when active
        buttons = QHBoxLayout()
        self.start_button = QPushButton("Start")
        self.start_button.clicked.connect(lambda: self.start_clicked.emit(self.index))
        self.restart_button = QPushButton("Restart")
        self.restart_button.setStyleSheet(f"background-color: {COLOR_RESTART}; font-weight: bold;")
        self.restart_button.clicked.connect(lambda: self.restart_clicked.emit(self.index))
        self.stop_button = QPushButton("Stop")
        self.stop_button.setStyleSheet(f"background-color: {COLOR_STOP}; color: white; font-weight: bold;")
        self.stop_button.clicked.connect(lambda: self.stop_clicked.emit(self.index))
        for button in (self.start_button, self.restart_button, self.stop_button):
            buttons.addWidget(button)
        layout.addLayout(buttons)

        self.setLayout(layout)
        self.setSizePolicy(QSizePolicy.Policy.Preferred, QSizePolicy.Policy.Minimum)

        self.set_remaining(remaining)
        self.set_active(False)

    def set_remaining(self, remaining: int):
        """Show signed remaining seconds as MM:SS."""
        self.time_label.setText(format_remaining(remaining))
        self.is_negative = remaining < 0
        self.update_display()

    def set_active(self, active: bool):
        """Toggle between idle and active controls."""
        self.is_active = active
        self.start_button.setVisible(not active)
        self.restart_button.setVisible(active)
        self.stop_button.setVisible(active)
        self.update_display()

    def update_display(self):
        """Update card styling from active/negative state."""
        color = COLOR_NEGATIVE if self.is_negative else COLOR_NORMAL
        bg_color = COLOR_ACTIVE if self.is_active else COLOR_IDLE
        self.setStyleSheet(f"""
            HouseCard {{
                background-color: {bg_color};
                border-radius: 6px;
                border: 1px solid #DDDDDD;
            }}
        """)
        self.time_label.setStyleSheet(f"color: {color}; background-color: transparent;")


class BoardWindow(QWidget):
    """Main window with the house grid, active counter and bulk actions."""

    start_requested = pyqtSignal(int)
    restart_requested = pyqtSignal(int)
    stop_requested = pyqtSignal(int)
    stop_all_requested = pyqtSignal()
    export_requested = pyqtSignal()
    import_requested = pyqtSignal()

    def __init__(self, names: List[str], initial_remaining: int,
                 cities: Optional[List[str]] = None):
        super().__init__()
        self.cards: Dict[int, HouseCard] = {}
        cities = cities or [""] * len(names)

        self.setWindowTitle("House Timers")
        self._setup_ui([c for c in dict.fromkeys(cities) if c])
        for i, name in enumerate(names):
            self._add_card(i, name, initial_remaining, cities[i] if i < len(cities) else "")

        self._status_timer = QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.timeout.connect(lambda: self.status_label.setText(""))

    def _setup_ui(self, cities: List[str]):
        """Setup header, grid and status line."""
        layout = QVBoxLayout()
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        header = QHBoxLayout()
        self.counter_label = QLabel("Active: 0")
        header.addWidget(self.counter_label)

        self.active_only = QCheckBox("Active only")
        self.city_filter = QComboBox()
        self.city_filter.addItem(ALL_CITIES_LABEL, None)
        for city in cities:
            self.city_filter.addItem(city, city)
        self.city_filter.setVisible(bool(cities))
        self.city_filter.currentIndexChanged.connect(lambda _: self.apply_filter())
        header.addWidget(self.city_filter)

        self.active_only.toggled.connect(lambda _: self.apply_filter())
        header.addWidget(self.active_only)
        header.addStretch(1)

        for text, signal in (("Stop all", self.stop_all_requested),
                             ("Export", self.export_requested),
                             ("Import", self.import_requested)):
            button = QPushButton(text)
            button.clicked.connect(signal.emit)
            header.addWidget(button)
        layout.addLayout(header)

        self.grid = QGridLayout()
        self.grid.setSpacing(8)
        layout.addLayout(self.grid)

        self.status_label = QLabel("")
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.setStyleSheet("color: #666666; font-size: 12px;")
        layout.addWidget(self.status_label)

        self.setLayout(layout)

    def _add_card(self, index: int, name: str, remaining: int, city: str):
        card = HouseCard(index, name, remaining, city)
        card.start_clicked.connect(self.start_requested.emit)
        card.restart_clicked.connect(self.restart_requested.emit)
        card.stop_clicked.connect(self.stop_requested.emit)
        self.cards[index] = card
        self.grid.addWidget(card, index // BOARD_COLUMNS, index % BOARD_COLUMNS)

    def on_display(self, index: int, remaining: int):
        """Slot for the engine's display signal."""
        if index in self.cards:
            self.cards[index].set_remaining(remaining)

    def on_phase_changed(self, index: int, phase: str):
        """Slot for the engine's phase_changed signal."""
        if index in self.cards:
            self.cards[index].set_active(phase != Phase.IDLE.value)
        self.apply_filter()

    def set_active_count(self, count: int):
        self.counter_label.setText(f"Active: {count}")

    def apply_filter(self) -> int:
        """
        Show only cards matching the selected city and, when checked, active houses.

        Returns:
            Number of cards left visible.
        """
        only_active = self.active_only.isChecked()
        selected_city = self.city_filter.currentData()
        visible = 0
        for card in self.cards.values():
            shown = card_matches(card.city, card.is_active, selected_city, only_active)
            card.setVisible(shown)
            visible += shown
        return visible

    def show_message(self, message: str):
        """Show a transient status message."""
        self.status_label.setText(message)
        self._status_timer.start(STATUS_MESSAGE_MS)
