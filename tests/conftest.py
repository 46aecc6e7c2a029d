"""Shared fixtures for house timer tests."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtCore import QCoreApplication

from config import TimerConfig
from errors import ClockUnavailable
from storage import SnapshotStore
from timer_engine import TimerEngine

T0 = 1_700_000_000_000  # Arbitrary epoch-ms origin for every test timeline


def at(seconds: float) -> int:
    """Epoch ms for a point on the test timeline."""
    return T0 + int(seconds * 1000)


class ManualClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, now_ms: int = T0):
        self.now = now_ms

    def now_ms(self) -> int:
        return self.now

    def set(self, seconds: float) -> None:
        self.now = at(seconds)


class BrokenClock:
    def now_ms(self) -> int:
        raise ClockUnavailable("no time source")


class SignalRecorder:
    """Collects every signal an engine emits, in order."""

    def __init__(self, engine: TimerEngine):
        self.display = []
        self.phases = []
        self.alerts = []
        engine.display.connect(lambda i, r: self.display.append((i, r)))
        engine.phase_changed.connect(lambda i, p: self.phases.append((i, p)))
        engine.alert.connect(lambda i, a: self.alerts.append((i, a)))


def _application_class():
    """QApplication when widgets can load (offscreen), otherwise the core application."""
    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError:
        return QCoreApplication
    return QApplication


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or _application_class()([])
    yield app


@pytest.fixture
def widget_app(qapp):
    """Skip unless the running application can host widgets."""
    widgets = pytest.importorskip("PyQt6.QtWidgets")
    if not isinstance(qapp, widgets.QApplication):
        pytest.skip("widgets unavailable")
    return qapp


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "timers.json"


@pytest.fixture
def store(store_path):
    return SnapshotStore(store_path)


@pytest.fixture
def make_engine(store, clock):
    def _make(**options):
        return TimerEngine(TimerConfig(**options), store, clock)
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def recorder(engine):
    return SignalRecorder(engine)
