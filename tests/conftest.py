import curses

import numpy as np
import pytest

from central_limit import KeyEvent, SimulationConfig


class RecordingWindow:
    """curses.window stand-in that records writes and clips like curses."""

    def __init__(self, rows: int, cols: int, keys=()) -> None:
        self.rows = rows
        self.cols = cols
        self.calls = []
        self.ops = []
        self.timeouts = []
        self._keys = list(keys)

    def getmaxyx(self):
        return self.rows, self.cols

    def addstr(self, y, x, text, attr=0):
        if not (0 <= y < self.rows and 0 <= x < self.cols):
            raise curses.error("addwstr() returned ERR")
        room = self.cols - x
        self.calls.append((y, x, text[:room], attr))
        if len(text) > room or (y == self.rows - 1 and len(text) == room):
            raise curses.error("addwstr() returned ERR")

    def erase(self):
        self.ops.append("erase")

    def refresh(self):
        self.ops.append("refresh")

    def timeout(self, ms):
        self.timeouts.append(ms)

    def getch(self):
        return self._keys.pop(0) if self._keys else -1

    def texts(self):
        return [text for _, _, text, _ in self.calls]


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedInput:
    """Input source replaying a script; None entries block until the timeout."""

    def __init__(self, clock: FakeClock, script) -> None:
        self.clock = clock
        self.script = list(script)
        self.timeouts = []

    def poll(self, timeout):
        self.timeouts.append(timeout)
        item = self.script.pop(0) if self.script else KeyEvent(ord("q"))
        if item is None:
            self.clock.advance(timeout)
            return None
        return item


class RecordingSurface:
    def __init__(self) -> None:
        self.generations = []

    def draw(self, state) -> None:
        self.generations.append(state.generation)


class CountingEngine:
    def __init__(self, engine) -> None:
        self.engine = engine
        self.calls = 0

    def __call__(self, config, rng):
        self.calls += 1
        return self.engine(config, rng)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def small_config() -> SimulationConfig:
    return SimulationConfig(sample_count=2000, walk_length=19)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_window():
    def _make(rows: int = 40, cols: int = 200, keys=()):
        return RecordingWindow(rows, cols, keys)

    return _make
