#!/usr/bin/env python3
"""
  Central Limit
  A terminal demo of the central limit theorem.

  Every tick, thousands of independent random walks of a fixed length are
  simulated from scratch. Their final displacements are binned and drawn
  as a live bar chart that settles into the familiar bell shape: binomial
  exactly, normal in the limit.

  Controls:
    q         quit

  Entry points:
    central-limit         bar chart
    central-limit-line    bar chart with the normal curve overlaid

  Engine telemetry is logged to central_limit_stats.csv in the working
  directory.
"""

from __future__ import annotations

import curses
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, ClassVar, Protocol

import numpy as np
from numpy.typing import NDArray

from central_limit_charts import BarChart, BarLineChart, Palette

# ── Simulation defaults ─────────────────────────────────────────────────
DEFAULT_SAMPLE_COUNT = 5000
DEFAULT_WALK_LENGTH = 19   # odd: endpoints always land on odd labels
BUCKET_PADDING = 3         # empty tail buckets kept for a symmetric margin

# ── Timing ──────────────────────────────────────────────────────────────
TICK_INTERVAL = 0.5        # seconds between regenerations

QUIT_KEYS = (ord("q"),)

LOG_PATH = Path("central_limit_stats.csv")


# ═══════════════════════════════════════════════════════════════════════
#  Data model
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SimulationConfig:
    sample_count: int = DEFAULT_SAMPLE_COUNT
    walk_length: int = DEFAULT_WALK_LENGTH

    def __post_init__(self) -> None:
        if self.sample_count <= 0:
            raise ValueError("sample_count must be positive.")
        if self.walk_length <= 0:
            raise ValueError("walk_length must be positive.")


@dataclass(frozen=True)
class Bucket:
    label: int
    count: int


@dataclass(frozen=True)
class Frame:
    """One regeneration's histogram: every padded label, in ascending order."""

    buckets: tuple[Bucket, ...]

    @property
    def labels(self) -> list[int]:
        return [b.label for b in self.buckets]

    @property
    def counts(self) -> list[int]:
        return [b.count for b in self.buckets]

    @property
    def total(self) -> int:
        return sum(b.count for b in self.buckets)

    @property
    def peak(self) -> Bucket:
        """Fullest bucket (leftmost on ties)."""
        if not self.buckets:
            return Bucket(0, 0)
        return max(self.buckets, key=lambda b: b.count)

    def mean(self) -> float:
        total = self.total
        if total == 0:
            return 0.0
        return sum(b.label * b.count for b in self.buckets) / total

    def variance(self) -> float:
        total = self.total
        if total == 0:
            return 0.0
        mu = self.mean()
        return sum(b.count * (b.label - mu) ** 2 for b in self.buckets) / total


# ═══════════════════════════════════════════════════════════════════════
#  Simulation engine
# ═══════════════════════════════════════════════════════════════════════

def bucket_labels(walk_length: int) -> NDArray[np.int64]:
    """Odd integers in [-(walk_length + pad), walk_length + pad], ascending."""
    reach = walk_length + BUCKET_PADDING
    span = np.arange(-reach, reach + 1, dtype=np.int64)
    return span[span % 2 != 0]


def walk_endpoints(config: SimulationConfig, rng: np.random.Generator) -> NDArray[np.int64]:
    """Final displacement of sample_count independent walks of walk_length steps.

    Each step is one uniform draw: >= 0.5 steps left (-1), otherwise right (+1).
    """
    draws = rng.random((config.sample_count, config.walk_length))
    steps = np.where(draws >= 0.5, -1, 1).astype(np.int64)
    return steps.sum(axis=1)


def generate(config: SimulationConfig, rng: np.random.Generator) -> Frame:
    """Simulate one frame: fresh walks binned into the full padded label set.

    Endpoints of an even walk_length are even and match no label, giving an
    all-zero frame. That is accepted behaviour, not an error.
    """
    labels = bucket_labels(config.walk_length)
    endpoints = walk_endpoints(config, rng)

    # Single-pass frequency table over [-reach, reach], then pick the labels
    reach = config.walk_length + BUCKET_PADDING
    table = np.bincount(endpoints + reach, minlength=2 * reach + 1)
    counts = table[labels + reach]

    return Frame(
        tuple(Bucket(label, count) for label, count in zip(labels.tolist(), counts.tolist()))
    )


# ═══════════════════════════════════════════════════════════════════════
#  Application state
# ═══════════════════════════════════════════════════════════════════════

Engine = Callable[[SimulationConfig, np.random.Generator], Frame]


@dataclass
class ApplicationState:
    """Config, random source and the frame currently on screen."""

    config: SimulationConfig
    rng: np.random.Generator
    frame: Frame
    generation: int = 0

    @classmethod
    def start(
        cls,
        config: SimulationConfig | None = None,
        rng: np.random.Generator | None = None,
        engine: Engine = generate,
    ) -> ApplicationState:
        """State holding one freshly generated frame."""
        config = config or SimulationConfig()
        rng = rng if rng is not None else np.random.default_rng()
        return cls(config=config, rng=rng, frame=engine(config, rng), generation=1)

    def regenerate(self, engine: Engine = generate) -> Frame:
        # Build the new frame fully before swapping it in
        frame = engine(self.config, self.rng)
        self.frame = frame
        self.generation += 1
        return frame


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes per-frame engine telemetry to CSV."""

    HEADER: ClassVar[str] = (
        "frame,time_s,samples,walk_length,mean,variance,peak_label,peak_count\n"
    )

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    def open(self) -> None:
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(self, state: ApplicationState) -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        frame = state.frame
        peak = frame.peak
        try:
            self._fh.write(
                f"{state.generation},{t:.1f},{state.config.sample_count},"
                f"{state.config.walk_length},{frame.mean():.4f},"
                f"{frame.variance():.4f},{peak.label},{peak.count}\n"
            )
            if state.generation % 10 == 0:
                self._fh.flush()
        except OSError:
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Display surface and input source
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class KeyEvent:
    code: int

    def is_quit(self) -> bool:
        return self.code in QUIT_KEYS


class DisplaySurface(Protocol):
    def draw(self, state: ApplicationState) -> None: ...


class InputSource(Protocol):
    def poll(self, timeout: float) -> KeyEvent | None: ...


class Chart(Protocol):
    def render(self, stdscr: curses.window, state: ApplicationState) -> None: ...


class CursesTerminal:
    """A curses window acting as both display surface and input source."""

    def __init__(self, stdscr: curses.window, chart: Chart) -> None:
        self._stdscr = stdscr
        self._chart = chart

    def draw(self, state: ApplicationState) -> None:
        self._stdscr.erase()
        self._chart.render(self._stdscr, state)
        self._stdscr.refresh()

    def poll(self, timeout: float) -> KeyEvent | None:
        self._stdscr.timeout(max(0, round(timeout * 1000)))
        key = self._stdscr.getch()
        if key == -1:
            return None
        if key == curses.KEY_MOUSE:
            # Drain the mouse event queue; clicks carry no meaning here
            try:
                curses.getmouse()
            except curses.error:
                pass
        return KeyEvent(key)


# ═══════════════════════════════════════════════════════════════════════
#  Tick loop
# ═══════════════════════════════════════════════════════════════════════

def run_loop(
    state: ApplicationState,
    surface: DisplaySurface,
    source: InputSource,
    *,
    tick_interval: float = TICK_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
    engine: Engine = generate,
    logger: StatsLogger | None = None,
) -> int:
    """Draw, wait for input up to the tick deadline, regenerate when due.

    Returns the number of regenerations once the quit key arrives. A quit
    key wins over a tick that is due at the same moment. Failures from the
    surface or the source propagate untouched.
    """
    regenerations = 0
    last_tick = clock()
    while True:
        surface.draw(state)

        remaining = max(0.0, tick_interval - (clock() - last_tick))
        event = source.poll(remaining)
        if event is not None and event.is_quit():
            return regenerations

        if clock() - last_tick >= tick_interval:
            state.regenerate(engine)
            regenerations += 1
            if logger is not None:
                logger.log(state)
            last_tick = clock()


# ═══════════════════════════════════════════════════════════════════════
#  Main
# ═══════════════════════════════════════════════════════════════════════

ChartFactory = Callable[[Palette], Chart]


def session(stdscr: curses.window, chart_factory: ChartFactory) -> int:
    """Body of one full-screen run; the caller owns terminal setup/teardown."""
    curses.curs_set(0)
    curses.mousemask(curses.ALL_MOUSE_EVENTS)

    palette = Palette()
    palette.setup()
    terminal = CursesTerminal(stdscr, chart_factory(palette))

    state = ApplicationState.start()

    logger = StatsLogger(LOG_PATH)
    logger.open()
    try:
        logger.log(state)
        return run_loop(state, terminal, terminal, logger=logger)
    finally:
        logger.close()


def launch(chart_factory: ChartFactory) -> int:
    try:
        curses.wrapper(session, chart_factory)
    except KeyboardInterrupt:
        return 0
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


def main() -> int:
    return launch(BarChart)


def main_line() -> int:
    return launch(BarLineChart)


if __name__ == "__main__":
    sys.exit(main())
