"""
Chart renderers for the central limit demo.

Two interchangeable render adapters draw the current frame into a curses
window:

  BarChart       one vertical bar per bucket, count in the base row,
                 bucket label underneath
  BarLineChart   the same bars with the normal approximation of the
                 expected counts overlaid as a dotted line

Both only read the application state handed to them for one draw call.
Layout follows a 15 / 85 split between the header and the chart box,
inside a 2-cell margin.
"""

from __future__ import annotations

import curses
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm

if TYPE_CHECKING:
    from central_limit import ApplicationState, SimulationConfig

# ── Glyphs ──────────────────────────────────────────────────────────────
SPARKS = "▁▂▃▄▅▆▇█"
FULL_BLOCK = SPARKS[-1]
CURVE_MARKER = "●"
CURVE_DOT = "·"
BOX = {"tl": "┌", "tr": "┐", "bl": "└", "br": "┘", "h": "─", "v": "│"}

# ── Layout ──────────────────────────────────────────────────────────────
MARGIN = 2
HEADER_PCT = 15
BAR_WIDTH = 7
BAR_GAP = 1
MIN_ROWS = 10
MIN_COLS = 24

TITLE = "Central Limit Theorem - A simple TUI demo"


# ═══════════════════════════════════════════════════════════════════════
#  Palette
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Palette:
    """curses attributes for every chart element (plain until setup())."""

    title: int = curses.A_BOLD
    border: int = curses.A_NORMAL
    bar: int = curses.A_NORMAL
    value: int = curses.A_REVERSE
    label: int = curses.A_DIM
    curve: int = curses.A_BOLD
    status: int = curses.A_DIM

    def setup(self) -> None:
        if not curses.has_colors():
            return
        curses.start_color()
        curses.use_default_colors()

        curses.init_pair(1, curses.COLOR_GREEN, -1)
        curses.init_pair(2, curses.COLOR_WHITE, curses.COLOR_GREEN)
        curses.init_pair(3, curses.COLOR_YELLOW, -1)

        self.title = curses.color_pair(1) | curses.A_BOLD
        self.bar = curses.color_pair(1)
        self.value = curses.color_pair(2) | curses.A_BOLD
        self.curve = curses.color_pair(3) | curses.A_BOLD


# ═══════════════════════════════════════════════════════════════════════
#  Layout helpers
# ═══════════════════════════════════════════════════════════════════════

def column_layout(n_bars: int, width: int) -> tuple[int, int]:
    """Pick (bar_width, gap) so n_bars fit in width, preferring 7 + 1."""
    if n_bars <= 0:
        return BAR_WIDTH, BAR_GAP
    if n_bars * BAR_WIDTH + (n_bars - 1) * BAR_GAP <= width:
        return BAR_WIDTH, BAR_GAP
    bar_w = (width - (n_bars - 1) * BAR_GAP) // n_bars
    if bar_w >= 1:
        return bar_w, BAR_GAP
    return max(1, width // n_bars), 0


def bar_cells(value: float, peak: float, rows: int) -> int:
    """Height of a bar in eighths of a cell, 0..rows*8."""
    if peak <= 0 or value <= 0 or rows <= 0:
        return 0
    return min(rows * 8, int(value * rows * 8 / peak))


def curve_offset(value: float, peak: float, rows: int) -> int:
    """Rows above the base row at which a curve point is plotted."""
    if peak <= 0 or value <= 0 or rows <= 0:
        return 0
    return min(rows - 1, int(value * rows / peak))


def expected_counts(
    config: SimulationConfig, labels: Sequence[int] | NDArray[np.int64]
) -> NDArray[np.float64]:
    """Expected count per bucket under the normal approximation.

    A walk of n fair unit steps has mean 0 and variance n; endpoints land
    two apart, so each bucket collects a width-2 slice of the density.
    Labels the walk cannot reach get 0.
    """
    x = np.asarray(labels, dtype=np.float64)
    sigma = math.sqrt(config.walk_length)
    expected = config.sample_count * 2.0 * norm.pdf(x, loc=0.0, scale=sigma)
    expected[np.abs(x) > config.walk_length] = 0.0
    return expected


def _centre(text: str, width: int) -> str:
    return text[:width].center(width)


# ═══════════════════════════════════════════════════════════════════════
#  Bar chart
# ═══════════════════════════════════════════════════════════════════════

class BarChart:
    """Vertical bar chart of the current frame."""

    def __init__(self, palette: Palette | None = None) -> None:
        self.palette = palette or Palette()

    # ── Entry point ─────────────────────────────────────────────────

    def render(self, stdscr: curses.window, state: ApplicationState) -> None:
        max_y, max_x = stdscr.getmaxyx()
        if max_y < MIN_ROWS or max_x < MIN_COLS:
            self._put(stdscr, 0, 0, "terminal too small - q quits"[: max_x - 1],
                      self.palette.status)
            return

        top, left = MARGIN, MARGIN
        height, width = max_y - 2 * MARGIN, max_x - 2 * MARGIN
        header_h = max(3, height * HEADER_PCT // 100)

        self._draw_header(stdscr, state, top, left, header_h, width)
        self._draw_chart(stdscr, state, top + header_h, left,
                         height - header_h, width)

    # ── Header ──────────────────────────────────────────────────────

    def status_line(self, state: ApplicationState) -> str:
        frame = state.frame
        return (
            f"Iterations per render: {state.config.sample_count} | "
            f"Buckets: {state.config.walk_length} | "
            f"frame {state.generation:,} | "
            f"mean {frame.mean():+.2f} | var {frame.variance():.2f} | q quit"
        )

    def _draw_header(
        self,
        stdscr: curses.window,
        state: ApplicationState,
        top: int,
        left: int,
        height: int,
        width: int,
    ) -> None:
        lines = [TITLE, "", self.status_line(state)]
        first = top + max(0, (height - len(lines)) // 2)
        for i, line in enumerate(lines):
            attr = self.palette.title if i == 0 else self.palette.status
            self._put(stdscr, first + i, left, _centre(line, width), attr)

    # ── Chart box ───────────────────────────────────────────────────

    def _draw_box(
        self, stdscr: curses.window, top: int, left: int, height: int, width: int
    ) -> None:
        attr = self.palette.border
        inner = BOX["h"] * (width - 2)
        self._put(stdscr, top, left, BOX["tl"] + inner + BOX["tr"], attr)
        for y in range(top + 1, top + height - 1):
            self._put(stdscr, y, left, BOX["v"], attr)
            self._put(stdscr, y, left + width - 1, BOX["v"], attr)
        self._put(stdscr, top + height - 1, left, BOX["bl"] + inner + BOX["br"], attr)

    def _draw_chart(
        self,
        stdscr: curses.window,
        state: ApplicationState,
        top: int,
        left: int,
        height: int,
        width: int,
    ) -> None:
        self._draw_box(stdscr, top, left, height, width)

        frame = state.frame
        labels = frame.labels
        counts = frame.counts
        inner_x = left + 1
        inner_w = width - 2
        label_row = top + height - 2
        base_row = label_row - 1
        bar_rows = height - 3
        if bar_rows <= 0 or not labels:
            return

        bar_w, gap = column_layout(len(labels), inner_w)
        peak = self.scale_peak(state)
        xs = [inner_x + i * (bar_w + gap) for i in range(len(labels))]

        for x, label, count in zip(xs, labels, counts):
            if x + bar_w > inner_x + inner_w:
                break
            self._draw_bar(stdscr, x, bar_w, base_row, bar_rows, count, peak)
            self._put(stdscr, label_row, x, _centre(str(label), bar_w),
                      self.palette.label)

        self._overlay(stdscr, state, xs, bar_w, base_row, bar_rows, peak,
                      inner_x + inner_w)

    def scale_peak(self, state: ApplicationState) -> float:
        return float(max(state.frame.peak.count, 1))

    def _draw_bar(
        self,
        stdscr: curses.window,
        x: int,
        bar_w: int,
        base_row: int,
        bar_rows: int,
        count: int,
        peak: float,
    ) -> None:
        eighths = bar_cells(count, peak, bar_rows)
        full, rem = divmod(eighths, 8)
        for r in range(full):
            self._put(stdscr, base_row - r, x, FULL_BLOCK * bar_w, self.palette.bar)
        if rem:
            self._put(stdscr, base_row - full, x, SPARKS[rem - 1] * bar_w,
                      self.palette.bar)

        text = str(count)
        if len(text) <= bar_w:
            attr = self.palette.value if full else self.palette.label
            self._put(stdscr, base_row, x, _centre(text, bar_w), attr)

    def _overlay(
        self,
        stdscr: curses.window,
        state: ApplicationState,
        xs: list[int],
        bar_w: int,
        base_row: int,
        bar_rows: int,
        peak: float,
        right_edge: int,
    ) -> None:
        """Hook for charts drawing on top of the bars."""

    # ── Output ──────────────────────────────────────────────────────

    @staticmethod
    def _put(stdscr: curses.window, y: int, x: int, text: str, attr: int) -> None:
        # Writing the bottom-right cell raises even though the glyph lands
        try:
            stdscr.addstr(y, x, text, attr)
        except curses.error:
            pass


# ═══════════════════════════════════════════════════════════════════════
#  Bar + line chart
# ═══════════════════════════════════════════════════════════════════════

class BarLineChart(BarChart):
    """Bars plus a dotted normal-curve line through the bar centres."""

    def scale_peak(self, state: ApplicationState) -> float:
        expected = expected_counts(state.config, state.frame.labels)
        top = float(expected.max()) if expected.size else 0.0
        return max(super().scale_peak(state), math.ceil(top))

    def _overlay(
        self,
        stdscr: curses.window,
        state: ApplicationState,
        xs: list[int],
        bar_w: int,
        base_row: int,
        bar_rows: int,
        peak: float,
        right_edge: int,
    ) -> None:
        expected = expected_counts(state.config, state.frame.labels)
        points = [
            (x + bar_w // 2, base_row - curve_offset(value, peak, bar_rows))
            for x, value in zip(xs, expected.tolist())
            if x + bar_w <= right_edge
        ]
        attr = self.palette.curve

        for (x0, y0), (x1, y1) in zip(points, points[1:]):
            for x in range(x0 + 1, x1):
                t = (x - x0) / (x1 - x0)
                y = round(y0 + (y1 - y0) * t)
                self._put(stdscr, y, x, CURVE_DOT, attr)

        for x, y in points:
            self._put(stdscr, y, x, CURVE_MARKER, attr)
