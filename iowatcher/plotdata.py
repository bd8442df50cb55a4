"""Data collected for plotting: line series, IO dot bitmaps, colours and scaling."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

COLORS: tuple[str, ...] = (
    "blue", "darkgreen",
    "red",
    "darkviolet",
    "orange",
    "aqua",
    "brown", "#00FF00",
    "yellow", "coral",
    "black", "darkred",
    "fuchsia", "crimson",
)

BYTE_UNIT_NAMES: tuple[str, ...] = (
    "", "K", "M", "G", "T", "P", "E", "Z", "Y", "unobtainium",
)
MAX_BYTE_UNIT_SCALE = 9

TIME_UNIT_NAMES: tuple[str, ...] = ("n", "u", "m", "s")
MAX_TIME_UNIT_SCALE = 3

_TICK_MINI_STEPS = (1, 2, 5)


class ColorPicker:
    """Hands out plot colours in a fixed rotating order."""

    def __init__(self) -> None:
        self._index = 0
        self._fio_index = 0
        self._cpu_index = 0

    def pick(self) -> str:
        """Return the next general colour."""
        if self._index >= len(COLORS):
            self._index = 0
        color = COLORS[self._index]
        self._index += 1
        return color

    def pick_fio(self) -> str:
        """Return the next colour for a fio trace, skipping every other one."""
        if self._fio_index >= len(COLORS):
            self._fio_index = 0
        color = COLORS[self._fio_index]
        self._fio_index += 2
        return color

    def pick_cpu(self) -> str:
        """Return the next colour for a CPU line."""
        if self._cpu_index >= len(COLORS):
            self._cpu_index = 0
        color = COLORS[self._cpu_index]
        self._cpu_index += 1
        return color

    def reset_cpu(self) -> None:
        """Start the CPU colours over from the first one."""
        self._cpu_index = 0


@dataclass
class LinePoint:
    """Accumulated samples for one second of a line graph."""

    count: int = 0
    sum: float = 0


class GraphLineData:
    """One value per second, averaged over the samples that fell in it."""

    def __init__(self, min_seconds: int, max_seconds: int, stop_seconds: int) -> None:
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self.stop_seconds = stop_seconds
        self.max: float = 0
        self.label: str = ""
        self.data: list[LinePoint] = [LinePoint() for _ in range(stop_seconds + 1)]

    def rolling_avg(self, index: int, distance: int) -> float:
        """Average the per-second means from ``index - distance`` to ``index``."""
        if distance < 0:
            distance = 1
        start = 0 if distance > index else index - distance
        window = self.data[start:index + 1]
        total = sum(p.sum / p.count if p.count else 0.0 for p in window)
        return total / len(window)


class GraphDotData:
    """A bitmap of which offset rows were touched at which time columns."""

    def __init__(
        self,
        min_seconds: int,
        max_seconds: int,
        min_offset: int,
        max_offset: int,
        stop_seconds: int,
        color: str,
        label: str,
        rows: int,
        cols: int,
    ) -> None:
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self.stop_seconds = stop_seconds
        self.min_offset = min_offset
        self.max_offset = max_offset
        self.color = color
        self.label = label
        self.rows = rows
        self.cols = cols
        self.total_ios = 0
        nbits = (rows + 1) * cols
        self.data = bytearray((nbits + 7) // 8)

    def _set(self, bit_index: int) -> None:
        arr_index, bit_mod = divmod(bit_index, 8)
        if 0 <= arr_index < len(self.data):
            self.data[arr_index] |= 1 << bit_mod

    def set_bit(self, offset: int, nbytes: float, time: float) -> None:
        """Mark the cells covered by an IO of ``nbytes`` at ``offset`` and ``time`` ns."""
        bytes_per_row = (self.max_offset - self.min_offset + 1) / self.rows
        secs_per_col = (self.max_seconds - self.min_seconds) / self.cols

        if offset > self.max_offset or offset < self.min_offset:
            return
        seconds = time / 1000000000.0
        if seconds < self.min_seconds or seconds > self.max_seconds:
            return
        self.total_ios += 1

        if secs_per_col:
            col_int = math.floor((seconds - self.min_seconds) / secs_per_col)
        else:
            col_int = 0
        while nbytes > 0 and offset <= self.max_offset:
            row_int = math.floor((offset - self.min_offset) / bytes_per_row)
            self._set(row_int * self.cols + col_int)
            offset = int(offset + bytes_per_row)
            nbytes -= bytes_per_row

    def is_set(self, row: int, col: int) -> bool:
        """Return whether the cell at ``row``, ``col`` was marked."""
        bit_index = row * self.cols + col
        arr_index, bit_mod = divmod(bit_index, 8)
        if arr_index < 0 or arr_index >= len(self.data):
            return False
        return bool(self.data[arr_index] & (1 << bit_mod))


@dataclass
class PidPlotHistory:
    """Cell positions drawn for one process in movie mode."""

    color: str
    history: list[float] = field(default_factory=list)
    history_max: float = 0.0

    @property
    def num_used(self) -> int:
        return len(self.history)

    def add(self, value: float) -> None:
        """Record one more cell position."""
        self.history.append(value)


def scale_line_graph_bytes(value: int, factor: int) -> tuple[int, str]:
    """Scale ``value`` down by powers of ``factor``; return it with its unit prefix."""
    scale = 0
    val = value
    div = 1
    while val > factor * 64:
        val //= factor
        scale += 1
        div *= factor
    units = BYTE_UNIT_NAMES[min(scale, MAX_BYTE_UNIT_SCALE)]
    if scale == 0:
        return value, units
    return value // div, units


def scale_line_graph_time(value: int) -> tuple[int, str]:
    """Scale a nanosecond ``value`` up to at most seconds; return it with its unit."""
    scale = 0
    val = value
    div = 1
    while val > 1000 * 10:
        val //= 1000
        scale += 1
        div *= 1000
        if scale == MAX_TIME_UNIT_SCALE:
            break
    units = TIME_UNIT_NAMES[scale]
    if scale == 0:
        return value, units
    return value // div, units


def find_step(first: float, last: float, num_ticks: int) -> float:
    """Choose a tick step of 1, 2 or 5 times a power of ten for the range."""
    if num_ticks <= 0:
        raise ValueError("num_ticks must be positive")
    if last <= first:
        raise ValueError("last must be greater than first")
    span = last - first
    step = span / num_ticks
    log10 = math.log(10)
    step = math.exp(math.floor(math.log(step) / log10) * log10)
    cur = 0
    while cur < len(_TICK_MINI_STEPS) and span / (step * _TICK_MINI_STEPS[cur]) > num_ticks:
        cur += 1
    if cur > 0:
        step *= _TICK_MINI_STEPS[cur - 1]
    return step