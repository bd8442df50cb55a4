"""Reading ``mpstat -P ALL`` logs recorded alongside a block trace."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from dataclasses import dataclass

from .plotdata import GraphLineData

HEADER = (
    "CPU    %usr   %nice    %sys %iowait    %irq   %soft  %steal  %guest   %idle\n"
)
HEADER_V2 = (
    "CPU    %usr   %nice    %sys %iowait    %irq   %soft  %steal  %guest  %gnice"
    "   %idle\n"
)

# width of the clock and CPU number columns at the start of each row
_ROW_PREFIX = 16

_FLOAT = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_ATOI = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class CpuSample:
    """CPU time percentages from one mpstat row."""

    user: float
    sys: float
    iowait: float
    irq: float
    soft: float


def _parse_at(text: str, pos: int) -> CpuSample | None:
    pos += _ROW_PREFIX
    if pos >= len(text):
        return None
    values = []
    for _ in range(6):
        match = _FLOAT.match(text, pos)
        if match is None:
            return None
        values.append(float(match.group(1)))
        pos = match.end()
    user, _nice, sys_time, iowait, irq, soft = values
    return CpuSample(user, sys_time, iowait, irq, soft)


def parse_mpstat_line(line: str) -> CpuSample:
    """Parse one mpstat row; raise ValueError if it does not hold the figures."""
    sample = _parse_at(line, 0)
    if sample is None:
        raise ValueError(f"cannot parse mpstat line: {line!r}")
    return sample


class MpstatTrace:
    """An mpstat log held in memory."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.seconds = self._count_records()
        self.num_cpus = self._count_cpus()

    def _next_record(self, pos: int) -> int | None:
        text = self.text
        idx = text.find(HEADER, pos)
        if idx >= 0:
            cur = idx + len(HEADER) + 1
        else:
            idx = text.find(HEADER_V2, pos)
            if idx < 0:
                return None
            cur = idx + len(HEADER_V2) + 1
        if cur >= len(text):
            return None
        return cur

    def _next_line(self, pos: int) -> int | None:
        idx = self.text.find("\n", pos)
        if idx < 0:
            return None
        nxt = idx + 1
        if nxt >= len(self.text):
            return None
        return nxt

    def _count_records(self) -> int:
        count = 0
        pos = self._next_record(0)
        while pos is not None:
            count += 1
            pos = self._next_record(pos)
        return count

    def _count_cpus(self) -> int:
        idx = self.text.find(" CPU)")
        if idx < 0:
            return self._guess_cpus()
        line = self.text[:idx]
        paren = line.rfind("(")
        if paren < 0:
            return 0
        match = _ATOI.match(line, paren + 1)
        return int(match.group(1)) if match else 0

    def _guess_cpus(self) -> int:
        pos = self._next_record(0)
        if pos is None:
            return 0
        count = 0
        while True:
            nxt = self._next_line(pos)
            if nxt is None:
                break
            pos = nxt
            count += 1
            if self.text[pos] == "\n":
                break
        return max(count - 1, 0)

    def records(self) -> Iterator[list[CpuSample]]:
        """Yield, per record, the summary row followed by one row per CPU.

        Reading stops at the first row that cannot be parsed; the rows of that
        record read so far are yielded first.
        """
        rows = self.num_cpus + 1
        pos = self._next_record(0)
        while pos is not None:
            samples: list[CpuSample] = []
            for _ in range(rows):
                sample = _parse_at(self.text, pos)
                nxt = self._next_line(pos) if sample is not None else None
                if sample is None or nxt is None:
                    if samples:
                        yield samples
                    return
                samples.append(sample)
                pos = nxt
            yield samples
            pos = self._next_record(pos)


def find_mpstat_file(trace_name: str) -> str:
    """Return the base name whose ``.mpstat`` file exists, trying without the extension."""
    if os.path.exists(f"{trace_name}.mpstat"):
        return trace_name
    dot = trace_name.rfind(".")
    if dot < 0:
        return trace_name
    stem = trace_name[:dot]
    if os.path.exists(f"{stem}.mpstat"):
        return stem
    return trace_name


def read_mpstat(trace_name: str) -> MpstatTrace | None:
    """Load the mpstat log that belongs to ``trace_name``, or None if there is none."""
    path = f"{find_mpstat_file(trace_name)}.mpstat"
    try:
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            text = handle.read()
    except OSError:
        return None
    return MpstatTrace(text)


def add_mpstat_sample(gld: GraphLineData, time: int, value: float) -> None:
    """Store ``value`` as the single sample for second ``time``."""
    point = gld.data[time]
    point.sum = value
    point.count = 1