"""Reading fio bandwidth logs and folding them into line graph data."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass

from .plotdata import GraphLineData

_ATOI = re.compile(r"\s*([+-]?\d+)")


def _atoi(token: str) -> int:
    match = _ATOI.match(token)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class FioEvent:
    """One line of a fio bandwidth log."""

    time_ms: int
    rate: int
    direction: int
    block_size: int = 0

    @property
    def seconds(self) -> int:
        """The whole second the sample falls in."""
        return math.floor(self.time_ms / 1000)

    @property
    def bandwidth(self) -> int:
        """The rate converted from KiB/s to bytes per second."""
        return self.rate * 1024


def parse_fio_line(line: str) -> FioEvent:
    """Parse ``time, rate, direction[, block size]``; raise ValueError if too short."""
    end = line.find("\n")
    if end >= 0:
        line = line[:end]
    tokens = [token for token in line.split(",") if token][:4]
    if len(tokens) < 3:
        raise ValueError(f"fio log line has too few fields: {line!r}")
    values = [_atoi(token) for token in tokens]
    return FioEvent(*values)


class FioTrace:
    """A fio bandwidth log held in memory."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.seconds = 0
        last: FioEvent | None = None
        for event in self.events():
            last = event
        if last is not None:
            self.seconds = math.ceil(last.time_ms / 1000)

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> FioTrace:
        """Read the log at ``path``."""
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            return cls(handle.read())

    def events(self) -> Iterator[FioEvent]:
        """Yield events from the start until a line is unterminated or unparsable."""
        text = self.text
        pos = 0
        while pos < len(text):
            end = text.find("\n", pos)
            if end < 0:
                return
            try:
                event = parse_fio_line(text[pos:end])
            except ValueError:
                return
            yield event
            pos = end + 1


def add_fio_sample(gld: GraphLineData, time: int, bw: int) -> None:
    """Add a bandwidth sample at second ``time``, raising the graph max if needed."""
    if time < 0 or time > gld.max_seconds:
        return
    point = gld.data[time]
    point.sum += bw
    point.count += 1
    val = point.sum / point.count
    if val > gld.max:
        gld.max = math.ceil(val)