"""Check blkparse text output for out-of-order times and repeated sequence numbers."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field

_FLOAT = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_UNSET = 0xFFFFFFFF
_DEFAULT_CPUS = 1024


@dataclass
class VerifyResult:
    """What one pass over a blkparse listing found."""

    total_entries: int = 0
    unordered: int = 0
    aliases: int = 0
    reports: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def summary(self) -> str:
        return (
            f"Events {self.total_entries}: {self.unordered} unordered, "
            f"{self.aliases} aliases"
        )


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _scan_int(text: str, pos: int, width: int) -> tuple[int, int] | None:
    pos = _skip_space(text, pos)
    start = pos
    limit = pos + width
    if pos < len(text) and pos < limit and text[pos] in "+-":
        pos += 1
    digits = pos
    while pos < len(text) and pos < limit and text[pos].isdigit():
        pos += 1
    if pos == digits:
        return None
    return int(text[start:pos]), pos


def _scan_float(text: str, pos: int) -> tuple[float, int] | None:
    pos = _skip_space(text, pos)
    match = _FLOAT.match(text, pos)
    if match is None:
        return None
    return float(match.group()), match.end()


def _parse_line(line: str) -> tuple[int, int, int, int, float] | None:
    """Read device, cpu, sequence and time from the start of a blkparse line."""
    scanned = _scan_int(line, 0, 3)
    if scanned is None:
        return None
    major, pos = scanned
    if pos >= len(line) or line[pos] != ",":
        return None
    scanned = _scan_int(line, pos + 1, 3)
    if scanned is None:
        return None
    minor, pos = scanned
    scanned = _scan_int(line, pos, 5)
    if scanned is None:
        return None
    cpu, pos = scanned
    scanned = _scan_int(line, pos, 8)
    if scanned is None:
        return None
    seq, pos = scanned
    timed = _scan_float(line, pos)
    if timed is None:
        return None
    return major, minor, cpu, seq & 0xFFFFFFFF, timed[0]


def verify_lines(lines: Iterable[str], max_cpus: int = _DEFAULT_CPUS) -> VerifyResult:
    """Scan blkparse lines until one does not parse or a cpu is out of range."""
    result = VerifyResult()
    last_seq: dict[int, int] = {}
    last_time = 0.0
    last_line = ""
    for line in lines:
        parsed = _parse_line(line)
        if parsed is None:
            break
        _major, _minor, cpu, seq, this_time = parsed

        if this_time < last_time:
            result.reports.append("last: " + last_line.rstrip("\n"))
            result.reports.append("this: " + line.rstrip("\n"))
            result.unordered += 1
        last_time = this_time

        if cpu < 0 or cpu >= max_cpus:
            result.error = f"cpu{cpu} too large"
            break

        if last_seq.get(cpu, _UNSET) == seq:
            result.reports.append(f"alias on sequence {seq}")
            result.aliases += 1
        last_seq[cpu] = seq
        result.total_entries += 1
        last_line = line
    return result


def main(argv: list[str] | None = None) -> int:
    """Verify the blkparse listing named on the command line."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "verify"
        print(f"{prog}: file", file=sys.stderr)
        return 1

    max_cpus = os.cpu_count() or 0
    if max_cpus < 1:
        print("Could not determine number of CPUs online", file=sys.stderr)
        print(f"Assuming {_DEFAULT_CPUS}", file=sys.stderr)
        max_cpus = _DEFAULT_CPUS

    try:
        with open(args[0], encoding="utf-8", errors="replace") as handle:
            result = verify_lines(handle, max_cpus)
    except OSError as exc:
        print(f"fopen: {exc.strerror or exc}", file=sys.stderr)
        return 1

    for report in result.reports:
        print(report)
    if result.error is not None:
        print(result.error, file=sys.stderr)
    print(result.summary)
    return 1 if result.unordered else 0


if __name__ == "__main__":
    sys.exit(main())