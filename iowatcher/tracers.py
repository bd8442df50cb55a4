"""Starting and stopping the blktrace and mpstat programs that feed iowatcher."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
from collections.abc import Sequence
from types import FrameType

MAX_DEVICES_PER_TRACE = 64

_BLKTRACE_ACTIONS = ("queue", "complete", "issue", "notify")
_MPSTAT_ARGV = ("mpstat", "-P", "ALL", "1")


class TracerError(Exception):
    """A tracer could not be started or did not finish cleanly."""


def _log(message: str) -> None:
    print(message, file=sys.stderr)


def blktrace_command(
    devices: Sequence[str],
    trace_name: str | None = None,
    dest: str | None = None,
) -> list[str]:
    """Build the blktrace command line for ``devices``.

    With several devices the output goes to a directory named ``trace_name``.
    """
    if trace_name is None:
        trace_name = "trace"
    if dest is None:
        dest = "."
    argv = ["blktrace", "-b", "8192"]
    for action in _BLKTRACE_ACTIONS:
        argv += ["-a", action]
    if len(devices) == 1:
        argv += ["-o", trace_name]
    else:
        dest = trace_name
    argv += ["-D", dest]
    for device in devices:
        argv += ["-d", device]
    return argv


def wait_program(proc: subprocess.Popen, name: str, sig: int = 0) -> int:
    """Optionally signal ``proc``, wait for it and return a status.

    The status is the exit code, 0 if the process died of ``sig`` or of any
    signal when none was sent, and -1 if it died of some other signal.
    """
    if sig:
        try:
            proc.send_signal(sig)
        except OSError as exc:
            _log(
                f"Failed to send signal {sig} to {name} ({proc.pid}): "
                f"{exc.strerror or exc}"
            )
            return exc.errno or 1
        _log(f"Kill ({sig}): {name} ({proc.pid})")

    returncode = proc.wait()
    if returncode >= 0:
        if returncode == 127:
            _log(f"Failed to run '{name}'")
        else:
            _log(f"Exit ({returncode}): {name}")
        return returncode
    killed_by = -returncode
    if sig and killed_by != sig:
        _log(f"'{name}' killed by signal {killed_by}")
        return -1
    return 0


def run_program(
    argv: Sequence[str],
    wait: bool = False,
    stdout_path: str | os.PathLike[str] | None = None,
) -> subprocess.Popen:
    """Start ``argv``, optionally sending its output to ``stdout_path``.

    When ``wait`` is true the call returns after the program has finished.
    Raises TracerError if the program cannot be started.
    """
    argv = list(argv)
    if not argv:
        raise TracerError("no program given")
    _log("Start " + " ".join(argv))

    out_fd: int | None = None
    try:
        if stdout_path is not None:
            out_fd = os.open(stdout_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        proc = subprocess.Popen(argv, stdout=out_fd)
    except OSError as exc:
        message = f"Could not run '{argv[0]}': {exc.strerror or exc}"
        _log(message)
        raise TracerError(message) from exc
    finally:
        if out_fd is not None:
            os.close(out_fd)

    if wait:
        wait_program(proc, argv[0], 0)
    return proc


class Tracers:
    """The blktrace and mpstat processes running for one session."""

    def __init__(self, install_signal_handlers: bool = True) -> None:
        self.install_signal_handlers = install_signal_handlers
        self.blktrace: subprocess.Popen | None = None
        self.mpstat: subprocess.Popen | None = None

    def _on_quit(self, signum: int, _frame: FrameType | None) -> None:
        _log(f"Received signal {signum}. Terminating tracers.")
        self.wait_for_tracers(signal.SIGTERM)

    def start_blktrace(
        self,
        devices: Sequence[str],
        trace_name: str | None = None,
        dest: str | None = None,
    ) -> None:
        """Start blktrace on ``devices``; SIGINT and SIGTERM then stop the tracers."""
        if len(devices) > MAX_DEVICES_PER_TRACE:
            raise TracerError("Too many blktrace devices provided")
        argv = blktrace_command(devices, trace_name, dest)
        if self.install_signal_handlers:
            signal.signal(signal.SIGTERM, self._on_quit)
            signal.signal(signal.SIGINT, self._on_quit)
        self.blktrace = run_program(argv)

    def start_mpstat(self, path: str | os.PathLike[str]) -> None:
        """Start mpstat sampling every CPU each second, writing to ``path``."""
        self.mpstat = run_program(_MPSTAT_ARGV, stdout_path=path)

    def wait_for_tracers(self, sig: int = 0) -> None:
        """Signal (if ``sig``) and reap both tracers; raise TracerError on failure."""
        if self.blktrace is not None:
            if wait_program(self.blktrace, "blktrace", sig):
                raise TracerError("blktrace did not finish cleanly")
            self.blktrace = None
        if self.mpstat is not None:
            if wait_program(self.mpstat, "mpstat", sig):
                raise TracerError("mpstat did not finish cleanly")
            self.mpstat = None