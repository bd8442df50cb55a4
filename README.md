# iowatcher

Building blocks for looking at block-device I/O traces.

- **SVG drawing** of line graphs, I/O scatter plots, axes, ticks, legends and
  movie frames (`iowatcher.svg`), fed by per-second and bitmap data
  containers (`iowatcher.plotdata`).
- **Readers** for fio bandwidth logs (`iowatcher.fio`) and `mpstat -P ALL 1`
  output (`iowatcher.mpstat`).
- **Tracer control** that starts `blktrace` and `mpstat` and stops them again
  (`iowatcher.tracers`).
- **A red-black tree** with ordered iteration (`iowatcher.rbtree`).
- **`verify-blkparse`**, a checker for the ordering of `blkparse` text output
  (`iowatcher.verify`).

The package has no runtime dependencies.

## Installation

```
pip install .
```

Running the tests:

```
pip install ".[test]"
pytest
```

## Checking blkparse output

```
verify-blkparse trace.txt
```

Each line is read as `major,minor cpu sequence time ...`; reading stops at the
first line that does not have that shape, or at a CPU number not below the
number of CPUs in the machine (reported on standard error). Every pair of lines
whose timestamps go backwards is printed as `last: ...` / `this: ...`, every
sequence number repeated on the same CPU as `alias on sequence N`, and then a
summary:

```
Events 1234: 0 unordered, 0 aliases
```

The exit status is 1 when any events were out of order, when no file is given
or when the file cannot be opened, and 0 otherwise.

From Python:

```python
from iowatcher.verify import verify_lines

with open("trace.txt") as f:
    result = verify_lines(f, max_cpus=64)
print(result.summary)
print(result.unordered, result.aliases, result.reports, result.error)
```

## Reading fio logs

```python
from iowatcher.fio import FioTrace, add_fio_sample
from iowatcher.plotdata import GraphLineData

fio = FioTrace.open("fio_bw.log")
gld = GraphLineData(0, fio.seconds, fio.seconds)
for event in fio.events():
    if event.direction <= 1:
        add_fio_sample(gld, event.seconds, event.bandwidth)
```

`events()` yields `FioEvent` objects (`time_ms`, `rate`, `direction`,
`block_size`) and stops at the first line without a newline or with fewer than
three fields. `FioTrace.seconds` is the last event's time rounded up to whole
seconds. `parse_fio_line` parses a single line and raises `ValueError` if it is
too short.

## Reading mpstat logs

```python
from iowatcher.mpstat import read_mpstat

cpu = read_mpstat("trace")      # loads trace.mpstat, or None if absent
if cpu is not None:
    print(cpu.num_cpus, cpu.seconds)
    for record in cpu.records():
        summary, *per_cpu = record
        print(summary.user, summary.sys, summary.iowait, summary.irq, summary.soft)
```

`find_mpstat_file` (used by `read_mpstat`) tries `<name>.mpstat` and then the
name with its last extension removed, so `trace.dump` finds `trace.mpstat`.
`add_mpstat_sample` stores a value as the only sample for a second of a
`GraphLineData`.

## Drawing graphs

`GraphLineData` holds per-second samples for a line graph; `GraphDotData` is
the bitmap behind an I/O scatter plot (`set_bit(offset, nbytes, time_ns)`,
`is_set(row, col)`). A `Plot` writes them into an SVG file:

```python
from iowatcher.plotdata import GraphLineData
from iowatcher.svg import GraphSettings, Plot

gld = GraphLineData(0, 60, 60)
...
plot = Plot(GraphSettings())
plot.set_output("trace.svg")
plot.set_plot_title("My run")
plot.setup_axis()
plot.set_plot_label("Throughput")
plot.set_ylabel("MB/s")
plot.set_yticks(4, 0, 100, "")
plot.set_xticks(9, 0, 60)
plot.line_graph(gld, "blue", 0, 0)
plot.close_plot()
plot.close_file()
```

`Plot` can also be used as a context manager, which finishes the file on exit.
Legends are built with `alloc_legend`, `add_legend` and `write_legend`. Movie
frames use `io_graph_movie`, `io_graph_movie_array` and
`io_graph_movie_array_spindle` together with `PidPlotHistory`.

Helpers in `iowatcher.plotdata`:

- `scale_line_graph_bytes(value, factor)` and `scale_line_graph_time(value)`
  return the scaled value and its unit prefix (`K`, `M`, `G`, ... or `n`, `u`,
  `m`, `s`).
- `find_step(first, last, num_ticks)` picks a tick step of 1, 2 or 5 times a
  power of ten.
- `ColorPicker` hands out plot colours in a fixed rotation.

## Running tracers

```python
import signal
from iowatcher.tracers import Tracers

tracers = Tracers()
tracers.start_blktrace(["/dev/sda"], "trace", ".")
tracers.start_mpstat("trace.mpstat")
...
tracers.wait_for_tracers(signal.SIGINT)
```

`start_blktrace` installs SIGINT and SIGTERM handlers that stop the tracers
(pass `install_signal_handlers=False` to `Tracers` to avoid that).
`blktrace_command` builds the command line without running it, and
`run_program` / `wait_program` start and reap any program. `blktrace` and
`mpstat` must be installed and on `PATH`; tracing block devices usually needs
root. Failures are raised as `TracerError`.

## Red-black tree

```python
from iowatcher.rbtree import RBTree

tree = RBTree()
for key in (5, 1, 9):
    tree.insert(key, str(key))
print([node.key for node in tree], len(tree))
tree.erase(tree.find(5))
```

Inserting a key that is already present returns the existing node unchanged.

## What this package does not do

There is no `iowatcher` command that reads blktrace dump files and produces a
finished page of graphs or an animation: the package has no reader for binary
blktrace output, no command-line front end that assembles the graphs, and no
movie encoding. It supplies the pieces — log readers, graph data, SVG drawing
and tracer control — for a program of that kind to be built on.