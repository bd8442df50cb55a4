"""SVG graph drawing, fio and mpstat log readers, tracer control, a red-black tree and a blkparse order checker."""

__version__ = "0.1.0"