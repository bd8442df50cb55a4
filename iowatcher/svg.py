"""SVG output for iowatcher graphs: axes, ticks, legends, line and IO plots."""

from __future__ import annotations

import enum
import math
import os
from dataclasses import dataclass
from typing import BinaryIO

from .plotdata import GraphDotData, GraphLineData, PidPlotHistory, find_step

SVG_NAMESPACE = "http://www.w3.org/2000/svg"

_SPACES = " " * 52 + "\n"
_HEADER = f'<svg  xmlns="{SVG_NAMESPACE}">\n'
_FILTER_SHADOW = (
    '<filter id="shadow">\n '
    '<feOffset result="offOut" in="SourceAlpha" dx="4" dy="4" />\n '
    '<feGaussianBlur result="blurOut" in="offOut" stdDeviation="2" />\n '
    '<feBlend in="SourceGraphic" in2="blurOut" mode="normal" />\n '
    "</filter>\n"
)
_FILTER_TEXTSHADOW = (
    '<filter id="textshadow" x="0" y="0" width="200%" height="200%">\n '
    '<feOffset result="offOut" in="SourceAlpha" dx="1" dy="1" />\n '
    '<feGaussianBlur result="blurOut" in="offOut" stdDeviation="1.5" />\n '
    '<feBlend in="SourceGraphic" in2="blurOut" mode="normal" />\n '
    "</filter>\n"
)
_FILTER_LABELSHADOW = (
    '<filter id="labelshadow" x="0" y="0" width="200%" height="200%">\n '
    '<feOffset result="offOut" in="SourceGraphic" dx="3" dy="3" />\n '
    '<feColorMatrix result="matrixOut" in="offOut" type="matrix" '
    'values="0.2 0 0 0 0 0 0.2 0 0 0 0 0 0.2 0 0 0 0 0 1 0" /> '
    '<feGaussianBlur result="blurOut" in="offOut" stdDeviation="2" />\n '
    '<feBlend in="SourceGraphic" in2="blurOut" mode="normal" />\n '
    "</filter>\n"
)


def _ieee_div(a: float, b: float) -> float:
    """Divide the way floating point hardware does, giving inf or nan on zero."""
    if b:
        return a / b
    if a > 0:
        return math.inf
    if a < 0:
        return -math.inf
    return math.nan


class Direction(enum.IntEnum):
    """Where the next plot goes after one is closed."""

    DOWN = 0
    ACROSS = 1


@dataclass
class GraphSettings:
    """Sizes, fonts and offsets shared by all plots on a page."""

    io_graph_scale: int = 8
    graph_width: int = 700
    graph_height: int = 250
    graph_circle_extra: int = 30
    graph_inner_x_margin: int = 2
    graph_inner_y_margin: int = 2
    graph_tick_len: int = 5
    graph_left_pad: int = 120
    tick_label_pad: int = 16
    tick_font_size: int = 15
    font_family: str = "sans-serif"
    plot_title_height: int = 50
    plot_title_font_size: int = 25
    plot_label_height: int = 60
    plot_label_font_size: int = 20
    axis_label_font_size: int = 16
    legend_x_off: int = 45
    legend_y_off: int = -10
    legend_font_size: int = 15
    legend_width: int = 80
    rolling_avg_secs: int = 0

    def set_legend_width(self, longest_str: int) -> None:
        """Size the legend box for labels of ``longest_str`` characters."""
        if longest_str:
            self.legend_width = longest_str * (self.legend_font_size * 3 // 4) + 25
        else:
            self.legend_width = 0


class Plot:
    """An SVG page onto which graphs are drawn one after another."""

    def __init__(self, settings: GraphSettings | None = None) -> None:
        self.settings = settings if settings is not None else GraphSettings()
        self.start_y_offset = 0
        self.start_x_offset = 0
        self.add_xlabel = False
        self.no_legend = False
        self.total_height = 0
        self.total_width = 0
        self.legend_lines: list[str] = []
        self.num_legend_lines = 0
        self.direction = Direction.DOWN
        self.timeline = 0
        self.final_width = 0
        self.final_height = 0
        self.spindle_steps = 0.0
        self._file: BinaryIO | None = None

    def __enter__(self) -> Plot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._file is not None:
            self.close_file()

    # -- geometry -------------------------------------------------------

    def _axis_y(self) -> int:
        s = self.settings
        return s.plot_label_height + s.graph_height + s.graph_inner_y_margin

    def _axis_y_off_double(self, y: float) -> float:
        s = self.settings
        return s.plot_label_height + s.graph_height - y

    def _axis_y_off(self, y: float) -> int:
        return int(self._axis_y_off_double(int(y)))

    def _axis_x(self) -> int:
        return self.settings.graph_left_pad

    def _axis_x_off_double(self, x: float) -> float:
        s = self.settings
        return s.graph_left_pad + s.graph_inner_x_margin + x

    def _axis_x_off(self, x: float) -> int:
        return int(self._axis_x_off_double(int(x)))

    # -- file handling --------------------------------------------------

    def _write(self, text: str) -> None:
        if self._file is None:
            raise RuntimeError("no plot output is open")
        self._file.write(text.encode("utf-8"))

    def set_output(self, filename: str | os.PathLike[str]) -> None:
        """Start a new SVG file, finishing any file already open."""
        if self._file is not None:
            self.close_file()
        fd = os.open(filename, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
        self._file = os.fdopen(fd, "wb")
        self.start_y_offset = self.start_x_offset = 0
        self._write_header()

    def _write_header(self) -> None:
        self.final_width = 0
        self.final_height = 0
        self._write(_HEADER)
        # room to stuff in the width and height once they are known
        self._write(_SPACES * 3)
        self._write("<defs>\n")
        self._write(_FILTER_SHADOW)
        self._write(_FILTER_TEXTSHADOW)
        self._write(_FILTER_LABELSHADOW)
        self._write("</defs>\n")

    def close_file(self) -> None:
        """Rewrite the page header with the final size and close the file."""
        if self._file is None:
            raise RuntimeError("no plot output is open")
        self._file.seek(0)
        self.final_width = ((self.final_width + 1) // 2) * 2
        self.final_height = ((self.final_height + 1) // 2) * 2
        self._write(
            f'<svg  xmlns="{SVG_NAMESPACE}" '
            f'width="{self.final_width}" height="{self.final_height}">\n'
        )
        self._write(
            f'<rect x="0" y="0" width="{self.final_width}" '
            f'height="{self.final_height}" fill="white"/>\n'
        )
        self._file.close()
        self._file = None

    # -- frame, titles and ticks ----------------------------------------

    def _grow_final(self) -> None:
        if self.total_height + self.start_y_offset > self.final_height:
            self.final_height = self.total_height + self.start_y_offset
        if self.start_x_offset + self.total_width + 40 > self.final_width:
            self.final_width = self.start_x_offset + self.total_width + 40

    def setup_axis(self) -> None:
        """Draw the backing box of a plot and open its coordinate system."""
        s = self.settings
        bump_height = s.tick_font_size * 3 + s.axis_label_font_size
        local_legend_width = 0 if self.no_legend else s.legend_width

        self.total_width = (
            self._axis_x_off(s.graph_width) + s.graph_left_pad // 2 + local_legend_width
        )
        self.total_height = self._axis_y() + s.tick_label_pad + s.tick_font_size
        if self.add_xlabel:
            self.total_height += bump_height

        self._write(
            f'<rect x="{self.start_x_offset}" y="{self.start_y_offset}" '
            f'width="{self.total_width + 40}" height="{self.total_height + 20}" '
            'fill="white" stroke="none"/>'
        )
        self._write(
            f'<rect x="{self.start_x_offset + 15}" y="{self.start_y_offset}" '
            f'width="{self.total_width}" filter="url(#shadow)" '
            f'height="{self.total_height}" fill="white" stroke="none"/>'
        )
        self.total_height += 20
        self.total_width += 20
        self._grow_final()

        self._write(f'<svg x="{self.start_x_offset}" y="{self.start_y_offset}">\n')
        self._write(
            f'<path d="M{self._axis_x()} {self._axis_y()} '
            f"h {s.graph_width + s.graph_inner_x_margin * 2} "
            f"V {self._axis_y_off(s.graph_height) - s.graph_inner_y_margin} "
            f'H {self._axis_x()} Z" stroke="black" stroke-width="2" fill="none"/>\n'
        )

    def setup_axis_spindle(self) -> None:
        """Draw the backing box for the spindle movie graph."""
        s = self.settings
        bump_height = s.tick_font_size * 3 + s.axis_label_font_size
        s.legend_x_off = -60

        self.total_width = self._axis_x_off(s.graph_width) + s.legend_width
        self.total_height = self._axis_y() + s.tick_label_pad + s.tick_font_size
        if self.add_xlabel:
            self.total_height += bump_height

        self._write(
            f'<rect x="{self.start_x_offset}" y="{self.start_y_offset}" '
            f'width="{self.total_width + 10}" height="{self.total_height + 20}" '
            'fill="white" stroke="none"/>'
        )
        self._write(
            f'<rect x="{self.start_x_offset + 15}" y="{self.start_y_offset}" '
            f'width="{self.total_width - 30}" filter="url(#shadow)" '
            f'height="{self.total_height}" fill="white" stroke="none"/>'
        )
        self.total_height += 20
        self._grow_final()
        self._write(f'<svg x="{self.start_x_offset}" y="{self.start_y_offset}">\n')

    def set_plot_title(self, title: str) -> None:
        """Draw the page title; call once, before the first axis."""
        s = self.settings
        self.total_height = s.plot_title_height
        self.total_width = (
            self._axis_x_off(s.graph_width) + s.graph_left_pad // 2 + s.legend_width
        )
        self._write(
            f'<rect x="0" y="{self.start_y_offset}" width="{self.total_width + 40}" '
            f'height="{s.plot_title_height + 20}" fill="white" stroke="none"/>'
        )
        text = (
            f'<text x="{self._axis_x_off(s.graph_width // 2)}" '
            f'y="{self.start_y_offset + s.plot_title_height // 2}" '
            f'font-family="{s.font_family}" font-size="{s.plot_title_font_size}" '
            'font-weight="bold" fill="black" style="text-anchor: middle">'
            f"{title}</text>\n"
        )
        self.start_y_offset += s.plot_title_height
        self._write(text)

    def _tick_text(self, x: int, y: int, anchor: str, value: str) -> str:
        s = self.settings
        return (
            f'<text x="{x}" y="{y}" font-family="{s.font_family}" '
            f'font-size="{s.tick_font_size}" fill="black" '
            f'style="text-anchor: {anchor}">{value}</text>\n'
        )

    def set_xticks(self, num_ticks: int, first: int, last: int) -> None:
        """Draw evenly spaced x ticks, labelled when the plot carries an x label."""
        s = self.settings
        tick_y = self._axis_y_off(s.graph_tick_len) + s.graph_inner_y_margin
        tick_x = self._axis_x()
        tick_only = not self.add_xlabel
        text_y = self._axis_y() + s.tick_label_pad

        step = find_step(first, last, num_ticks)
        # keep the last two ticks from crowding each other
        num_ticks = int((last - first - step) / step + 1)
        pixels_per_tick = int(s.graph_width * step / (last - first))

        for i in range(num_ticks):
            if i != 0:
                self._write(
                    f'<rect x="{tick_x}" y="{tick_y}" width="2" '
                    f'height="{s.graph_tick_len}" style="stroke:none;fill:black;"/>\n'
                )
                anchor = "middle"
            else:
                anchor = "start"
            if not tick_only:
                if step >= 1:
                    value = str(int(first + step * i))
                else:
                    value = f"{first + step * i:.2f}"
                self._write(self._tick_text(tick_x, text_y, anchor, value))
            tick_x += pixels_per_tick

        if not tick_only:
            value = str(last) if step >= 1 else f"{float(last):.2f}"
            self._write(
                self._tick_text(
                    self._axis_x_off(s.graph_width - 2), text_y, "middle", value
                )
            )

    def set_ylabel(self, label: str) -> None:
        """Draw the rotated y axis label."""
        s = self.settings
        x = s.graph_left_pad // 2 - s.axis_label_font_size
        y = self._axis_y_off(s.graph_height // 2)
        self._write(
            f'<text x="{x}" y="{y}" font-family="{s.font_family}" '
            f'transform="rotate(-90 {x} {y})" font-weight="bold" '
            f'font-size="{s.axis_label_font_size}" fill="black" '
            f'style="text-anchor: middle">{label}</text>\n'
        )

    def set_xlabel(self, label: str) -> None:
        """Draw the x axis label under the tick labels."""
        s = self.settings
        x = self._axis_x_off(s.graph_width // 2)
        y = self._axis_y() + s.tick_font_size * 3 + s.axis_label_font_size // 2
        self._write(
            f'<text x="{x}" y="{y}" font-family="{s.font_family}" '
            f'font-weight="bold" font-size="{s.axis_label_font_size}" '
            f'fill="black" style="text-anchor: middle">{label}</text>\n'
        )

    def set_yticks(self, num_ticks: int, first: int, last: int, units: str) -> None:
        """Draw evenly spaced, labelled y ticks with dashed grid lines."""
        s = self.settings
        pixels_per_tick = s.graph_height // num_ticks
        step = int((last - first) / num_ticks)
        tick_y = 0
        text_x = self._axis_x() - 6
        tick_x = self._axis_x()

        for i in range(num_ticks):
            if i != 0:
                y = self._axis_y_off(tick_y)
                self._write(
                    f'<line x1="{tick_x}" y1="{y}" x2="{self._axis_x_off(s.graph_width)}" '
                    f'y2="{y}" style="stroke:lightgray;stroke-width:2;'
                    'stroke-dasharray:9,12;"/>\n'
                )
            self._write(
                self._tick_text(
                    text_x,
                    self._axis_y_off(tick_y - s.tick_font_size // 2),
                    "end",
                    f"{first + step * i}{units}",
                )
            )
            tick_y += pixels_per_tick
        self._write(
            self._tick_text(
                text_x, self._axis_y_off(s.graph_height), "end", f"{last}{units}"
            )
        )

    def set_plot_label(self, label: str) -> None:
        """Draw the label above one plot."""
        s = self.settings
        self._write(
            f'<text x="{self._axis_x() + s.graph_width // 2}" '
            f'y="{s.plot_label_height // 2}" font-family="{s.font_family}" '
            f'font-size="{s.plot_label_font_size}" fill="black" '
            f'style="text-anchor: middle">{label}</text>\n'
        )

    def close_plot(self) -> None:
        """Close the current SVG element and move to where the next plot goes."""
        self._write("</svg>\n")
        if self.direction == Direction.DOWN:
            self.start_y_offset += self.total_height
        elif self.direction == Direction.ACROSS:
            self.start_x_offset += self.total_width

    # -- data -----------------------------------------------------------

    def line_graph(
        self, gld: GraphLineData, color: str, thresh1: float, thresh2: float
    ) -> None:
        """Draw a line graph, or with thresholds only the points above them."""
        s = self.settings
        yscale = gld.max / s.graph_height
        xscale = (gld.max_seconds - gld.min_seconds - 1) / s.graph_width
        thresholds = bool(thresh1) or bool(thresh2)

        if thresh1 and thresh2:
            rolling = 0
        elif s.rolling_avg_secs:
            rolling = s.rolling_avg_secs
        else:
            rolling = (gld.stop_seconds - gld.min_seconds) // 25

        command = "M"
        printed_header = False
        printed_lines = False
        for i in range(gld.min_seconds, gld.stop_seconds):
            avg = gld.rolling_avg(i, rolling)
            val = 0.0 if yscale == 0 else avg / yscale
            val = min(max(val, 0.0), float(s.graph_height))
            x = (i - gld.min_seconds) / xscale if xscale else 0.0

            if not thresholds:
                if not printed_header:
                    self._write('<path d="')
                    printed_header = True
                self._write(
                    f"{command} {self._axis_x_off(x)} {self._axis_y_off(val)} "
                )
                command = "L"
                printed_lines = True
            elif avg > thresh1 or avg > thresh2:
                if not printed_header:
                    self._write('<path d="')
                    printed_header = True
                length = 10
                if gld.stop_seconds >= 2 and i >= gld.stop_seconds - 2:
                    length = -10
                self._write(
                    f"M {self._axis_x_off(x)} {self._axis_y_off(val)} h {length} "
                )
                printed_lines = True

        if printed_lines:
            self._write(f'" fill="none" stroke="{color}" stroke-width="2"/>\n')
        if self.timeline:
            self.write_time_line(self.timeline)

    def write_time_line(self, col: int) -> None:
        """Draw the vertical line that marks the current movie frame."""
        s = self.settings
        x = self._axis_x_off(col)
        self._write(
            f'<line x1="{x}" y1="{self._axis_y_off(0)}" x2="{x}" '
            f'y2="{self._axis_y_off(s.graph_height)}" '
            'style="stroke:black;stroke-width:2;"/>\n'
        )

    def _add_io(
        self, row: float, col: float, width: float, height: float, color: str
    ) -> None:
        self._write(
            f'<rect x="{self._axis_x_off_double(col):.2f}" '
            f'y="{self._axis_y_off_double(row):.2f}" '
            f'width="{width:.1f}" height="{height:.1f}" rx="{0.0:.2f}" '
            f'style="stroke:none;fill:{color};stroke-width:0"/>\n'
        )

    def io_graph(self, gdd: GraphDotData) -> None:
        """Draw a small square for every marked cell of ``gdd``."""
        scale = self.settings.io_graph_scale
        for row in range(gdd.rows - 1, -1, -1):
            base = row * gdd.cols
            start, end = base // 8, (base + gdd.cols - 1) // 8 + 1
            if not any(gdd.data[start:end]):
                continue
            for col in range(gdd.cols):
                if gdd.is_set(row, col):
                    self._add_io(row // scale, col, 1.5, 1.5, gdd.color)

    def io_graph_movie(
        self, gdd: GraphDotData, pph: PidPlotHistory, col: int
    ) -> None:
        """Record in ``pph`` the movie cells lit by column ``col`` of ``gdd``."""
        s = self.settings
        span = gdd.max_offset - gdd.min_offset + 1
        blocks_per_row = span // gdd.rows
        movie_blocks_per_cell = span // (s.graph_width * s.graph_height)
        pph.history_max = _ieee_div(span, movie_blocks_per_cell)

        for row in range(gdd.rows - 1, -1, -1):
            if gdd.is_set(row, col):
                offset = float(row * blocks_per_row)
                pph.add(_ieee_div(offset, movie_blocks_per_cell))

    def io_graph_movie_array(self, pph: PidPlotHistory) -> None:
        """Draw the recorded movie cells as squares on a rectangle."""
        width = self.settings.graph_width
        for cell_index in pph.history:
            movie_row = math.floor(cell_index / width)
            movie_col = cell_index - movie_row * width
            self._add_io(movie_row, movie_col, 4, 4, pph.color)

    def rewind_spindle_steps(self, num: int) -> None:
        """Turn the spindle back by ``num`` frames."""
        self.spindle_steps -= num * 0.01

    def io_graph_movie_array_spindle(self, pph: PidPlotHistory) -> None:
        """Draw the recorded movie cells as arcs on a spinning platter."""
        s = self.settings
        width_extra = float(s.graph_width + s.graph_circle_extra)
        height_extra = float(s.graph_height + s.graph_circle_extra)
        width_extra = height_extra = min(width_extra, height_extra)

        center_x = self._axis_x_off_double(width_extra / 2)
        center_y = self._axis_y_off_double(height_extra / 2)

        self._write(
            f'<g transform="rotate({self.spindle_steps * 1.2:.4f}, '
            f'{center_x:.2f}, {center_y:.2f})"> '
            f'<circle cx="{center_x:.2f}" cy="{center_y:.2f}" '
            'stroke="black" stroke-width="6" '
            f'r="{width_extra / 2:.2f}" fill="none"/>\n'
        )
        self._write(
            f'<circle cx="{self._axis_x_off_double(width_extra):.2f}" '
            f'cy="{center_y:.2f}" stroke="none" fill="red" r="{4.5:.2f}"/>\n</g>\n'
        )
        self.spindle_steps += 0.01

        radius = math.floor(width_extra / 2)
        num_circles = int(radius / 4 - 3)
        if num_circles <= 0:
            return
        cells_per_circle = pph.history_max / num_circles
        if not cells_per_circle or math.isinf(cells_per_circle):
            return
        degrees_per_cell = 360 / cells_per_circle

        for cell_index in pph.history:
            if not math.isfinite(cell_index):
                continue
            circle_num = math.floor(cell_index / cells_per_circle)
            rot = cell_index - circle_num * cells_per_circle
            radius = (num_circles - circle_num) * 4
            rot = rot * degrees_per_cell - self.spindle_steps
            self._write(
                f'<path transform="rotate({-rot:.4f}, {center_x:.2f}, {center_y:.2f})" '
                f'd="M {self._axis_x_off_double(width_extra / 2 + radius) + 8:.2f} '
                f'{center_y:.2f} a {radius:.2f} {radius:.2f} 0 0 1 0 5" '
                f'stroke="{pph.color}" stroke-width="4"/>\n'
            )

    # -- legend ---------------------------------------------------------

    def alloc_legend(self, num_lines: int) -> None:
        """Start collecting up to ``num_lines`` legend entries."""
        self.legend_lines = []
        self.num_legend_lines = num_lines

    def add_legend(self, text: str | None, extra: str | None, color: str) -> None:
        """Queue one legend entry with a colour swatch."""
        s = self.settings
        if text is None and not extra:
            return
        x = self._axis_x_off(s.graph_width) + s.legend_x_off
        y = (
            self._axis_y_off(s.graph_height)
            + s.legend_y_off
            + len(self.legend_lines) * s.legend_font_size
            + s.legend_font_size // 2
        )
        self.legend_lines.append(
            f'<path d="M {x} {y} h 8" stroke="{color}" stroke-width="8" '
            'filter="url(#labelshadow)"/> '
            f'<text x="{x + 13}" y="{y + 4}" font-family="{s.font_family}" '
            f'font-size="{s.legend_font_size}" fill="black" '
            f'style="text-anchor: left">{text or ""}{extra or ""}</text>\n'
        )

    def write_legend(self) -> None:
        """Draw the queued legend entries in a box and clear them."""
        if not self.legend_lines:
            return
        s = self.settings
        x = self._axis_x_off(s.graph_width) + s.legend_x_off
        y = self._axis_y_off(s.graph_height) + s.legend_y_off
        height = len(self.legend_lines) * s.legend_font_size + s.legend_font_size // 2 + 12
        self._write(
            f'<rect x="{x - 15}" y="{y - 12}" width="{s.legend_width}" '
            f'height="{height}" fill="white" filter="url(#shadow)"/>\n'
        )
        for entry in self.legend_lines:
            self._write(entry)
        self.free_legend()

    def free_legend(self) -> None:
        """Drop queued legend entries without drawing them."""
        self.legend_lines = []