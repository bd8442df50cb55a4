import math

import pytest

from iowatcher.plotdata import (
    COLORS,
    ColorPicker,
    GraphDotData,
    GraphLineData,
    LinePoint,
    PidPlotHistory,
    find_step,
    scale_line_graph_bytes,
    scale_line_graph_time,
)


def test_pick_cycles_through_all_colors():
    picker = ColorPicker()
    picked = [picker.pick() for _ in range(len(COLORS) + 1)]
    assert picked[:len(COLORS)] == list(COLORS)
    assert picked[-1] == "blue"


def test_pick_fio_skips_every_other_color():
    picker = ColorPicker()
    picked = [picker.pick_fio() for _ in range(len(COLORS) // 2 + 1)]
    assert picked[:-1] == list(COLORS[::2])
    assert picked[-1] == COLORS[0]


def test_pick_cpu_reset():
    picker = ColorPicker()
    first = picker.pick_cpu()
    second = picker.pick_cpu()
    picker.reset_cpu()
    assert picker.pick_cpu() == first
    assert picker.pick_cpu() == second


def test_color_streams_are_independent():
    picker = ColorPicker()
    picker.pick()
    picker.pick()
    assert picker.pick_cpu() == COLORS[0]
    assert picker.pick_fio() == COLORS[0]


def test_line_data_size():
    gld = GraphLineData(0, 10, 7)
    assert len(gld.data) == 8
    assert gld.max == 0
    assert all(p.count == 0 and p.sum == 0 for p in gld.data)


def test_rolling_avg_zero_distance_is_point_mean():
    gld = GraphLineData(0, 5, 5)
    gld.data[3] = LinePoint(count=4, sum=80)
    assert gld.rolling_avg(3, 0) == pytest.approx(80 / 4)


def test_rolling_avg_window_larger_than_index_uses_all():
    gld = GraphLineData(0, 5, 5)
    values = [10, 20, 30]
    for i, v in enumerate(values):
        gld.data[i] = LinePoint(count=1, sum=v)
    assert gld.rolling_avg(2, 100) == pytest.approx(sum(values) / len(values))


def test_rolling_avg_empty_points_count_as_zero():
    gld = GraphLineData(0, 5, 5)
    gld.data[1] = LinePoint(count=2, sum=50)
    assert gld.rolling_avg(1, 1) == pytest.approx((50 / 2) / 2)


def test_rolling_avg_negative_distance_means_one():
    gld = GraphLineData(0, 5, 5)
    gld.data[2] = LinePoint(count=1, sum=6)
    gld.data[3] = LinePoint(count=1, sum=6)
    assert gld.rolling_avg(3, -5) == gld.rolling_avg(3, 1)


def _dots():
    return GraphDotData(0, 10, 0, 999, 10, "blue", "proc", rows=10, cols=10)


def _set_cells(gdd):
    return {(r, c) for r in range(gdd.rows + 1) for c in range(gdd.cols) if gdd.is_set(r, c)}


def test_set_bit_marks_one_cell():
    gdd = _dots()
    gdd.set_bit(250, 100, 3.5e9)
    assert gdd.total_ios == 1
    assert _set_cells(gdd) == {(2, 3)}


def test_set_bit_spans_rows():
    gdd = _dots()
    gdd.set_bit(250, 300, 1.2e9)
    assert _set_cells(gdd) == {(2, 1), (3, 1), (4, 1)}


def test_set_bit_stops_at_max_offset():
    gdd = _dots()
    gdd.set_bit(950, 10000, 0)
    assert _set_cells(gdd) == {(9, 0)}


def test_set_bit_ignores_out_of_range():
    gdd = _dots()
    gdd.set_bit(5000, 100, 1e9)
    gdd.set_bit(100, 100, 20e9)
    assert gdd.total_ios == 0
    assert _set_cells(gdd) == set()


def test_is_set_out_of_bitmap():
    gdd = _dots()
    assert gdd.is_set(-5, 0) is False
    assert gdd.is_set(1000, 0) is False


def test_pid_history_add():
    pph = PidPlotHistory(color="red")
    pph.add(1.5)
    pph.add(2.5)
    assert pph.history == [1.5, 2.5]
    assert pph.num_used == 2


def test_scale_bytes_small_unchanged():
    assert scale_line_graph_bytes(1000, 1024) == (1000, "")


def test_scale_bytes_mega():
    value = 100 * 1024 * 1024
    scaled, units = scale_line_graph_bytes(value, 1024)
    assert units == "M"
    assert scaled == value // (1024 * 1024)


def test_scale_bytes_decimal_factor():
    scaled, units = scale_line_graph_bytes(100 * 1000, 1000)
    assert units == "K"
    assert scaled == 100


def test_scale_time_small_is_nanoseconds():
    assert scale_line_graph_time(10000) == (10000, "n")


def test_scale_time_milliseconds():
    assert scale_line_graph_time(5_000_000_000) == (5000, "m")


def test_scale_time_caps_at_seconds():
    value = 10**15
    scaled, units = scale_line_graph_time(value)
    assert units == "s"
    assert scaled == value // 10**9


def test_find_step_example():
    assert find_step(0, 100, 9) == pytest.approx(10)


@pytest.mark.parametrize(
    "first,last,ticks",
    [(0, 100, 9), (0, 1, 4), (3, 47, 5), (0, 0.5, 3), (10, 10000, 9)],
)
def test_find_step_is_one_two_five(first, last, ticks):
    step = find_step(first, last, ticks)
    mantissa = step / 10 ** math.floor(math.log10(step) + 1e-9)
    assert any(mantissa == pytest.approx(m) for m in (1, 2, 5))
    assert (last - first) / step >= 1


def test_find_step_rejects_empty_range():
    with pytest.raises(ValueError):
        find_step(5, 5, 4)
    with pytest.raises(ValueError):
        find_step(0, 10, 0)