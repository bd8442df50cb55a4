import pytest

from iowatcher.fio import FioEvent, FioTrace, add_fio_sample, parse_fio_line
from iowatcher.plotdata import GraphLineData


def test_parse_four_fields():
    event = parse_fio_line("1500, 200, 0, 4096")
    assert event == FioEvent(1500, 200, 0, 4096)


def test_parse_three_fields_defaults_block_size():
    event = parse_fio_line("10,20,1\n")
    assert (event.time_ms, event.rate, event.direction, event.block_size) == (10, 20, 1, 0)


def test_parse_skips_empty_fields():
    event = parse_fio_line("1,,2,3")
    assert (event.time_ms, event.rate, event.direction) == (1, 2, 3)


def test_parse_non_numeric_reads_as_zero():
    event = parse_fio_line("abc,5,1")
    assert event.time_ms == 0
    assert event.rate == 5


def test_parse_too_few_fields():
    with pytest.raises(ValueError):
        parse_fio_line("100,200")


def test_seconds_floor_and_bandwidth():
    assert parse_fio_line("999,1,0").seconds == 0
    assert parse_fio_line("1000,1,0").seconds == 1
    event = parse_fio_line("10,7,0")
    assert event.bandwidth == event.rate * 1024


def test_events_need_newline_terminator():
    trace = FioTrace("1000,10,0,4\n2000,20,1,4\n3000,30,0,4")
    events = list(trace.events())
    assert [e.time_ms for e in events] == [1000, 2000]


def test_events_stop_at_bad_line():
    trace = FioTrace("1000,10,0\nbad\n3000,30,0\n")
    assert [e.rate for e in trace.events()] == [10]


def test_trace_seconds_from_last_event():
    trace = FioTrace("1000,10,0\n2000,20,1\n")
    assert trace.seconds == 2


def test_empty_trace_has_no_seconds():
    trace = FioTrace("")
    assert trace.seconds == 0
    assert list(trace.events()) == []


def test_open_reads_file(tmp_path):
    path = tmp_path / "fio_bw.log"
    path.write_text("1000,10,0,4\n2000,20,0,4\n")
    trace = FioTrace.open(path)
    assert [e.rate for e in trace.events()] == [10, 20]


def test_open_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        FioTrace.open(tmp_path / "missing.log")


def test_add_sample_averages_and_sets_max():
    gld = GraphLineData(0, 10, 10)
    add_fio_sample(gld, 2, 100)
    add_fio_sample(gld, 2, 300)
    assert gld.data[2].count == 2
    assert gld.data[2].sum == 400
    assert gld.max == 200


def test_add_sample_beyond_max_seconds_ignored():
    gld = GraphLineData(0, 3, 5)
    add_fio_sample(gld, 4, 100)
    assert gld.data[4].count == 0
    assert gld.max == 0


def test_max_never_decreases():
    gld = GraphLineData(0, 5, 5)
    add_fio_sample(gld, 1, 500)
    add_fio_sample(gld, 2, 10)
    assert gld.max == 500