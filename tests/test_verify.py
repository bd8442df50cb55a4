from iowatcher.verify import VerifyResult, main, verify_lines


def _line(cpu, seq, time, minor=0):
    return f"  8,{minor:<3d} {cpu:5d} {seq:8d} {time:14.9f}  1234  Q   W 100 + 8 [dd]\n"


def test_ordered_lines_are_clean():
    lines = [_line(0, 1, 0.1), _line(0, 2, 0.2), _line(1, 1, 0.3)]
    result = verify_lines(lines, 4)
    assert result.total_entries == 3
    assert result.unordered == 0
    assert result.aliases == 0
    assert result.reports == []
    assert result.error is None


def test_unordered_time_reported():
    first = _line(0, 1, 0.5)
    second = _line(0, 2, 0.2)
    result = verify_lines([first, second], 4)
    assert result.unordered == 1
    assert result.reports == ["last: " + first.rstrip("\n"), "this: " + second.rstrip("\n")]
    assert result.total_entries == 2


def test_alias_on_same_cpu_sequence():
    result = verify_lines([_line(0, 7, 0.1), _line(0, 7, 0.2)], 4)
    assert result.aliases == 1
    assert result.reports == ["alias on sequence 7"]


def test_same_sequence_on_other_cpu_is_not_alias():
    result = verify_lines([_line(0, 7, 0.1), _line(1, 7, 0.2)], 4)
    assert result.aliases == 0
    assert result.total_entries == 2


def test_cpu_too_large_stops():
    result = verify_lines([_line(0, 1, 0.1), _line(9, 2, 0.2), _line(0, 3, 0.3)], 4)
    assert result.error == "cpu9 too large"
    assert result.total_entries == 1


def test_unparsable_line_stops_scan():
    lines = [_line(0, 1, 0.1), "CPU0 (8,0):\n", _line(0, 2, 0.2)]
    result = verify_lines(lines, 4)
    assert result.total_entries == 1


def test_summary_format():
    result = VerifyResult(total_entries=3, unordered=1, aliases=2)
    assert result.summary == "Events 3: 1 unordered, 2 aliases"


def test_main_without_arguments_fails(capsys):
    assert main([]) == 1
    assert "file" in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.txt")]) == 1
    assert "fopen" in capsys.readouterr().err


def test_main_clean_file(tmp_path, capsys):
    path = tmp_path / "trace.txt"
    path.write_text(_line(0, 1, 0.1) + _line(0, 2, 0.2))
    assert main([str(path)]) == 0
    assert "Events 2: 0 unordered, 0 aliases" in capsys.readouterr().out


def test_main_unordered_file(tmp_path, capsys):
    path = tmp_path / "trace.txt"
    path.write_text(_line(0, 1, 0.9) + _line(0, 2, 0.2))
    assert main([str(path)]) == 1
    out = capsys.readouterr().out
    assert "Events 2: 1 unordered, 0 aliases" in out
    assert out.startswith("last: ")