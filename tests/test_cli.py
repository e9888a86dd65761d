"""Tests for the propsort command line."""

import io

import pytest

from projects.propsort.main import load_options, main


UNSORTED = 'interface A {\n  b: string;\n  a: string;\n}\n'
SORTED = 'interface A {\n  a: string;\n  b: string;\n}\n'


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding='utf-8')
    return path


# ---------------------------------------------------------------------------
# files
# ---------------------------------------------------------------------------

def test_file_sorted_to_stdout(tmp_path, capsys):
    path = write(tmp_path, 'a.ts', UNSORTED)
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert out == SORTED
    assert path.read_text(encoding='utf-8') == UNSORTED

def test_in_place_rewrites_file(tmp_path, capsys):
    path = write(tmp_path, 'a.ts', UNSORTED)
    assert main(['--in-place', str(path)]) == 0
    assert path.read_text(encoding='utf-8') == SORTED
    assert f"{path} sorted" in capsys.readouterr().out

def test_in_place_keeps_crlf(tmp_path):
    path = tmp_path / 'a.ts'
    path.write_bytes(UNSORTED.replace('\n', '\r\n').encode('utf-8'))
    assert main(['-i', str(path)]) == 0
    assert path.read_bytes() == SORTED.replace('\n', '\r\n').encode('utf-8')

def test_check_reports_unsorted_file(tmp_path, capsys):
    path = write(tmp_path, 'a.ts', UNSORTED)
    assert main(['--check', str(path)]) == 1
    assert f"{path} would be sorted" in capsys.readouterr().out
    assert path.read_text(encoding='utf-8') == UNSORTED

def test_check_passes_sorted_file(tmp_path, capsys):
    path = write(tmp_path, 'a.ts', SORTED)
    assert main(['--check', str(path)]) == 0
    assert '[WARNING]' in capsys.readouterr().out

def test_order_and_option_flags(tmp_path, capsys):
    path = write(tmp_path, 'a.json', '{"a": 1, "b": 2}')
    assert main(['-o', 'desc', str(path)]) == 0
    assert capsys.readouterr().out == '{"b": 2, "a": 1}'
    assert main(['-O', 'sortOrder="desc"', str(path)]) == 0
    assert capsys.readouterr().out == '{"b": 2, "a": 1}'

def test_config_file(tmp_path, capsys):
    config = write(tmp_path, 'propsort.yaml', 'sortOrder: desc\n')
    path = write(tmp_path, 'a.json', '{"a": 1, "b": 2}')
    assert main(['--config', str(config), str(path)]) == 0
    assert capsys.readouterr().out == '{"b": 2, "a": 1}'

def test_explicit_file_type(tmp_path, capsys):
    path = write(tmp_path, 'settings.txt', '{"b": 1, "a": 2}')
    assert main(['-t', 'json', str(path)]) == 0
    assert capsys.readouterr().out == '{"a": 2, "b": 1}'

def test_unknown_extension_is_error(tmp_path, capsys):
    path = write(tmp_path, 'notes.txt', 'b\na\n')
    assert main(['--check', str(path)]) == 1
    assert '[ERROR]' in capsys.readouterr().out

def test_missing_file_is_error(tmp_path, capsys):
    assert main([str(tmp_path / 'missing.ts')]) == 1
    assert '[ERROR]' in capsys.readouterr().err


# ---------------------------------------------------------------------------
# stdin and argument errors
# ---------------------------------------------------------------------------

def test_stdin_to_stdout(monkeypatch, capsys):
    monkeypatch.setattr('sys.stdin', io.StringIO(UNSORTED))
    assert main([]) == 0
    assert capsys.readouterr().out == SORTED

def test_stdin_check(monkeypatch, capsys):
    monkeypatch.setattr('sys.stdin', io.StringIO('{"b": 1, "a": 2}'))
    assert main(['--check', '-t', 'json']) == 1
    assert capsys.readouterr().out == ''

def test_stdin_failure_reported_on_stderr(monkeypatch, capsys):
    monkeypatch.setattr('sys.stdin', io.StringIO('const x = 1;\n'))
    assert main([]) == 1
    assert '[ERROR] <stdin>: No sortable entities found' in capsys.readouterr().err

def test_malformed_option_exits_with_usage_error():
    with pytest.raises(SystemExit) as exc:
        main(['-O', 'sortOrder'])
    assert exc.value.code == 2

def test_unknown_option_key_exits_with_usage_error():
    with pytest.raises(SystemExit) as exc:
        main(['-O', 'nope=1'])
    assert exc.value.code == 2

def test_load_options_layers():
    options = load_options(None, [('blankLinesBetweenGroups', True)], 'desc')
    assert options.sort_order == 'desc'
    assert options.blank_lines_between_groups
