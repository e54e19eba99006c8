import io

import pytest

from bf2piet.compiler import compile_file
from bf2piet.errors import ConfigError
from main import cli


def test_compile_then_run(tmp_path, capsys):
    src = tmp_path / "three.bf"
    src.write_text("+++. three", encoding="utf-8")
    assert cli(["compile", str(src), "-c", "2"]) == 0
    out_png = tmp_path / "three.png"
    assert out_png.exists()
    assert "Wrote Piet image to" in capsys.readouterr().out

    assert cli(["run", str(out_png), "-c", "2"]) == 0
    assert "Output (bytes): [3]" in capsys.readouterr().out


def test_run_feeds_input(tmp_path, capsys):
    src = tmp_path / "echo.bf"
    src.write_text(",.,.", encoding="utf-8")
    out_png = tmp_path / "echo.png"
    assert cli(["compile", str(src), str(out_png)]) == 0
    capsys.readouterr()
    assert cli(["run", str(out_png), "--input", "ok"]) == 0
    assert "Output (chars): ok" in capsys.readouterr().out


def test_trace_prints_steps(tmp_path, capsys):
    src = tmp_path / "one.bf"
    src.write_text("+.", encoding="utf-8")
    out_png = tmp_path / "one.png"
    cli(["compile", str(src), str(out_png), "--codel-size", "1"])
    capsys.readouterr()
    assert cli(["run", str(out_png), "-c", "1", "--trace"]) == 0
    assert "op=out_char" in capsys.readouterr().out


def test_malformed_program_writes_nothing(tmp_path, capsys):
    src = tmp_path / "bad.bf"
    src.write_text("+[", encoding="utf-8")
    out_png = tmp_path / "bad.png"
    assert cli(["compile", str(src), str(out_png)]) == 1
    assert not out_png.exists()
    assert "Translation failed" in capsys.readouterr().err


def test_missing_source_is_an_io_error(tmp_path, capsys):
    assert cli(["compile", str(tmp_path / "nope.bf"), str(tmp_path / "nope.png")]) == 1
    assert "I/O error" in capsys.readouterr().err


@pytest.mark.parametrize("size", ["0", "-2", "x"])
def test_codel_size_must_be_positive(tmp_path, size):
    src = tmp_path / "a.bf"
    src.write_text("+", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli(["compile", str(src), "-c", size])
    assert exc.value.code == 2


def test_available_lists_instructions(capsys):
    assert cli(["available"]) == 0
    out = capsys.readouterr().out
    assert "loop-open" in out and "out_char" in out


def test_comment_bytes_outside_utf8_are_ignored(tmp_path, capsys):
    src = tmp_path / "cafe.bf"
    src.write_bytes(b"+++. caf\xe9 comment")
    out_png = tmp_path / "cafe.png"
    assert cli(["compile", str(src), str(out_png), "-c", "1"]) == 0
    capsys.readouterr()
    assert cli(["run", str(out_png), "-c", "1"]) == 0
    assert "Output (bytes): [3]" in capsys.readouterr().out


def test_compile_reads_source_from_stdin(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"++. \xff")))
    out_png = tmp_path / "stdin.png"
    assert cli(["compile", "-", str(out_png), "-c", "1"]) == 0
    capsys.readouterr()
    assert cli(["run", str(out_png), "-c", "1"]) == 0
    assert "Output (bytes): [2]" in capsys.readouterr().out


def test_codel_size_is_checked_before_any_file_is_touched(tmp_path):
    out_png = tmp_path / "never.png"
    with pytest.raises(ConfigError):
        compile_file(str(tmp_path / "missing.bf"), str(out_png), codel_size=0)
    assert not out_png.exists()
