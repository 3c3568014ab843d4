from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from cjklint import cli


def _write(path: Path, text: str) -> Path:
    path.write_bytes(text.encode("utf-8"))
    return path


def test_prints_linted_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _write(tmp_path / "a.md", "汉字和English之间\n")
    assert cli.main([str(src)]) == cli.EXIT_OK
    assert capsys.readouterr().out == "汉字和 English 之间\n"
    assert src.read_text(encoding="utf-8") == "汉字和English之间\n"


def test_reads_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO("中文: 说明".encode("utf-8"))))
    assert cli.main([]) == cli.EXIT_OK
    assert capsys.readouterr().out == "中文：说明"


def test_write_rewrites_only_changed_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    dirty = _write(tmp_path / "dirty.md", "汉字和English之间\n")
    clean = _write(tmp_path / "clean.md", "已经好了。\n")
    mtime = clean.stat().st_mtime_ns

    assert cli.main(["--write", str(dirty), str(clean)]) == cli.EXIT_OK
    assert dirty.read_text(encoding="utf-8") == "汉字和 English 之间\n"
    assert clean.stat().st_mtime_ns == mtime
    assert capsys.readouterr().out == ""


def test_check_exits_one_when_changes_needed(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    dirty = _write(tmp_path / "dirty.md", "汉字和English之间\n")
    clean = _write(tmp_path / "clean.md", "已经好了。\n")

    assert cli.main(["--check", str(clean)]) == cli.EXIT_OK
    assert cli.main(["--check", str(clean), str(dirty)]) == cli.EXIT_CHANGED
    out = capsys.readouterr().out
    assert f"would reformat {dirty}" in out
    assert str(clean) not in out
    assert dirty.read_text(encoding="utf-8") == "汉字和English之间\n"


def test_disable_and_no_markdown(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _write(tmp_path / "a.md", "中文`code`中文")
    assert cli.main(["--no-markdown", str(src)]) == cli.EXIT_OK
    assert capsys.readouterr().out == "中文`code`中文"

    src2 = _write(tmp_path / "b.md", "汉字和English之间")
    assert cli.main(["--disable", "space-full-width-content", str(src2)]) == cli.EXIT_OK
    assert capsys.readouterr().out == "汉字和English之间"


def test_unknown_rule_is_a_usage_error():
    with pytest.raises(SystemExit) as exc:
        cli.main(["--disable", "no-such-rule"])
    assert exc.value.code == 2


def test_missing_file_reports_and_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    ok = _write(tmp_path / "ok.md", "好")
    assert cli.main([str(tmp_path / "missing.md"), str(ok)]) == cli.EXIT_IO_ERROR
    captured = capsys.readouterr()
    assert "cannot read" in captured.err
    assert captured.out == "好"


def test_stats_go_to_stderr(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _write(tmp_path / "a.md", "汉字和English之间")
    assert cli.main(["--stats", "--check", str(src)]) == cli.EXIT_CHANGED
    err = capsys.readouterr().err
    assert "space-full-width-content=2" in err


def test_gb18030_input_is_decoded(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = tmp_path / "gbk.md"
    src.write_bytes("汉字和English".encode("gb18030"))
    assert cli.main([str(src)]) == cli.EXIT_OK
    assert capsys.readouterr().out == "汉字和 English"
