"""Tests for the command-line driver."""

from pathlib import Path

import pytest
from gmnscore.cli import main

GOLDEN_DIR = Path(__file__).parent / "golden"


class TestCli:
    def test_summary(self, capsys):
        main([str(GOLDEN_DIR / "two_staffs.gmn")])
        out = capsys.readouterr().out
        assert "2 staff(s), 2 voice(s), 34 event(s)" in out

    def test_list_events(self, capsys):
        main([str(GOLDEN_DIR / "solfege.gmn"), "--list-events"])
        out = capsys.readouterr().out
        assert "    sol1*1/4" in out.splitlines()

    def test_fold_ranges_flag(self, capsys):
        main([str(GOLDEN_DIR / "two_staffs.gmn"), "--fold-ranges", "--list-events"])
        out = capsys.readouterr().out
        assert "\\slur (range)" in out
        assert "slurBegin" not in out

    def test_failure_continues(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(GOLDEN_DIR / "broken.gmn"), str(GOLDEN_DIR / "solfege.gmn")])
        assert exc.value.code == 1
        captured = capsys.readouterr()
        assert "Unknown tag: \\wobble" in captured.err
        assert "solfege.gmn: 1 staff(s), 1 voice(s), 8 event(s)" in captured.out

    def test_directory(self, tmp_path, capsys):
        (tmp_path / "a.gmn").write_text("[ a b ]", encoding="utf-8")
        (tmp_path / "b.gmn").write_text("{ [ c ], [ \\staff<2> d ] }", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("not a score", encoding="utf-8")
        main([str(tmp_path)])
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("a.gmn: 1 staff(s), 1 voice(s), 2 event(s)")
        assert lines[1].endswith("b.gmn: 2 staff(s), 2 voice(s), 3 event(s)")

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main([str(tmp_path / "missing.gmn")])
        assert "missing.gmn" in capsys.readouterr().err

    def test_strict_params(self, tmp_path, capsys):
        path = tmp_path / "staff.gmn"
        path.write_text('[ \\staff<"one"> a ]', encoding="utf-8")
        main([str(path)])
        with pytest.raises(SystemExit):
            main([str(path), "--strict-params"])

    def test_settings_file(self, tmp_path, capsys):
        settings = tmp_path / "settings.json"
        settings.write_text('{"FoldRanges": true}', encoding="utf-8")
        score = tmp_path / "slur.gmn"
        score.write_text("[ \\slurBegin a b \\slurEnd ]", encoding="utf-8")
        main([str(score), "--settings", str(settings)])
        assert "1 voice(s), 3 event(s)" in capsys.readouterr().out

    def test_bad_schema(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main([str(GOLDEN_DIR / "solfege.gmn"), "--schema", str(tmp_path / "none.json")])
        assert "Cannot load tag schema" in capsys.readouterr().err
