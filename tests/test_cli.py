"""
Tests for the command-line interface.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from dbd_parser.cli import main

FIXTURES = Path(__file__).parent / "fixtures"
HOSPITAL = str(FIXTURES / "hospital.dbd")


class TestCli:
    def test_json_to_stdout(self, capsys):
        assert main([HOSPITAL]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert len(payload) == 2
        assert payload[0]["attributes"][0] == {"key": "NAME", "value": "HOSPITAL"}
        assert len(payload[0]["fields"]) == 2

    def test_text_format(self, capsys):
        assert main([HOSPITAL, "--format", "text"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Parsed 2 segments"
        assert lines[1] == "Got SEGM NAME=HOSPITAL PARENT=0 BYTES=60"
        assert any(l.strip().startswith("XDFLD  NAME=XWARD") for l in lines)

    def test_tokens_format(self, capsys):
        assert main([HOSPITAL, "-f", "tokens"]) == 0
        out = capsys.readouterr().out
        assert "SEGM" in out
        assert "LABEL" in out
        assert "HOSPDBD" in out

    def test_raw_lexer_flag(self, capsys):
        assert main([HOSPITAL, "--raw-lexer"]) == 0
        assert len(json.loads(capsys.readouterr().out)) == 2

    def test_output_file(self, tmp_path, capsys):
        out = tmp_path / "hospital.json"
        assert main([HOSPITAL, "-o", str(out)]) == 0
        assert json.loads(out.read_text(encoding="utf-8"))[1]["attributes"][0] == {
            "key": "NAME",
            "value": "WARD",
        }
        assert "Output written to" in capsys.readouterr().err

    def test_decode_error(self, tmp_path, capsys):
        bad = tmp_path / "bad.dbd"
        bad.write_text("         SEGM  NAME=A\n", encoding="utf-8")
        assert main([str(bad)]) == 1
        err = capsys.readouterr().err
        assert "error:" in err
        assert "record length is 21" in err

    def test_missing_source(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.dbd")]) == 1
        assert "error:" in capsys.readouterr().err

    def test_bad_format_is_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main([HOSPITAL, "--format", "xml"])
        assert exc_info.value.code == 2
