"""
Tests for the preprocessing passes.

Each test class corresponds to one pass module.
"""
from __future__ import annotations

import pytest

from dbd_parser.errors import MalformedRecordLength, MissingContinuation
from dbd_parser.models import LineSpan
from dbd_parser.passes.line_continuation import LineContinuationCollapsePass
from dbd_parser.passes.record_length import RecordLengthPass, split_records


def card(text: str, seq: str = "00000000") -> str:
    return text.ljust(72) + seq


def continued(text: str, seq: str = "00000000") -> str:
    return text.ljust(71) + "*" + seq


# ─────────────────────────────────────────────────────────────────────────────
# RecordLengthPass
# ─────────────────────────────────────────────────────────────────────────────


class TestSplitRecords:
    def test_empty_text(self):
        assert split_records("") == []

    def test_trailing_newline_does_not_add_record(self):
        assert split_records("A\nB\n") == ["A", "B"]

    def test_no_trailing_newline(self):
        assert split_records("A\nB") == ["A", "B"]

    def test_blank_record_in_the_middle_kept(self):
        assert split_records("A\n\nB\n") == ["A", "", "B"]


class TestRecordLengthPass:
    def _run(self, lines):
        return RecordLengthPass().run(lines)

    def test_80_columns_accepted(self):
        lines = [card("         SEGM  NAME=A"), card("")]
        assert self._run(lines) == lines

    @pytest.mark.parametrize("width", [79, 81, 0, 72])
    def test_other_widths_rejected(self, width):
        with pytest.raises(MalformedRecordLength) as exc_info:
            self._run(["X" * width])
        assert exc_info.value.length == width
        assert exc_info.value.line == 0

    def test_reports_first_offending_line(self):
        lines = [card("OK"), card("OK"), card("BAD")[:-1], card("BAD") + " "]
        with pytest.raises(MalformedRecordLength) as exc_info:
            self._run(lines)
        assert exc_info.value.line == 2
        assert "record length is 79" in str(exc_info.value)


# ─────────────────────────────────────────────────────────────────────────────
# LineContinuationCollapsePass
# ─────────────────────────────────────────────────────────────────────────────


class TestLineContinuationCollapsePass:
    def _run(self, lines):
        return LineContinuationCollapsePass().run(lines)

    def test_single_line_trailing_blanks_trimmed(self):
        result = self._run([card("         SEGM  NAME=A")])
        assert len(result) == 1
        assert result[0].text == "         SEGM  NAME=A"
        assert result[0].spans == (LineSpan(offset=0, line=0, column=0),)

    def test_continuation_joined_from_column_14(self):
        result = self._run([
            continued("         SEGM  NAME=WARD,"),
            card("              BYTES=40"),
        ])
        assert len(result) == 1
        logical = result[0]
        assert logical.text == "         SEGM  NAME=WARD, BYTES=40"
        assert logical.first_line == 0
        assert logical.last_line == 1

    def test_columns_before_14_of_continuation_ignored(self):
        result = self._run([
            continued("         SEGM  NAME=WARD,"),
            card("JUNKJUNKJUNK  BYTES=40"),
        ])
        assert "JUNK" not in result[0].text
        assert result[0].text.endswith("BYTES=40")

    def test_chained_continuations(self):
        result = self._run([
            continued("         SEGM  NAME=WARD,"),
            continued("              PARENT=HOSPITAL,"),
            card("              BYTES=40"),
            card("         FIELD NAME=WARDNO"),
        ])
        assert [l.text for l in result] == [
            "         SEGM  NAME=WARD, PARENT=HOSPITAL, BYTES=40",
            "         FIELD NAME=WARDNO",
        ]
        assert [s.line for s in result[0].spans] == [0, 1, 2]

    def test_positions_map_back_to_physical_columns(self):
        result = self._run([
            continued("         SEGM  NAME=WARD,"),
            card("                 BYTES=40"),
        ])
        logical = result[0]
        offset = logical.text.index("BYTES")
        assert logical.position(offset) == (1, 17)
        assert logical.position(logical.text.index("SEGM")) == (0, 9)
        assert logical.position(logical.text.index("WARD")) == (0, 20)

    def test_missing_continuation(self):
        with pytest.raises(MissingContinuation) as exc_info:
            self._run([
                card("         SEGM  NAME=A"),
                continued("         FIELD NAME=B,"),
            ])
        assert exc_info.value.line == 1

    def test_marker_outside_column_71_not_a_continuation(self):
        line = "         SEGM  NAME=A,*".ljust(72) + "00000000"
        result = self._run([line, card("         FIELD NAME=B")])
        assert len(result) == 2

    def test_blank_records_give_empty_logical_lines(self):
        result = self._run([card(""), card("         SEGM  NAME=A")])
        assert result[0].text == ""
        assert result[1].first_line == 1

    def test_sequence_field_dropped(self):
        result = self._run([card("         SEGM  NAME=A", seq="BYTES=12")])
        assert result[0].text == "         SEGM  NAME=A"

    def test_sequence_field_of_continued_record_dropped(self):
        result = self._run([
            continued("         SEGM  NAME=A,", seq="FREQ=999"),
            card("              BYTES=4", seq="PTR=TWIN"),
        ])
        assert result[0].text == "         SEGM  NAME=A, BYTES=4"

    def test_end_line_covers_blank_continuation_record(self):
        result = self._run([
            continued("         SEGM  NAME=A,"),
            card(""),
            card("         FIELD NAME=B"),
        ])
        assert result[0].text == "         SEGM  NAME=A,"
        assert [s.line for s in result[0].spans] == [0]
        assert result[0].end_line == 1
        assert result[0].last_line == 1
        assert result[1].first_line == 2
