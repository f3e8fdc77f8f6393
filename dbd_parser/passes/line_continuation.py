"""
LineContinuationCollapsePass
============================

Joins continued DBD records into :class:`~dbd_parser.models.LogicalLine`
objects.

Continuation rules:
  * Only columns 0–71 are read; the sequence field (columns 72+) is dropped.
  * A record whose column 71 holds ``*`` is continued on the next record.
  * The marker is dropped and trailing blanks before it are trimmed.
  * The next record contributes its text from column 14 onward; blanks
    between column 14 and the first character are dropped.
  * Continued pieces are separated by a single space, so a statement split
    between two attributes lexes exactly as it would on one long line.
  * Continuations chain: the appended record may itself be continued.

Each piece keeps a :class:`~dbd_parser.models.LineSpan` with its physical
line and column, which the lexer uses for column-sensitive classification
and for error positions.
"""
from __future__ import annotations

import logging
from typing import List

from ..errors import MissingContinuation
from ..models import LineSpan, LogicalLine

logger = logging.getLogger(__name__)

CONTINUATION_MARKER = "*"
CONTINUATION_COLUMN = 71
RESUME_COLUMN = 14
SEQUENCE_COLUMN = 72


class LineContinuationCollapsePass:
    """Collapses continuation records into logical lines."""

    def run(self, lines: List[str]) -> List[LogicalLine]:
        """
        Collapse continuation records.

        Parameters
        ----------
        lines:
            Full 80-column records.

        Returns
        -------
        List[LogicalLine]
            One entry per complete statement.

        Raises
        ------
        MissingContinuation
            When the last record carries a continuation marker.
        """
        result: List[LogicalLine] = []
        index = 0
        while index < len(lines):
            text = ""
            spans: List[LineSpan] = []
            column = 0
            while True:
                record = lines[index]
                continued = self._is_continued(record)
                end = CONTINUATION_COLUMN if continued else SEQUENCE_COLUMN
                text = self._append(text, spans, record[column:end], index, column)
                if not continued:
                    break
                if index + 1 >= len(lines):
                    raise MissingContinuation(index)
                index += 1
                column = RESUME_COLUMN

            result.append(
                LogicalLine(text=text, spans=tuple(spans), end_line=index)
            )
            index += 1

        logger.debug(
            "Collapsed %d records into %d logical lines", len(lines), len(result)
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_continued(record: str) -> bool:
        return (
            len(record) > CONTINUATION_COLUMN
            and record[CONTINUATION_COLUMN] == CONTINUATION_MARKER
        )

    @staticmethod
    def _append(
        text: str,
        spans: List[LineSpan],
        piece: str,
        line: int,
        column: int,
    ) -> str:
        """Append *piece* (taken from *line* at *column*) to *text*."""
        if not spans:
            # The first record keeps its leading blanks: columns matter.
            spans.append(LineSpan(offset=0, line=line, column=column))
            return piece.rstrip()

        body = piece.lstrip()
        if not body.rstrip():
            return text
        if text:
            text += " "
        skipped = len(piece) - len(body)
        spans.append(LineSpan(offset=len(text), line=line, column=column + skipped))
        return text + body.rstrip()
