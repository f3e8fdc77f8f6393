"""
DecodeTask
==========

Orchestrates the DBD decoding pipeline and returns the list of
:class:`~dbd_parser.models.Segment` records found in the source.

Pipeline stages:

1. :class:`~dbd_parser.passes.record_length.RecordLengthPass`
   – Reject records that are not exactly 80 columns wide.
2. :class:`~dbd_parser.passes.line_continuation.LineContinuationCollapsePass`
   – Drop the sequence field (columns 72+) and join continued records
   into logical lines.
3. :class:`~dbd_parser.parser.lexer.Lexer`
   – Classify words by column into tokens.
4. :class:`~dbd_parser.parser.record_parser.RecordParser`
   – Build the segment tree.

With ``raw_lexer=True`` stages 1–2 are skipped and the lexer reads the
unprocessed text, enforcing the card layout on its own.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..models import LogicalLine, Segment, Token
from ..parser.lexer import Lexer
from ..parser.record_parser import RecordParser
from ..passes.line_continuation import LineContinuationCollapsePass
from ..passes.record_length import RecordLengthPass, split_records

logger = logging.getLogger(__name__)


class DecodeTask:
    """
    High-level entry point for decoding DBD source.

    Parameters
    ----------
    attribute_keywords:
        Words recognised as attribute keys.  Defaults to
        :data:`~dbd_parser.parser.lexer.ATTRIBUTE_KEYWORDS`.
    raw_lexer:
        Lex the unprocessed text directly instead of the logical lines
        produced by the preprocessing passes.
    """

    def __init__(
        self,
        attribute_keywords: Optional[Iterable[str]] = None,
        raw_lexer: bool = False,
    ) -> None:
        self._lexer = Lexer(attribute_keywords)
        self.raw_lexer = raw_lexer

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def decode_file(self, file_path: str) -> List[Segment]:
        """
        Decode a DBD source **file**.

        Raises
        ------
        OSError
            The file cannot be read.
        DbdError
            The source is malformed.
        """
        logger.info("Decoding file: %s", file_path)
        source = Path(file_path).read_text(encoding="utf-8", errors="replace")
        return self.decode_text(source)

    def decode_text(self, source: str) -> List[Segment]:
        """Decode DBD source supplied as a **string**."""
        segments = RecordParser(self.tokens(source)).parse()
        logger.info("Decoded %d segments", len(segments))
        return segments

    def tokens(self, source: str) -> List[Token]:
        """Run the pipeline up to and including the lexer."""
        if self.raw_lexer:
            return self._lexer.tokenize(source)
        return self._lexer.tokenize_lines(
            self.logical_lines(source), terminated=source.endswith("\n")
        )

    def logical_lines(self, source: str) -> List[LogicalLine]:
        """Run the preprocessing passes only."""
        records = split_records(source)
        records = RecordLengthPass().run(records)
        lines = LineContinuationCollapsePass().run(records)
        logger.debug("%d records, %d logical lines", len(records), len(lines))
        return lines


def decode(source: str) -> List[Segment]:
    """Decode DBD *source* text with default settings."""
    return DecodeTask().decode_text(source)
