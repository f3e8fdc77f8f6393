"""
Lexer
=====

Turns DBD text into a flat list of :class:`~dbd_parser.models.Token`.

DBD source reuses plain words for directives, labels and attribute keys; the
only thing that tells them apart is where the word starts.  Classification
of a bare word, first match wins:

+-------------------------------------------+----------------+
| Condition                                 | Kind           |
+===========================================+================+
| ``SEGM`` / ``FIELD`` / ``LCHILD`` /       | header keyword |
| ``XDFLD``                                 |                |
+-------------------------------------------+----------------+
| Member of the attribute-keyword set       | ``ATTR``       |
+-------------------------------------------+----------------+
| Starts in column 0                        | ``LABEL``      |
+-------------------------------------------+----------------+
| Starts in column 7, or is ``DBD`` /       | ``SKIPLINE``   |
| ``DATASET``                               |                |
+-------------------------------------------+----------------+
| Anything else                             | ``IDENT``      |
+-------------------------------------------+----------------+

Two entry points share the classification:

* :meth:`Lexer.tokenize` reads the raw 80-column text and enforces the
  card layout itself (newline at column 80, ``*`` only at column 71 followed
  by the 8-column sequence field and a newline, columns 72+ ignored).
* :meth:`Lexer.tokenize_lines` reads :class:`~dbd_parser.models.LogicalLine`
  objects from the preprocessing passes and maps every character back to its
  physical column before classifying.

Both produce the same tokens, positions included, for the same well-formed
source.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..errors import BadLineLength, InvalidContinuation, MissingContinuation
from ..models import LogicalLine, Token, TokenKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

ATTRIBUTE_KEYWORDS: FrozenSet[str] = frozenset({
    "BYTES", "COMPRTN", "CONST", "DDATA", "DSGROUP",
    "EXIT", "EXTRN", "FREQ", "INDEX", "NAME",
    "NULLVAL", "PAIR", "PARENT", "POINTER", "PTR",
    "RKSIZE", "RMNAME", "RULES", "SEGMENT", "SOURCE",
    "SRCH", "SSPTR", "START", "SUBSEQ", "TYPE",
})

HEADER_KEYWORDS: Dict[str, TokenKind] = {
    "SEGM": TokenKind.SEGM,
    "FIELD": TokenKind.FIELD,
    "LCHILD": TokenKind.LCHILD,
    "XDFLD": TokenKind.XDFLD,
}

SKIP_DIRECTIVES: FrozenSet[str] = frozenset({"DBD", "DATASET"})

PUNCTUATION: Dict[str, TokenKind] = {
    "=": TokenKind.EQUALS,
    ",": TokenKind.COMMA,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

# ---------------------------------------------------------------------------
# Card layout (0-based columns)
# ---------------------------------------------------------------------------

LABEL_COLUMN = 0
DIRECTIVE_COLUMN = 7
CONTINUATION_COLUMN = 71
SEQUENCE_COLUMN = 72
RECORD_WIDTH = 80
CONTINUATION_MARKER = "*"
# Marker plus the 8-column sequence field
CONTINUATION_SKIP = 9


@dataclass
class Cursor:
    """Read position in the raw text."""

    index: int = 0
    line: int = 0
    column: int = 0

    def advance(self, count: int = 1) -> None:
        self.index += count
        self.column += count

    def newline(self) -> None:
        self.index += 1
        self.line += 1
        self.column = 0


def _is_delimiter(ch: str) -> bool:
    return ch.isspace() or ch in PUNCTUATION


def _misplaced_marker(line: int, column: int) -> InvalidContinuation:
    return InvalidContinuation(
        line, column, f"continuation marker must be in column {CONTINUATION_COLUMN}"
    )


class Lexer:
    """
    Column-sensitive DBD lexer.

    Parameters
    ----------
    attribute_keywords:
        Words recognised as attribute keys.  Defaults to
        :data:`ATTRIBUTE_KEYWORDS`.
    """

    def __init__(self, attribute_keywords: Optional[Iterable[str]] = None) -> None:
        self._attribute_keywords: FrozenSet[str] = (
            frozenset(attribute_keywords)
            if attribute_keywords is not None
            else ATTRIBUTE_KEYWORDS
        )

    def classify(self, word: str, column: int) -> TokenKind:
        """Return the token kind of a bare *word* starting at *column*."""
        header = HEADER_KEYWORDS.get(word)
        if header is not None:
            return header
        if word in self._attribute_keywords:
            return TokenKind.ATTR
        if column == LABEL_COLUMN:
            return TokenKind.LABEL
        if column == DIRECTIVE_COLUMN or word in SKIP_DIRECTIVES:
            return TokenKind.SKIPLINE
        return TokenKind.IDENT

    # ------------------------------------------------------------------
    # Raw text
    # ------------------------------------------------------------------

    def tokenize(self, text: str) -> List[Token]:
        """
        Tokenize unprocessed 80-column text.

        Raises
        ------
        BadLineLength
            A newline appears anywhere but column 80, or the final record
            is not 80 columns wide.
        InvalidContinuation
            A ``*`` outside column 71, or no newline after the sequence field
            of a continued record.
        MissingContinuation
            The continued record is the last one.
        """
        tokens: List[Token] = []
        cursor = Cursor()

        while cursor.index < len(text):
            ch = text[cursor.index]

            if ch == "\n":
                if cursor.column != RECORD_WIDTH:
                    raise BadLineLength(cursor.line, cursor.column)
                tokens.append(Token(TokenKind.EOL, "", cursor.line, cursor.column))
                cursor.newline()
                continue

            if ch.isspace() or cursor.column >= SEQUENCE_COLUMN:
                cursor.advance()
                continue

            if ch == CONTINUATION_MARKER:
                self._skip_continuation(text, cursor)
                continue

            kind = PUNCTUATION.get(ch)
            if kind is not None:
                tokens.append(Token(kind, ch, cursor.line, cursor.column))
                cursor.advance()
                continue

            tokens.append(self._read_word(text, cursor))

        # The last record may lack its newline but not its width
        if cursor.column not in (0, RECORD_WIDTH):
            raise BadLineLength(cursor.line, cursor.column)
        tokens.append(Token(TokenKind.EOL, "", cursor.line, cursor.column))
        logger.debug("Lexed %d tokens from %d lines", len(tokens), cursor.line + 1)
        return tokens

    def _skip_continuation(self, text: str, cursor: Cursor) -> None:
        if cursor.column != CONTINUATION_COLUMN:
            raise _misplaced_marker(cursor.line, cursor.column)

        cursor.advance(CONTINUATION_SKIP)
        if cursor.index >= len(text):
            raise MissingContinuation(cursor.line)
        if text[cursor.index] != "\n":
            raise InvalidContinuation(
                cursor.line, cursor.column, "no newline after line continuation"
            )
        cursor.newline()
        if cursor.index >= len(text):
            raise MissingContinuation(cursor.line - 1)

    def _read_word(self, text: str, cursor: Cursor) -> Token:
        start, line, column = cursor.index, cursor.line, cursor.column
        while cursor.index < len(text):
            ch = text[cursor.index]
            if _is_delimiter(ch) or cursor.column >= SEQUENCE_COLUMN:
                break
            if ch == CONTINUATION_MARKER and cursor.column == CONTINUATION_COLUMN:
                break
            cursor.advance()
        word = text[start:cursor.index]
        return Token(self.classify(word, column), word, line, column)

    # ------------------------------------------------------------------
    # Logical lines
    # ------------------------------------------------------------------

    def tokenize_lines(
        self, lines: Iterable[LogicalLine], terminated: bool = True
    ) -> List[Token]:
        """
        Tokenize preprocessed logical lines.

        Each logical line ends with an ``EOL`` token placed at column 80 of
        its last physical record.  When the source ended with a newline
        (*terminated*), or held no records at all, a sentinel ``EOL`` follows
        at column 0 of the next line; otherwise the last line's ``EOL`` is
        the sentinel.  The result matches :meth:`tokenize` on the same source.
        """
        tokens: List[Token] = []
        next_line = 0
        for logical in lines:
            self._scan_logical(logical, tokens)
            tokens.append(Token(TokenKind.EOL, "", logical.last_line, RECORD_WIDTH))
            next_line = logical.last_line + 1
        if terminated or not tokens:
            tokens.append(Token(TokenKind.EOL, "", next_line, 0))
        logger.debug("Lexed %d tokens from logical lines", len(tokens))
        return tokens

    def _scan_logical(self, logical: LogicalLine, tokens: List[Token]) -> None:
        text = logical.text
        index = 0
        while index < len(text):
            ch = text[index]
            if ch.isspace():
                index += 1
                continue

            line, column = logical.position(index)
            if column >= SEQUENCE_COLUMN:
                index += 1
                continue
            if ch == CONTINUATION_MARKER:
                raise _misplaced_marker(line, column)

            kind = PUNCTUATION.get(ch)
            if kind is not None:
                tokens.append(Token(kind, ch, line, column))
                index += 1
                continue

            start = index
            while index < len(text) and not _is_delimiter(text[index]):
                index += 1
            word = text[start:index]
            tokens.append(Token(self.classify(word, column), word, line, column))
