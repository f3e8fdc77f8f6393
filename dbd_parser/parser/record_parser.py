"""
RecordParser
============

Assembles the lexer's token list into :class:`~dbd_parser.models.Segment`
records.

Grammar (greedy, no backtracking once a header keyword is consumed)::

    dbd        := { skip | record } EOF
    skip       := SKIPLINE { any } EOL | LABEL | EOL
    record     := header attr_list
    header     := SEGM | FIELD | LCHILD | XDFLD
    attr_list  := { [","] ATTR "=" value } [","] EOL      (at least one pair)
    value      := IDENT | ATTR | "(" IDENT { "," IDENT } ")"

The parser carries a single piece of state between steps: the segment that
is currently open.  Every step receives it and returns the (possibly new)
open segment; finished segments are flushed into the output list.

+------------------------+------------------------------------------------+
| Event                  | Effect on the open segment                     |
+========================+================================================+
| SKIPLINE / LABEL       | flush, nothing open                            |
+------------------------+------------------------------------------------+
| SEGM                   | flush, open a new one                          |
+------------------------+------------------------------------------------+
| FIELD / LCHILD / XDFLD | append leaf record (error if nothing is open)  |
+------------------------+------------------------------------------------+
| no header matches      | flush; stop at EOF, otherwise UnexpectedToken  |
+------------------------+------------------------------------------------+
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from ..errors import (
    EmptyAttributeList,
    InvalidAttributeKey,
    InvalidAttributeValue,
    MissingEquals,
    OrphanedRecord,
    UnexpectedToken,
)
from ..models import (
    Attribute,
    CrossReference,
    Field,
    LeftChild,
    Segment,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)

# Header kinds in the order they are tried
HEADER_ORDER: Tuple[TokenKind, ...] = (
    TokenKind.SEGM,
    TokenKind.FIELD,
    TokenKind.LCHILD,
    TokenKind.XDFLD,
)


# ---------------------------------------------------------------------------
# Per-attempt results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Matched:
    header: Token
    attributes: List[Attribute]


@dataclass(frozen=True)
class NoMatch:
    reason: str


Attempt = Union[Matched, NoMatch]


def _describe(token: Token) -> str:
    if token.text:
        return f"{token.kind.value} {token.text!r}"
    return token.kind.value


def flush(current: Optional[Segment], segments: List[Segment]) -> None:
    """Close *current* (if any) into *segments*; the caller drops it."""
    if current is not None:
        logger.debug("Closing segment %s", current.name)
        segments.append(current)


def attach(current: Optional[Segment], matched: Matched, segments: List[Segment]) -> Segment:
    """Apply a matched record header and return the segment left open."""
    kind = matched.header.kind
    if kind is TokenKind.SEGM:
        flush(current, segments)
        return Segment(attributes=matched.attributes)

    if current is None:
        raise OrphanedRecord(matched.header)
    if kind is TokenKind.FIELD:
        current.fields.append(Field(attributes=matched.attributes))
    elif kind is TokenKind.LCHILD:
        current.left_children.append(LeftChild(attributes=matched.attributes))
    else:
        current.cross_references.append(CrossReference(attributes=matched.attributes))
    return current


class RecordParser:
    """
    Recursive-descent parser over one token list.

    A parser instance owns its cursor, so it decodes exactly one token list;
    create a new one per decode.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens: List[Token] = list(tokens)
        self._pos = 0

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        if self._tokens:
            last = self._tokens[-1]
            return Token(TokenKind.EOF, "", last.line, last.column)
        return Token(TokenKind.EOF, "", 0, 0)

    def _advance(self) -> None:
        self._pos += 1

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> List[Segment]:
        """
        Decode the whole token list.

        Returns
        -------
        List[Segment]
            Segments in source order, each owning its leaf records.
        """
        segments: List[Segment] = []
        current: Optional[Segment] = None

        while True:
            current = self._skip(current, segments)

            reasons: List[Tuple[str, str]] = []
            matched: Optional[Matched] = None
            for kind in HEADER_ORDER:
                attempt = self._attempt(kind)
                if isinstance(attempt, Matched):
                    matched = attempt
                    break
                reasons.append((kind.value, attempt.reason))

            if matched is not None:
                current = attach(current, matched, segments)
                continue

            flush(current, segments)
            current = None
            token = self._current()
            if token.kind is TokenKind.EOF:
                break
            raise UnexpectedToken(token, reasons)

        logger.debug("Parsed %d segments", len(segments))
        return segments

    def _skip(self, current: Optional[Segment], segments: List[Segment]) -> Optional[Segment]:
        """Consume directive lines, labels and blank lines."""
        while True:
            token = self._current()
            if token.kind is TokenKind.SKIPLINE:
                flush(current, segments)
                current = None
                logger.debug("Skipping %s line %d", token.text, token.line)
                while self._current().kind not in (TokenKind.EOL, TokenKind.EOF):
                    self._advance()
                if self._current().kind is TokenKind.EOL:
                    self._advance()
            elif token.kind is TokenKind.LABEL:
                flush(current, segments)
                current = None
                self._advance()
            elif token.kind is TokenKind.EOL:
                self._advance()
            else:
                return current

    def _attempt(self, kind: TokenKind) -> Attempt:
        token = self._current()
        if token.kind is not kind:
            return NoMatch(f"expected {kind.value}, got {_describe(token)}")
        self._advance()
        return Matched(header=token, attributes=self._parse_attribute_list(token))

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _parse_attribute_list(self, header: Token) -> List[Attribute]:
        """Parse ``KEY=VALUE`` pairs up to and including the end of line."""
        attributes: List[Attribute] = []
        while True:
            token = self._current()
            if token.kind is TokenKind.EOL:
                self._advance()
                break
            if token.kind is TokenKind.COMMA:
                self._advance()
                continue
            attributes.append(self._parse_attribute())

        if not attributes:
            raise EmptyAttributeList(header, header.text)
        return attributes

    def _parse_attribute(self) -> Attribute:
        key = self._current()
        if key.kind is not TokenKind.ATTR:
            raise InvalidAttributeKey(key)
        self._advance()

        equals = self._current()
        if equals.kind is not TokenKind.EQUALS:
            raise MissingEquals(equals, key.text)
        self._advance()

        return Attribute(key=key.text, value=self._parse_value())

    def _parse_value(self) -> str:
        token = self._current()
        if token.kind in (TokenKind.IDENT, TokenKind.ATTR):
            self._advance()
            return token.text
        if token.kind is TokenKind.LPAREN:
            self._advance()
            return self._parse_list()
        raise InvalidAttributeValue(
            token, f"expected identifier or '(', got {_describe(token)}"
        )

    def _parse_list(self) -> str:
        """Parse ``IDENT { , IDENT } )`` after the opening parenthesis."""
        items: List[str] = []
        while True:
            token = self._current()
            if token.kind is not TokenKind.IDENT:
                if token.kind is TokenKind.RPAREN and not items:
                    raise InvalidAttributeValue(token, "empty parenthesized list")
                raise InvalidAttributeValue(
                    token, f"expected identifier in list, got {_describe(token)}"
                )
            items.append(token.text)
            self._advance()

            separator = self._current()
            if separator.kind is TokenKind.RPAREN:
                self._advance()
                break
            if separator.kind is not TokenKind.COMMA:
                raise InvalidAttributeValue(
                    separator, f"expected ',' or ')', got {_describe(separator)}"
                )
            self._advance()

        return "(" + ",".join(items) + ")"


def parse(tokens: Sequence[Token]) -> List[Segment]:
    """Parse *tokens* into segments."""
    return RecordParser(tokens).parse()
