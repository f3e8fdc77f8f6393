"""
Core data models for the DBD decoder.

Three groups live here:

* :class:`LogicalLine` – output of the preprocessing passes.
* :class:`Token` / :class:`TokenKind` – output of the lexer.
* :class:`Segment` and its leaf records – output of the parser, shaped so a
  serializer can walk them without re-parsing.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Logical lines
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineSpan:
    """Where a piece of a logical line came from."""

    offset: int   # Index into LogicalLine.text where the piece starts
    line: int     # Physical line (0-based)
    column: int   # Physical column of the piece's first character


@dataclass(frozen=True)
class LogicalLine:
    """
    One complete macro statement after continuation joining.

    ``spans`` is ordered by ``offset`` and always starts at offset 0, so any
    character of ``text`` can be traced back to its physical position.
    ``end_line`` is the last physical record the statement used, which may
    be a blank continuation record that contributed no span.
    """

    text: str
    spans: Tuple[LineSpan, ...]
    end_line: Optional[int] = None

    @property
    def first_line(self) -> int:
        return self.spans[0].line

    @property
    def last_line(self) -> int:
        if self.end_line is not None:
            return self.end_line
        return self.spans[-1].line

    def position(self, offset: int) -> Tuple[int, int]:
        """Return the physical ``(line, column)`` of ``text[offset]``."""
        offsets = [s.offset for s in self.spans]
        span = self.spans[bisect.bisect_right(offsets, offset) - 1]
        return span.line, span.column + (offset - span.offset)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenKind(str, Enum):
    EOL = "EOL"
    EOF = "EOF"
    SEGM = "SEGM"
    FIELD = "FIELD"
    LCHILD = "LCHILD"
    XDFLD = "XDFLD"
    ATTR = "ATTR"
    IDENT = "IDENT"
    LABEL = "LABEL"
    SKIPLINE = "SKIPLINE"
    EQUALS = "="
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.line}:{self.column})"


# ---------------------------------------------------------------------------
# Decoded records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attribute:
    """A single ``KEY=VALUE`` pair; list values are kept as ``"(A,B,C)"``."""

    key: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "value": self.value}

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


def _lookup(attributes: List[Attribute], key: str) -> Optional[str]:
    for attr in attributes:
        if attr.key == key:
            return attr.value
    return None


@dataclass
class Field:
    attributes: List[Attribute] = field(default_factory=list)

    def get(self, key: str) -> Optional[str]:
        return _lookup(self.attributes, key)

    def to_dict(self) -> Dict[str, Any]:
        return {"attributes": [a.to_dict() for a in self.attributes]}


@dataclass
class LeftChild:
    attributes: List[Attribute] = field(default_factory=list)

    def get(self, key: str) -> Optional[str]:
        return _lookup(self.attributes, key)

    def to_dict(self) -> Dict[str, Any]:
        return {"attributes": [a.to_dict() for a in self.attributes]}


@dataclass
class CrossReference:
    attributes: List[Attribute] = field(default_factory=list)

    def get(self, key: str) -> Optional[str]:
        return _lookup(self.attributes, key)

    def to_dict(self) -> Dict[str, Any]:
        return {"attributes": [a.to_dict() for a in self.attributes]}


@dataclass
class Segment:
    """
    A ``SEGM`` header together with every leaf record that follows it up to
    the next segment boundary.
    """

    attributes: List[Attribute] = field(default_factory=list)
    fields: List[Field] = field(default_factory=list)
    left_children: List[LeftChild] = field(default_factory=list)
    cross_references: List[CrossReference] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return self.get("NAME")

    def get(self, key: str) -> Optional[str]:
        """Value of the first attribute called *key*, or *None*."""
        return _lookup(self.attributes, key)

    def __repr__(self) -> str:
        return (
            f"Segment(name={self.name!r}, fields={len(self.fields)}, "
            f"left_children={len(self.left_children)}, "
            f"cross_references={len(self.cross_references)})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": [a.to_dict() for a in self.attributes],
            "fields": [f.to_dict() for f in self.fields],
            "leftChildren": [c.to_dict() for c in self.left_children],
            "crossReferences": [x.to_dict() for x in self.cross_references],
        }
