"""
Exception hierarchy for the DBD decoder.

Every failure aborts the current decode; nothing here is recoverable.
Errors tied to a source position carry 0-based ``line`` / ``column``
attributes and render them as a prefix of the message.

::

    DbdError
    ├── DbdPreprocessError
    │   ├── MalformedRecordLength
    │   └── MissingContinuation
    ├── DbdLexError
    │   ├── InvalidContinuation
    │   └── BadLineLength
    └── DbdParseError
        ├── UnexpectedToken
        ├── InvalidAttributeValue
        ├── InvalidAttributeKey
        ├── MissingEquals
        ├── EmptyAttributeList
        └── OrphanedRecord
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .models import Token


class DbdError(Exception):
    """Base class for all decoder errors."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.message = message
        self.line = line
        self.column = column

        location = ""
        if line is not None:
            location = f"line {line}"
            if column is not None:
                location += f", column {column}"
            location += ": "
        super().__init__(f"{location}{message}")


# ---------------------------------------------------------------------------
# Preprocessing
# ---------------------------------------------------------------------------


class DbdPreprocessError(DbdError):
    """Physical record layout is broken."""


class MalformedRecordLength(DbdPreprocessError):
    """A physical line is not exactly 80 characters wide."""

    def __init__(self, line: int, length: int) -> None:
        self.length = length
        super().__init__(
            f"record length is {length}, expected 80", line=line
        )


class MissingContinuation(DbdPreprocessError):
    """A continuation marker is set on the last physical line."""

    def __init__(self, line: int) -> None:
        super().__init__(
            "continuation marker without a following line", line=line
        )


# ---------------------------------------------------------------------------
# Lexing
# ---------------------------------------------------------------------------


class DbdLexError(DbdError):
    """Text does not follow the fixed-column layout."""


class InvalidContinuation(DbdLexError):
    def __init__(self, line: int, column: int, reason: str) -> None:
        self.reason = reason
        super().__init__(reason, line=line, column=column)


class BadLineLength(DbdLexError):
    def __init__(self, line: int, column: int) -> None:
        super().__init__(
            "newline is only allowed at column 80", line=line, column=column
        )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class DbdParseError(DbdError):
    """Token stream does not match the record grammar."""

    def __init__(self, message: str, token: Token) -> None:
        self.token = token
        super().__init__(message, line=token.line, column=token.column)


class UnexpectedToken(DbdParseError):
    """
    No record header matches at the current token.

    ``reasons`` maps every attempted header kind to the reason it was
    rejected, in the order the attempts were made.
    """

    def __init__(self, token: Token, reasons: Sequence[Tuple[str, str]]) -> None:
        self.reasons = list(reasons)
        details = "".join(f"\n  {kind}: {why}" for kind, why in self.reasons)
        super().__init__(
            f"unexpected token {token.kind.value} {token.text!r}{details}", token
        )


class InvalidAttributeValue(DbdParseError):
    def __init__(self, token: Token, reason: str) -> None:
        super().__init__(f"invalid attribute value: {reason}", token)


class InvalidAttributeKey(DbdParseError):
    def __init__(self, token: Token) -> None:
        super().__init__(
            f"expected attribute keyword, got {token.kind.value} {token.text!r}",
            token,
        )


class MissingEquals(DbdParseError):
    def __init__(self, token: Token, key: str) -> None:
        super().__init__(
            f"expected '=' after {key}, got {token.kind.value} {token.text!r}",
            token,
        )


class EmptyAttributeList(DbdParseError):
    def __init__(self, token: Token, header: str) -> None:
        super().__init__(f"{header} has no attributes", token)


class OrphanedRecord(DbdParseError):
    """A FIELD / LCHILD / XDFLD appears before any SEGM."""

    def __init__(self, token: Token) -> None:
        super().__init__(f"{token.text} outside of any SEGM", token)
