"""
DBD Parser
==========

Decodes fixed-column IMS database descriptions (DBD macro source, one
80-column card image per line) into a tree of segments, each owning its
FIELD, LCHILD and XDFLD records.

Quick start
-----------
>>> from dbd_parser import decode
>>> segments = decode(open("hospital.dbd").read())
>>> for segment in segments:
...     print(segment.name, len(segment.fields))
"""

from .errors import DbdError
from .models import (
    Attribute,
    CrossReference,
    Field,
    LeftChild,
    LogicalLine,
    Segment,
    Token,
    TokenKind,
)
from .parser.lexer import Lexer
from .parser.record_parser import RecordParser
from .pipeline.decode import DecodeTask, decode

__version__ = "0.1.0"
__all__ = [
    "Attribute",
    "CrossReference",
    "DbdError",
    "DecodeTask",
    "Field",
    "LeftChild",
    "Lexer",
    "LogicalLine",
    "RecordParser",
    "Segment",
    "Token",
    "TokenKind",
    "decode",
]
