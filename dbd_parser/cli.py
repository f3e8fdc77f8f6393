"""
DBD Parser – command-line interface
===================================

Usage
-----
::

    python -m dbd_parser.cli SOURCE [OPTIONS]

Options
-------
--output, -o      Output file path (default: stdout).
--format, -f      Output format: ``json`` (default), ``text`` or ``tokens``.
--raw-lexer       Lex the unprocessed card images instead of logical lines.
--verbose, -v     Enable DEBUG logging.

Examples
--------
::

    python -m dbd_parser.cli hospital.dbd
    python -m dbd_parser.cli hospital.dbd -f text
    python -m dbd_parser.cli hospital.dbd -o hospital.json
    python -m dbd_parser.cli hospital.dbd -f tokens --raw-lexer
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .errors import DbdError
from .models import Segment, Token
from .pipeline.decode import DecodeTask

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dbd_parser",
        description="DBD Parser – decode an IMS DBD source into segments",
    )
    p.add_argument("source", help="DBD source file to decode")
    p.add_argument(
        "--output", "-o",
        default="-",
        metavar="FILE",
        help="Output file (default: stdout)",
    )
    p.add_argument(
        "--format", "-f",
        choices=["json", "text", "tokens"],
        default="json",
        help="Output format (default: json)",
    )
    p.add_argument(
        "--raw-lexer",
        action="store_true",
        help=(
            "Tokenize the raw 80-column text directly instead of the "
            "preprocessed logical lines"
        ),
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return p


def _format_text(segments: List[Segment]) -> str:
    lines: List[str] = [f"Parsed {len(segments)} segments"]

    def _pairs(record) -> str:
        return " ".join(str(a) for a in record.attributes)

    for segment in segments:
        lines.append(f"Got SEGM {_pairs(segment)}")
        for f in segment.fields:
            lines.append(f"    FIELD  {_pairs(f)}")
        for child in segment.left_children:
            lines.append(f"    LCHILD {_pairs(child)}")
        for xref in segment.cross_references:
            lines.append(f"    XDFLD  {_pairs(xref)}")
    return "\n".join(lines)


def _format_tokens(tokens: List[Token]) -> str:
    return "\n".join(
        f"{t.line:>4}:{t.column:<3} {t.kind.name:<9} {t.text}".rstrip()
        for t in tokens
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    task = DecodeTask(raw_lexer=args.raw_lexer)

    try:
        source = Path(args.source).read_text(encoding="utf-8", errors="replace")
        if args.format == "tokens":
            output_text = _format_tokens(task.tokens(source))
        else:
            segments = task.decode_text(source)
            if args.format == "json":
                output_text = json.dumps([s.to_dict() for s in segments], indent=2)
            else:
                output_text = _format_text(segments)
    except OSError as exc:
        logger.error("Failed to read %s: %s", args.source, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except DbdError as exc:
        logger.debug("Decode of %s failed", args.source, exc_info=True)
        print(f"error: {args.source}: {exc}", file=sys.stderr)
        return 1

    if args.output == "-":
        print(output_text)
    else:
        Path(args.output).write_text(output_text, encoding="utf-8")
        print(f"Output written to {args.output}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
