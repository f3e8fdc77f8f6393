"""
RecordLengthPass
================

Splits raw DBD text into physical records and checks that every record is
exactly 80 characters wide.

DBD source is card-image text: trailing padding is significant because
column positions carry meaning (label in column 0, continuation marker in
column 71, sequence field in columns 72-79).  A record of any other width
means the padding was lost somewhere and no column can be trusted.
"""
from __future__ import annotations

import logging
from typing import List

from ..errors import MalformedRecordLength

logger = logging.getLogger(__name__)

RECORD_WIDTH = 80


def split_records(text: str) -> List[str]:
    """
    Split *text* on ``\\n`` into physical records.

    A single trailing newline terminates the last record and does not start
    an empty one.
    """
    if not text:
        return []
    records = text.split("\n")
    if text.endswith("\n"):
        records.pop()
    return records


class RecordLengthPass:
    """Rejects any physical record that is not ``RECORD_WIDTH`` wide."""

    def run(self, lines: List[str]) -> List[str]:
        """
        Validate *lines* and return them unchanged.

        Raises
        ------
        MalformedRecordLength
            For the first record whose length is not 80.
        """
        for index, line in enumerate(lines):
            if len(line) != RECORD_WIDTH:
                raise MalformedRecordLength(index, len(line))
        logger.debug("Validated %d records", len(lines))
        return lines
