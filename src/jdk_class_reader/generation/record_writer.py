"""Serialization of class records to the classinfo text format.

Each record is a header line followed by one line per member::

    java/lang/Number:java/lang/Object:3
    --<init>()V
    --intValue()I
    --longValue()J

A class without a super class is written with ``null`` in its place.
"""

import logging
from typing import Iterable, TextIO

from ..introspection.records import ClassRecord

logger = logging.getLogger(__name__)

SEPARATOR = ":"
MEMBER_PREFIX = "--"
NO_SUPER_CLASS = "null"


def format_header(record: ClassRecord) -> str:
    super_class = record.super_class_name if record.super_class_name is not None else NO_SUPER_CLASS
    return SEPARATOR.join((record.class_name, super_class, str(record.member_count)))


def format_record(record: ClassRecord) -> str:
    """Return the full text of one record, including the trailing newline."""
    lines = [format_header(record)]
    lines.extend(MEMBER_PREFIX + member.descriptor for member in record.members)
    return "\n".join(lines) + "\n"


class RecordWriter:
    """Appends records to an open text stream in the order they are given."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.records_written = 0

    def write(self, record: ClassRecord) -> None:
        self.stream.write(format_record(record))
        self.records_written += 1
        logger.debug(f"Wrote {record.class_name} with {record.member_count} members")

    def write_all(self, records: Iterable[ClassRecord]) -> int:
        for record in records:
            self.write(record)
        return self.records_written
