"""Reading classinfo files back into class records."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..generation.record_writer import MEMBER_PREFIX, NO_SUPER_CLASS, SEPARATOR
from ..introspection.class_file import CONSTRUCTOR_NAME
from ..introspection.records import ClassRecord, MemberKind, MemberSignature
from ..introspection.descriptors import encode_type, parse_method_descriptor
from ..utils.error_handling import ClassFormatError, RecordFormatError

logger = logging.getLogger(__name__)

# Marker some consumers append to signature-polymorphic methods
POLYMORPHIC_MARKER = ":PS"


def _parse_member(text: str, line_number: int) -> MemberSignature:
    if text.endswith(POLYMORPHIC_MARKER):
        text = text[:-len(POLYMORPHIC_MARKER)]

    open_paren = text.find("(")
    if open_paren <= 0:
        raise RecordFormatError(f"Malformed member signature: {text!r}", line_number)

    name = text[:open_paren]
    try:
        parameters, return_type = parse_method_descriptor(text[open_paren:])
    except ClassFormatError as e:
        raise RecordFormatError(f"Malformed member signature {text!r}: {e.reason}", line_number) from e

    encoded = tuple(encode_type(p) for p in parameters)
    if name == CONSTRUCTOR_NAME:
        return MemberSignature(MemberKind.CONSTRUCTOR, name, encoded, encode_type(return_type))
    return MemberSignature.method(name, encoded, encode_type(return_type))


def _parse_header(line: str, line_number: int) -> Tuple[str, Optional[str], int]:
    parts = line.split(SEPARATOR)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise RecordFormatError(f"Malformed header: {line!r}", line_number)

    class_name, super_class, count = parts
    try:
        member_count = int(count)
    except ValueError:
        raise RecordFormatError(f"Member count is not a number: {count!r}", line_number) from None
    if member_count < 0:
        raise RecordFormatError(f"Negative member count: {member_count}", line_number)

    return class_name, (None if super_class == NO_SUPER_CLASS else super_class), member_count


def read_records(lines: Iterable[str]) -> Iterator[ClassRecord]:
    """Parse classinfo lines into records.

    Raises:
        RecordFormatError: On a malformed line or a header whose member
            count does not match the member lines that follow it.
    """
    header: Optional[Tuple[str, Optional[str], int]] = None
    header_line = 0
    members: List[MemberSignature] = []

    def finish() -> ClassRecord:
        class_name, super_class, member_count = header
        if member_count != len(members):
            raise RecordFormatError(
                f"{class_name} declares {member_count} members but {len(members)} follow",
                header_line,
            )
        return ClassRecord(class_name, super_class, tuple(members))

    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        if not line:
            continue
        if line.startswith(MEMBER_PREFIX):
            if header is None:
                raise RecordFormatError("Member line before any class header", line_number)
            members.append(_parse_member(line[len(MEMBER_PREFIX):], line_number))
            continue

        if header is not None:
            yield finish()
        header = _parse_header(line, line_number)
        header_line = line_number
        members = []

    if header is not None:
        yield finish()


def verify_classinfo(path: Union[str, Path]) -> Dict[str, Any]:
    """Validate a classinfo file and summarize its content.

    Args:
        path: Classinfo file to check

    Returns:
        Summary with class, member, constructor and method counts
    """
    summary = {
        "path": str(path),
        "classes": 0,
        "members": 0,
        "constructors": 0,
        "methods": 0,
        "root_classes": [],
    }

    with open(path, 'r', encoding='utf-8') as f:
        for record in read_records(f):
            summary["classes"] += 1
            summary["members"] += record.member_count
            summary["constructors"] += len(record.constructors)
            summary["methods"] += len(record.methods)
            if record.super_class_name is None:
                summary["root_classes"].append(record.class_name)

    logger.info(f"Verified {summary['classes']} classes with {summary['members']} members in {path}")
    return summary
