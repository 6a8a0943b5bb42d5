"""Output generation for jdk-class-reader."""

from .record_writer import RecordWriter, format_record

__all__ = [
    "RecordWriter",
    "format_record",
]
