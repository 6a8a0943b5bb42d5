"""Validation of classinfo files produced by jdk-class-reader."""

from .record_reader import read_records, verify_classinfo

__all__ = [
    "read_records",
    "verify_classinfo",
]
