"""Command-line interface for jdk-class-reader."""

from .jdk_class_reader_cli import JdkClassReaderCLI, main

__all__ = [
    "JdkClassReaderCLI",
    "main",
]
