"""Utility modules for jdk-class-reader."""

from .error_handling import (
    ClassReaderError,
    ClassResolutionError,
    ClassNotFoundError,
    ClassLinkageError,
    ClassFormatError,
    ImageToolError,
    ModuleGraphError,
    OutputWriteError,
    RecordFormatError,
    ConfigurationError,
    format_user_error,
    format_user_warning,
)

__all__ = [
    'ClassReaderError',
    'ClassResolutionError',
    'ClassNotFoundError',
    'ClassLinkageError',
    'ClassFormatError',
    'ImageToolError',
    'ModuleGraphError',
    'OutputWriteError',
    'RecordFormatError',
    'ConfigurationError',
    'format_user_error',
    'format_user_warning',
]
