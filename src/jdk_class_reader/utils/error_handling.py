"""Exception hierarchy and user-facing message helpers for jdk-class-reader."""

from typing import Optional


class ClassReaderError(Exception):
    """Base class for all jdk-class-reader errors."""


class ClassResolutionError(ClassReaderError):
    """A class name could not be turned into a usable class description.

    Raised per class; the extraction pipeline skips the class and continues.
    """

    def __init__(self, class_name: str, reason: str):
        self.class_name = class_name
        self.reason = reason
        super().__init__(f"{class_name}: {reason}")


class ClassNotFoundError(ClassResolutionError):
    """No class file exists for the requested class name."""

    def __init__(self, class_name: str):
        super().__init__(class_name, "class not found")


class ClassLinkageError(ClassResolutionError):
    """A type the class depends on (super class, interface) is missing."""

    def __init__(self, class_name: str, missing_type: str):
        self.missing_type = missing_type
        super().__init__(class_name, f"missing dependent type {missing_type}")


class ClassFormatError(ClassResolutionError):
    """The class file bytes or a descriptor inside them are malformed."""

    def __init__(self, reason: str, class_name: Optional[str] = None):
        super().__init__(class_name or "<unknown>", reason)


class ImageToolError(ClassReaderError):
    """The jimage utility could not be run or exited with an error."""


class ModuleGraphError(ClassReaderError):
    """The module graph could not be built or loaded."""


class OutputWriteError(ClassReaderError):
    """The output destination could not be opened or written."""


class RecordFormatError(ClassReaderError):
    """A classinfo file does not follow the record format."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ConfigurationError(ClassReaderError):
    """The configuration file could not be read."""


def format_user_error(error: Exception, context: Optional[str] = None) -> str:
    """Format an exception as a single line for the operator."""
    message = str(error) or error.__class__.__name__
    if context:
        return f"❌ {context}: {message}"
    return f"❌ {message}"


def format_user_warning(message: str, context: Optional[str] = None) -> str:
    """Format a warning as a single line for the operator."""
    if context:
        return f"⚠️  {context}: {message}"
    return f"⚠️  {message}"
