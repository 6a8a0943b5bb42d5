"""Class introspection for jdk-class-reader.

This module reads compiled class files and turns the visible constructors
and methods of a class into descriptor-encoded records.
"""

from .class_file import ClassFile, ClassFileParser, parse_class_file
from .class_introspector import ClassIntrospector
from .descriptors import JavaType, encode_type, parse_method_descriptor
from .records import ClassRecord, MemberKind, MemberSignature

__all__ = [
    "ClassFile",
    "ClassFileParser",
    "parse_class_file",
    "ClassIntrospector",
    "JavaType",
    "encode_type",
    "parse_method_descriptor",
    "ClassRecord",
    "MemberKind",
    "MemberSignature",
]
