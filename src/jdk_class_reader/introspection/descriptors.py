"""Type model and JVM descriptor encoding.

Types are described by :class:`JavaType`, which holds the binary name the
platform reports for a class (``int``, ``java.lang.String``,
``[Ljava.lang.String;``). :func:`encode_type` maps a type to the compact
descriptor notation of the JVM specification (section 4.3.2), and the
``parse_*`` functions read descriptors found in class files back into types.
"""

from dataclasses import dataclass
from typing import List, Tuple

from ..utils.error_handling import ClassFormatError

# Primitive and void binary names to their descriptor characters.
PRIMITIVE_DESCRIPTORS = {
    "byte": "B",
    "char": "C",
    "double": "D",
    "float": "F",
    "int": "I",
    "long": "J",
    "short": "S",
    "boolean": "Z",
    "void": "V",
}

PRIMITIVE_NAMES = {code: name for name, code in PRIMITIVE_DESCRIPTORS.items()}

VOID_DESCRIPTOR = PRIMITIVE_DESCRIPTORS["void"]


@dataclass(frozen=True)
class JavaType:
    """A type by its binary name, e.g. ``int``, ``java.util.List`` or ``[[I``."""

    name: str

    @property
    def is_primitive(self) -> bool:
        return self.name in PRIMITIVE_DESCRIPTORS

    @property
    def is_array(self) -> bool:
        return self.name.startswith("[")

    @property
    def dimensions(self) -> int:
        return len(self.name) - len(self.name.lstrip("["))

    @classmethod
    def from_internal_name(cls, internal_name: str) -> "JavaType":
        """Build the type for a slash-separated class name or array descriptor."""
        return cls(internal_name.replace("/", "."))


VOID = JavaType("void")


def encode_type(java_type: JavaType) -> str:
    """Encode a type as a JVM descriptor.

    Args:
        java_type: Type to encode

    Returns:
        ``B C D F I J S Z V`` for primitives and void, the binary name with
        slashes for arrays, and ``L<internal name>;`` for everything else.
    """
    if java_type.is_primitive:
        return PRIMITIVE_DESCRIPTORS[java_type.name]
    if java_type.is_array:
        return java_type.name.replace(".", "/")
    return "L" + java_type.name.replace(".", "/") + ";"


def _read_field_type(descriptor: str, position: int) -> Tuple[JavaType, int]:
    """Read one field type starting at ``position``, return it and the next position."""
    start = position
    while position < len(descriptor) and descriptor[position] == "[":
        position += 1
    if position >= len(descriptor):
        raise ClassFormatError(f"Truncated descriptor: {descriptor!r}")

    code = descriptor[position]
    if code == "L":
        end = descriptor.find(";", position)
        if end <= position + 1:
            raise ClassFormatError(f"Unterminated class type in descriptor: {descriptor!r}")
        position = end + 1
    elif code in PRIMITIVE_NAMES and code != VOID_DESCRIPTOR:
        position += 1
    else:
        raise ClassFormatError(f"Invalid type {code!r} in descriptor: {descriptor!r}")

    if position - start > 1 and descriptor[start] == "[":
        return JavaType.from_internal_name(descriptor[start:position]), position
    if code == "L":
        return JavaType.from_internal_name(descriptor[start + 1:position - 1]), position
    return JavaType(PRIMITIVE_NAMES[code]), position


def parse_field_descriptor(descriptor: str) -> JavaType:
    """Parse a field descriptor such as ``[Ljava/lang/String;``."""
    java_type, position = _read_field_type(descriptor, 0)
    if position != len(descriptor):
        raise ClassFormatError(f"Trailing characters in field descriptor: {descriptor!r}")
    return java_type


def parse_method_descriptor(descriptor: str) -> Tuple[Tuple[JavaType, ...], JavaType]:
    """Parse a method descriptor such as ``(I[J)Ljava/lang/Object;``.

    Returns:
        Tuple of (parameter types in declaration order, return type)
    """
    if not descriptor.startswith("("):
        raise ClassFormatError(f"Method descriptor must start with '(': {descriptor!r}")

    parameters: List[JavaType] = []
    position = 1
    while position < len(descriptor) and descriptor[position] != ")":
        java_type, position = _read_field_type(descriptor, position)
        parameters.append(java_type)
    if position >= len(descriptor):
        raise ClassFormatError(f"Unterminated parameter list: {descriptor!r}")

    return_part = descriptor[position + 1:]
    if return_part == VOID_DESCRIPTOR:
        return tuple(parameters), VOID
    return tuple(parameters), parse_field_descriptor(return_part)
