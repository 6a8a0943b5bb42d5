"""Minimal struct-based parser for compiled JVM class files.

Reads just enough of a class file to describe its API surface:

    - constant pool
    - access flags, this class, super class, interfaces
    - methods (access flags, name, descriptor) in declaration order
    - the ``InnerClasses`` attribute, for the modifiers of member classes
    - the ``Module`` attribute of ``module-info.class``, for exported packages
    - the ``ModuleResolution`` attribute, for modules left out of the default roots

Fields are skipped, as are code and every other attribute.

Reference:
    Java Virtual Machine Specification, chapter 4 "The class File Format".
"""

import struct
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from ..utils.error_handling import ClassFormatError

CLASS_MAGIC = 0xCAFEBABE

# Access flags
ACC_PUBLIC = 0x0001
ACC_PRIVATE = 0x0002
ACC_PROTECTED = 0x0004
ACC_STATIC = 0x0008
ACC_FINAL = 0x0010
ACC_SUPER = 0x0020
ACC_SYNCHRONIZED = 0x0020
ACC_BRIDGE = 0x0040
ACC_VARARGS = 0x0080
ACC_NATIVE = 0x0100
ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400
ACC_STRICT = 0x0800
ACC_SYNTHETIC = 0x1000
ACC_ANNOTATION = 0x2000
ACC_ENUM = 0x4000
ACC_MODULE = 0x8000

# Constant pool tags
CONSTANT_UTF8 = 1
CONSTANT_INTEGER = 3
CONSTANT_FLOAT = 4
CONSTANT_LONG = 5
CONSTANT_DOUBLE = 6
CONSTANT_CLASS = 7
CONSTANT_STRING = 8
CONSTANT_FIELDREF = 9
CONSTANT_METHODREF = 10
CONSTANT_INTERFACE_METHODREF = 11
CONSTANT_NAME_AND_TYPE = 12
CONSTANT_METHOD_HANDLE = 15
CONSTANT_METHOD_TYPE = 16
CONSTANT_DYNAMIC = 17
CONSTANT_INVOKE_DYNAMIC = 18
CONSTANT_MODULE = 19
CONSTANT_PACKAGE = 20

# Payload sizes of the fixed-size constant pool entries
_CONSTANT_SIZES = {
    CONSTANT_INTEGER: 4,
    CONSTANT_FLOAT: 4,
    CONSTANT_LONG: 8,
    CONSTANT_DOUBLE: 8,
    CONSTANT_CLASS: 2,
    CONSTANT_STRING: 2,
    CONSTANT_FIELDREF: 4,
    CONSTANT_METHODREF: 4,
    CONSTANT_INTERFACE_METHODREF: 4,
    CONSTANT_NAME_AND_TYPE: 4,
    CONSTANT_METHOD_HANDLE: 3,
    CONSTANT_METHOD_TYPE: 2,
    CONSTANT_DYNAMIC: 4,
    CONSTANT_INVOKE_DYNAMIC: 4,
    CONSTANT_MODULE: 2,
    CONSTANT_PACKAGE: 2,
}

# Entries that take two constant pool slots
_WIDE_CONSTANTS = (CONSTANT_LONG, CONSTANT_DOUBLE)

# Entries whose payload is a single index to a Utf8 name
_NAMED_CONSTANTS = (CONSTANT_CLASS, CONSTANT_MODULE, CONSTANT_PACKAGE)

# ModuleResolution flags
DO_NOT_RESOLVE_BY_DEFAULT = 0x0001
WARN_DEPRECATED = 0x0002
WARN_DEPRECATED_FOR_REMOVAL = 0x0004
WARN_INCUBATING = 0x0008

CONSTRUCTOR_NAME = "<init>"
STATIC_INITIALIZER_NAME = "<clinit>"


def is_public_or_protected(access_flags: int) -> bool:
    """Return True if the flags make a class or member visible outside its package."""
    return bool(access_flags & (ACC_PUBLIC | ACC_PROTECTED))


def package_of(class_name: str) -> str:
    """Return the slash-separated package of an internal class name ('' if unnamed)."""
    separator = class_name.rfind("/")
    return class_name[:separator] if separator >= 0 else ""


def decode_modified_utf8(raw: bytes) -> str:
    """Decode the modified UTF-8 used for class file strings."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass
    # Embedded NUL is written as C0 80 and supplementary characters as
    # surrogate pairs; both are rejected by the strict codec.
    text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


@dataclass(frozen=True)
class MethodInfo:
    """A declared method or constructor."""

    access_flags: int
    name: str
    descriptor: str

    @property
    def is_constructor(self) -> bool:
        return self.name == CONSTRUCTOR_NAME

    @property
    def is_static_initializer(self) -> bool:
        return self.name == STATIC_INITIALIZER_NAME


@dataclass(frozen=True)
class InnerClassInfo:
    """One entry of the InnerClasses attribute."""

    inner_class: str
    outer_class: Optional[str]
    inner_name: Optional[str]
    access_flags: int


@dataclass(frozen=True)
class ModuleExport:
    """An ``exports`` directive; ``targets`` is empty for unqualified exports."""

    package: str
    flags: int
    targets: Tuple[str, ...] = ()

    @property
    def is_qualified(self) -> bool:
        return bool(self.targets)


@dataclass(frozen=True)
class ModuleInfo:
    """Content of a Module attribute relevant to package visibility."""

    name: str
    flags: int
    requires: Tuple[str, ...] = ()
    exports: Tuple[ModuleExport, ...] = ()
    resolution_flags: int = 0

    @property
    def exported_packages(self) -> frozenset:
        """Packages exported to every module."""
        return frozenset(e.package for e in self.exports if not e.is_qualified)

    @property
    def resolved_by_default(self) -> bool:
        """False for modules (e.g. incubator modules) left out of the default root set."""
        return not self.resolution_flags & DO_NOT_RESOLVE_BY_DEFAULT


@dataclass
class ClassFile:
    """Parsed view of one class file."""

    major_version: int
    minor_version: int
    access_flags: int
    this_class: str
    super_class: Optional[str]
    interfaces: List[str] = field(default_factory=list)
    methods: List[MethodInfo] = field(default_factory=list)
    inner_classes: List[InnerClassInfo] = field(default_factory=list)
    module: Optional[ModuleInfo] = None

    @property
    def modifiers(self) -> int:
        """Effective class modifiers.

        A member class is compiled with widened flags (a protected nested
        class is public in the class file); its declared flags live in its
        own InnerClasses entry.
        """
        for inner in self.inner_classes:
            if inner.inner_class == self.this_class:
                return inner.access_flags
        return self.access_flags

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & ACC_INTERFACE)

    @property
    def is_module_info(self) -> bool:
        return bool(self.access_flags & ACC_MODULE)

    @property
    def package(self) -> str:
        return package_of(self.this_class)

    @property
    def constructors(self) -> List[MethodInfo]:
        return [m for m in self.methods if m.is_constructor]

    @property
    def declared_methods(self) -> List[MethodInfo]:
        """Declared methods, without constructors and the static initializer."""
        return [m for m in self.methods if not (m.is_constructor or m.is_static_initializer)]


class ClassFileParser:
    """Parses class file bytes into a :class:`ClassFile`.

    Usage::

        class_file = ClassFileParser(data).parse()
        for method in class_file.declared_methods:
            print(method.name, method.descriptor)
    """

    def __init__(self, data: bytes, source_name: Optional[str] = None):
        """Initialize the parser.

        Args:
            data: Complete class file contents
            source_name: Class name used in error messages
        """
        self._data = data
        self._offset = 0
        self._source_name = source_name
        self._utf8: Dict[int, str] = {}
        self._named: Dict[int, Tuple[int, int]] = {}

    def parse(self) -> ClassFile:
        """Parse the class file.

        Returns:
            Parsed ClassFile

        Raises:
            ClassFormatError: If the data is not a well-formed class file.
        """
        try:
            return self._parse()
        except (struct.error, IndexError, KeyError) as e:
            raise ClassFormatError(f"Truncated or corrupt class file ({e})", self._source_name) from e
        except UnicodeDecodeError as e:
            raise ClassFormatError(f"Invalid string constant ({e})", self._source_name) from e

    def _parse(self) -> ClassFile:
        if len(self._data) < 10:
            raise ClassFormatError("Truncated class file header", self._source_name)
        if self._u4() != CLASS_MAGIC:
            raise ClassFormatError("Bad magic number", self._source_name)

        minor_version = self._u2()
        major_version = self._u2()
        self._parse_constant_pool()

        access_flags = self._u2()
        this_class = self._class_name(self._u2())
        super_index = self._u2()
        super_class = self._class_name(super_index) if super_index else None
        interfaces = [self._class_name(self._u2()) for _ in range(self._u2())]

        for _ in range(self._u2()):
            self._skip_member()

        methods = []
        for _ in range(self._u2()):
            method_flags = self._u2()
            name = self._utf8[self._u2()]
            descriptor = self._utf8[self._u2()]
            self._skip_attributes()
            methods.append(MethodInfo(method_flags, name, descriptor))

        class_file = ClassFile(
            major_version=major_version,
            minor_version=minor_version,
            access_flags=access_flags,
            this_class=this_class,
            super_class=super_class,
            interfaces=interfaces,
            methods=methods,
        )
        self._parse_class_attributes(class_file)
        return class_file

    # Primitive readers

    def _u1(self) -> int:
        value = self._data[self._offset]
        self._offset += 1
        return value

    def _u2(self) -> int:
        (value,) = struct.unpack_from(">H", self._data, self._offset)
        self._offset += 2
        return value

    def _u4(self) -> int:
        (value,) = struct.unpack_from(">I", self._data, self._offset)
        self._offset += 4
        return value

    def _skip(self, length: int) -> None:
        if self._offset + length > len(self._data):
            raise ClassFormatError("Unexpected end of class file", self._source_name)
        self._offset += length

    # Constant pool

    def _parse_constant_pool(self) -> None:
        count = self._u2()
        index = 1
        while index < count:
            tag = self._u1()
            if tag == CONSTANT_UTF8:
                length = self._u2()
                raw = self._data[self._offset:self._offset + length]
                self._skip(length)
                self._utf8[index] = decode_modified_utf8(raw)
            elif tag in _NAMED_CONSTANTS:
                self._named[index] = (tag, self._u2())
            elif tag in _CONSTANT_SIZES:
                self._skip(_CONSTANT_SIZES[tag])
            else:
                raise ClassFormatError(f"Unknown constant pool tag {tag} at index {index}", self._source_name)
            index += 2 if tag in _WIDE_CONSTANTS else 1

    def _named_constant(self, index: int, expected_tag: int) -> str:
        tag, name_index = self._named[index]
        if tag != expected_tag:
            raise ClassFormatError(
                f"Constant pool entry {index} has tag {tag}, expected {expected_tag}",
                self._source_name,
            )
        return self._utf8[name_index]

    def _class_name(self, index: int) -> str:
        return self._named_constant(index, CONSTANT_CLASS)

    # Members and attributes

    def _skip_member(self) -> None:
        self._skip(6)
        self._skip_attributes()

    def _skip_attributes(self) -> None:
        for _ in range(self._u2()):
            self._skip(2)
            self._skip(self._u4())

    def _parse_class_attributes(self, class_file: ClassFile) -> None:
        resolution_flags = 0
        for _ in range(self._u2()):
            name = self._utf8[self._u2()]
            length = self._u4()
            end = self._offset + length
            if end > len(self._data):
                raise ClassFormatError(f"Attribute {name} runs past end of file", self._source_name)
            if name == "InnerClasses":
                class_file.inner_classes = self._parse_inner_classes()
            elif name == "Module":
                class_file.module = self._parse_module()
            elif name == "ModuleResolution":
                resolution_flags = self._u2()
            self._offset = end

        if class_file.module is not None and resolution_flags:
            class_file.module = replace(class_file.module, resolution_flags=resolution_flags)

    def _parse_inner_classes(self) -> List[InnerClassInfo]:
        entries = []
        for _ in range(self._u2()):
            inner_index = self._u2()
            outer_index = self._u2()
            name_index = self._u2()
            flags = self._u2()
            entries.append(InnerClassInfo(
                inner_class=self._class_name(inner_index),
                outer_class=self._class_name(outer_index) if outer_index else None,
                inner_name=self._utf8[name_index] if name_index else None,
                access_flags=flags,
            ))
        return entries

    def _parse_module(self) -> ModuleInfo:
        name = self._named_constant(self._u2(), CONSTANT_MODULE)
        flags = self._u2()
        self._u2()  # module_version_index

        requires = []
        for _ in range(self._u2()):
            requires.append(self._named_constant(self._u2(), CONSTANT_MODULE))
            self._skip(4)  # requires_flags, requires_version_index

        exports = []
        for _ in range(self._u2()):
            package = self._named_constant(self._u2(), CONSTANT_PACKAGE)
            export_flags = self._u2()
            targets = tuple(
                self._named_constant(self._u2(), CONSTANT_MODULE)
                for _ in range(self._u2())
            )
            exports.append(ModuleExport(package, export_flags, targets))

        # opens, uses and provides do not affect exported packages
        return ModuleInfo(name=name, flags=flags, requires=tuple(requires), exports=tuple(exports))


def parse_class_file(data: bytes, source_name: Optional[str] = None) -> ClassFile:
    """Parse class file bytes; see :class:`ClassFileParser`."""
    return ClassFileParser(data, source_name).parse()
