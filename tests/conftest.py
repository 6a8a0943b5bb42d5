"""Shared fixtures: in-memory class files and a small exploded runtime image."""

import struct
from pathlib import Path

import pytest

from jdk_class_reader.introspection.class_file import (
    ACC_ABSTRACT,
    ACC_FINAL,
    ACC_INTERFACE,
    ACC_MODULE,
    ACC_PRIVATE,
    ACC_PROTECTED,
    ACC_PUBLIC,
    ACC_STATIC,
    ACC_SUPER,
)


class ClassFileBuilder:
    """Assembles class file bytes with just the structures the parser reads."""

    def __init__(self):
        self._entries = []
        self._indexes = {}
        self._next_index = 1

    def _add(self, key, entry, slots=1):
        if key not in self._indexes:
            self._indexes[key] = self._next_index
            self._entries.append(entry)
            self._next_index += slots
        return self._indexes[key]

    def utf8(self, text):
        raw = text.encode("utf-8")
        return self._add(("utf8", text), b"\x01" + struct.pack(">H", len(raw)) + raw)

    def _named(self, tag, name):
        return self._add((tag, name), bytes([tag]) + struct.pack(">H", self.utf8(name)))

    def class_ref(self, name):
        return self._named(7, name)

    def module_ref(self, name):
        return self._named(19, name)

    def package_ref(self, name):
        return self._named(20, name)

    def long_constant(self, value):
        return self._add(("long", value), b"\x05" + struct.pack(">q", value), slots=2)

    def string_constant(self, text):
        return self._add(("string", text), b"\x08" + struct.pack(">H", self.utf8(text)))

    @staticmethod
    def _attribute(name_index, payload):
        return struct.pack(">HI", name_index, len(payload)) + payload

    def build(self, this_class, super_class="java/lang/Object", access=ACC_PUBLIC | ACC_SUPER,
              interfaces=(), fields=(), methods=(), inner_classes=(), module=None, module_resolution=None):
        this_index = self.class_ref(this_class)
        super_index = self.class_ref(super_class) if super_class else 0
        interface_indexes = [self.class_ref(i) for i in interfaces]
        self.long_constant(42)
        self.string_constant("padding")

        field_bytes = b""
        for flags, name, descriptor in fields:
            field_bytes += struct.pack(">HHHH", flags, self.utf8(name), self.utf8(descriptor), 0)

        code_name = self.utf8("Code")
        method_bytes = b""
        for flags, name, descriptor in methods:
            code = self._attribute(code_name, b"\x00\x01\x00\x01\x00\x00\x00\x01\xb1\x00\x00\x00\x00")
            method_bytes += struct.pack(">HHHH", flags, self.utf8(name), self.utf8(descriptor), 1) + code

        attributes = []
        if inner_classes:
            payload = struct.pack(">H", len(inner_classes))
            for inner, outer, simple_name, flags in inner_classes:
                payload += struct.pack(
                    ">HHHH",
                    self.class_ref(inner),
                    self.class_ref(outer) if outer else 0,
                    self.utf8(simple_name) if simple_name else 0,
                    flags,
                )
            attributes.append(self._attribute(self.utf8("InnerClasses"), payload))
        if module_resolution is not None:
            attributes.append(self._attribute(self.utf8("ModuleResolution"), struct.pack(">H", module_resolution)))
        if module is not None:
            attributes.append(self._attribute(self.utf8("Module"), self._module_payload(*module)))
        attributes.append(self._attribute(self.utf8("SourceFile"), struct.pack(">H", self.utf8("X.java"))))

        pool = b"".join(self._entries)
        return (
            struct.pack(">IHHH", 0xCAFEBABE, 0, 65, self._next_index)
            + pool
            + struct.pack(">HHH", access, this_index, super_index)
            + struct.pack(">H", len(interface_indexes))
            + b"".join(struct.pack(">H", i) for i in interface_indexes)
            + struct.pack(">H", len(fields)) + field_bytes
            + struct.pack(">H", len(methods)) + method_bytes
            + struct.pack(">H", len(attributes)) + b"".join(attributes)
        )

    def _module_payload(self, name, exports, requires=("java.base",)):
        payload = struct.pack(">HHH", self.module_ref(name), 0, 0)
        payload += struct.pack(">H", len(requires))
        for required in requires:
            payload += struct.pack(">HHH", self.module_ref(required), 0, 0)
        payload += struct.pack(">H", len(exports))
        for package, targets in exports.items():
            payload += struct.pack(">HHH", self.package_ref(package), 0, len(targets))
            payload += b"".join(struct.pack(">H", self.module_ref(t)) for t in targets)
        # opens, uses, provides
        payload += struct.pack(">HHH", 0, 0, 0)
        return payload


def build_class(this_class, **kwargs):
    return ClassFileBuilder().build(this_class, **kwargs)


def build_module_info(name, exports, requires=("java.base",), resolution=None):
    return ClassFileBuilder().build(
        "module-info", super_class=None, access=ACC_MODULE, module=(name, exports, requires),
        module_resolution=resolution,
    )


OBJECT_CLASS = dict(
    super_class=None,
    methods=[
        (ACC_PUBLIC, "<init>", "()V"),
        (ACC_PRIVATE | ACC_STATIC, "registerNatives", "()V"),
        (ACC_PUBLIC, "hashCode", "()I"),
        (ACC_PUBLIC, "equals", "(Ljava/lang/Object;)Z"),
        (ACC_PROTECTED, "clone", "()Ljava/lang/Object;"),
        (ACC_STATIC, "<clinit>", "()V"),
    ],
)

STRING_CLASS = dict(
    access=ACC_PUBLIC | ACC_FINAL | ACC_SUPER,
    interfaces=["java/lang/CharSequence"],
    fields=[(ACC_PRIVATE | ACC_FINAL, "value", "[B"), (ACC_PRIVATE, "hash", "I")],
    methods=[
        (ACC_PUBLIC, "<init>", "()V"),
        (ACC_PUBLIC, "<init>", "([CII)V"),
        (0, "<init>", "([BB)V"),
        (ACC_PUBLIC, "length", "()I"),
        (ACC_PUBLIC, "charAt", "(I)C"),
        (ACC_PUBLIC, "split", "(Ljava/lang/String;)[Ljava/lang/String;"),
        (ACC_PUBLIC | ACC_STATIC, "valueOf", "(J)Ljava/lang/String;"),
        (ACC_PRIVATE, "isLatin1", "()Z"),
    ],
)

CHAR_SEQUENCE_CLASS = dict(
    access=ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT,
    methods=[(ACC_PUBLIC | ACC_ABSTRACT, "length", "()I")],
)

# (module, class name) -> class file bytes
IMAGE_CLASSES = {
    ("java.base", "java/lang/Object"): lambda: build_class("java/lang/Object", **OBJECT_CLASS),
    ("java.base", "java/lang/String"): lambda: build_class("java/lang/String", **STRING_CLASS),
    ("java.base", "java/lang/CharSequence"): lambda: build_class("java/lang/CharSequence", **CHAR_SEQUENCE_CLASS),
    ("java.base", "java/lang/Broken"): lambda: build_class("java/lang/Broken", super_class="java/lang/Missing"),
    ("java.base", "java/lang/Corrupt"): lambda: b"\xca\xfe\xba\xbe\x00\x00",
    ("java.base", "java/util/Helper"): lambda: build_class("java/util/Helper", access=ACC_SUPER),
    ("java.base", "java/util/Outer$Nested"): lambda: build_class(
        "java/util/Outer$Nested",
        methods=[(ACC_PROTECTED, "<init>", "()V")],
        inner_classes=[("java/util/Outer$Nested", "java/util/Outer", "Nested", ACC_PROTECTED | ACC_STATIC)],
    ),
    ("java.base", "java/util/Outer$Hidden"): lambda: build_class(
        "java/util/Outer$Hidden",
        access=ACC_SUPER,
        inner_classes=[("java/util/Outer$Hidden", "java/util/Outer", "Hidden", ACC_PRIVATE | ACC_STATIC)],
    ),
    ("java.base", "jdk/internal/misc/Unsafe"): lambda: build_class(
        "jdk/internal/misc/Unsafe",
        access=ACC_PUBLIC | ACC_FINAL | ACC_SUPER,
        methods=[(ACC_PUBLIC, "addressSize", "()I")],
    ),
    ("java.sql", "java/sql/Driver"): lambda: build_class(
        "java/sql/Driver",
        access=ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT,
        methods=[(ACC_PUBLIC | ACC_ABSTRACT, "acceptsURL", "(Ljava/lang/String;)Z")],
    ),
}

MODULE_EXPORTS = {
    "java.base": {"java/lang": (), "java/util": (), "jdk/internal/misc": ("jdk.unsupported",)},
    "java.sql": {"java/sql": ()},
}

LISTING = """jimage: modules

Module: java.base
    java/lang/Object.class
    java/lang/String.class
    java/lang/CharSequence.class
    java/lang/Broken.class
    java/lang/Corrupt.class
    java/lang/Missing.class
    java/util/Helper.class
    java/util/Outer$Nested.class
    java/util/Outer$Hidden.class
    jdk/internal/misc/Unsafe.class
    java/lang/uniName.dat
    module-info.class

Module: java.sql
    java/sql/Driver.class
    module-info.class

Module: jdk.internal.vm.ci
    jdk/vm/ci/code/Architecture.class
    module-info.class
"""


def write_image(root: Path, classes=None, exports=None) -> Path:
    """Write an exploded image: ``<root>/<module>/<class>.class`` plus module descriptors."""
    classes = IMAGE_CLASSES if classes is None else classes
    exports = MODULE_EXPORTS if exports is None else exports
    for (module, class_name), factory in classes.items():
        path = root / module / (class_name + ".class")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(factory())
    for module, module_exports in exports.items():
        (root / module).mkdir(parents=True, exist_ok=True)
        (root / module / "module-info.class").write_bytes(build_module_info(module, module_exports))
    return root


@pytest.fixture
def image_dir(tmp_path):
    return write_image(tmp_path / "image")


@pytest.fixture
def listing_file(tmp_path):
    path = tmp_path / "modules.list"
    path.write_text(LISTING, encoding="utf-8")
    return path
