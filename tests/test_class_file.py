"""Test the class file parser."""

import pytest

from jdk_class_reader.introspection.class_file import (
    ACC_PRIVATE,
    ACC_PROTECTED,
    ACC_PUBLIC,
    ACC_STATIC,
    decode_modified_utf8,
    is_public_or_protected,
    package_of,
    parse_class_file,
)
from jdk_class_reader.utils.error_handling import ClassFormatError

from conftest import STRING_CLASS, build_class, build_module_info


def test_parse_basic_structure():
    """Test this class, super class, interfaces and methods in order."""
    class_file = parse_class_file(build_class("java/lang/String", **STRING_CLASS))

    assert class_file.this_class == "java/lang/String"
    assert class_file.super_class == "java/lang/Object"
    assert class_file.interfaces == ["java/lang/CharSequence"]
    assert class_file.major_version == 65
    assert class_file.package == "java/lang"
    assert [m.name for m in class_file.methods] == [
        "<init>", "<init>", "<init>", "length", "charAt", "split", "valueOf", "isLatin1",
    ]
    assert [m.descriptor for m in class_file.constructors] == ["()V", "([CII)V", "([BB)V"]
    assert "<init>" not in [m.name for m in class_file.declared_methods]


def test_root_class_has_no_super_class():
    """Test that a zero super_class index yields None."""
    class_file = parse_class_file(build_class("java/lang/Object", super_class=None))
    assert class_file.super_class is None


def test_static_initializer_is_not_a_declared_method():
    """Test that <clinit> is excluded from declared methods."""
    class_file = parse_class_file(build_class(
        "a/B",
        methods=[(ACC_STATIC, "<clinit>", "()V"), (ACC_PUBLIC, "run", "()V")],
    ))
    assert [m.name for m in class_file.declared_methods] == ["run"]


def test_member_class_modifiers_come_from_inner_classes():
    """Test that a protected nested class reports its declared modifiers."""
    class_file = parse_class_file(build_class(
        "a/Outer$Inner",
        access=ACC_PUBLIC,
        inner_classes=[
            ("a/Outer$Inner", "a/Outer", "Inner", ACC_PROTECTED | ACC_STATIC),
            ("a/Outer$Other", "a/Outer", "Other", ACC_PRIVATE),
        ],
    ))

    assert class_file.access_flags == ACC_PUBLIC
    assert class_file.modifiers == ACC_PROTECTED | ACC_STATIC
    assert len(class_file.inner_classes) == 2
    assert class_file.inner_classes[0].inner_name == "Inner"


def test_top_level_class_modifiers():
    """Test that a class absent from InnerClasses keeps its own flags."""
    class_file = parse_class_file(build_class(
        "a/Outer",
        access=ACC_PUBLIC,
        inner_classes=[("a/Outer$Inner", "a/Outer", "Inner", ACC_PRIVATE)],
    ))
    assert class_file.modifiers == ACC_PUBLIC


def test_module_info_exports():
    """Test that only unqualified exports count as exported packages."""
    class_file = parse_class_file(build_module_info(
        "java.base",
        {"java/lang": (), "jdk/internal/misc": ("jdk.unsupported", "java.desktop")},
    ))

    assert class_file.is_module_info
    assert class_file.module.name == "java.base"
    assert class_file.module.exported_packages == frozenset({"java/lang"})

    qualified = [e for e in class_file.module.exports if e.is_qualified]
    assert qualified[0].targets == ("jdk.unsupported", "java.desktop")


def test_module_resolution_flags():
    """Test that ModuleResolution flags and requires are read from module-info."""
    class_file = parse_class_file(build_module_info(
        "jdk.incubator.vector", {"jdk/incubator/vector": ()}, resolution=0x0009,
    ))

    assert class_file.module.resolution_flags == 0x0009
    assert class_file.module.requires == ("java.base",)
    assert not class_file.module.resolved_by_default

    plain = parse_class_file(build_module_info("java.sql", {"java/sql": ()}, requires=("java.base", "java.xml")))
    assert plain.module.requires == ("java.base", "java.xml")
    assert plain.module.resolved_by_default


def test_bad_magic():
    """Test that data without the class file magic is rejected."""
    with pytest.raises(ClassFormatError, match="magic"):
        parse_class_file(b"\x00" * 32, "a/B")


def test_truncated_class_file():
    """Test that truncated data raises ClassFormatError naming the class."""
    data = build_class("a/B", methods=[(ACC_PUBLIC, "run", "()V")])

    with pytest.raises(ClassFormatError) as exc_info:
        parse_class_file(data[:len(data) // 2], "a/B")
    assert exc_info.value.class_name == "a/B"


def test_modified_utf8_decoding():
    """Test NUL and supplementary characters in modified UTF-8."""
    assert decode_modified_utf8(b"plain") == "plain"
    assert decode_modified_utf8(b"a\xc0\x80b") == "a\x00b"
    # U+1F600 as a surrogate pair
    assert decode_modified_utf8(b"\xed\xa0\xbd\xed\xb8\x80") == "\U0001F600"


def test_visibility_helpers():
    """Test access flag and package helpers."""
    assert is_public_or_protected(ACC_PUBLIC)
    assert is_public_or_protected(ACC_PROTECTED | ACC_STATIC)
    assert not is_public_or_protected(ACC_PRIVATE)
    assert not is_public_or_protected(0)

    assert package_of("java/util/Map$Entry") == "java/util"
    assert package_of("Unnamed") == ""
