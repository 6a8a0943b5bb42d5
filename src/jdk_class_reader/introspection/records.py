"""Records describing the API surface of one class."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .class_file import CONSTRUCTOR_NAME
from .descriptors import VOID_DESCRIPTOR


class MemberKind(Enum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"


@dataclass(frozen=True)
class MemberSignature:
    """A constructor or method by name and encoded types."""

    kind: MemberKind
    name: str
    parameter_descriptors: Tuple[str, ...]
    return_descriptor: str

    @classmethod
    def constructor(cls, parameter_descriptors: Tuple[str, ...]) -> "MemberSignature":
        return cls(MemberKind.CONSTRUCTOR, CONSTRUCTOR_NAME, tuple(parameter_descriptors), VOID_DESCRIPTOR)

    @classmethod
    def method(cls, name: str, parameter_descriptors: Tuple[str, ...], return_descriptor: str) -> "MemberSignature":
        return cls(MemberKind.METHOD, name, tuple(parameter_descriptors), return_descriptor)

    @property
    def descriptor(self) -> str:
        """``name(params)return``, e.g. ``indexOf(Ljava/lang/String;I)I``."""
        return f"{self.name}({''.join(self.parameter_descriptors)}){self.return_descriptor}"


@dataclass(frozen=True)
class ClassRecord:
    """Extracted API surface of one class.

    ``members`` lists constructors first, then methods.
    """

    class_name: str
    super_class_name: Optional[str]
    members: Tuple[MemberSignature, ...] = ()

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def constructors(self) -> Tuple[MemberSignature, ...]:
        return tuple(m for m in self.members if m.kind is MemberKind.CONSTRUCTOR)

    @property
    def methods(self) -> Tuple[MemberSignature, ...]:
        return tuple(m for m in self.members if m.kind is MemberKind.METHOD)
