"""Class introspection: from a class name to its visible API surface."""

import logging
from typing import TYPE_CHECKING, List, Optional, Protocol

from .class_file import ClassFile, MethodInfo, is_public_or_protected, parse_class_file
from .descriptors import encode_type, parse_method_descriptor
from .records import ClassRecord, MemberSignature
from ..utils.error_handling import ClassFormatError, ClassLinkageError

if TYPE_CHECKING:
    from ..modules.module_graph import ModuleGraph
    from ..modules.runtime_image import LoadedClass

logger = logging.getLogger(__name__)


class ClassSource(Protocol):
    """Anything that can load class files by internal name."""

    def load(self, class_name: str) -> "LoadedClass":
        ...

    def contains(self, class_name: str) -> bool:
        ...


class ClassIntrospector:
    """Builds :class:`ClassRecord` objects for visible classes.

    A class is visible when its modifiers are public or protected and, with
    export filtering enabled, its package is exported by its module.
    """

    def __init__(
        self,
        source: ClassSource,
        module_graph: "ModuleGraph",
        filter_exports: bool = True,
        verify_linkage: bool = True,
    ):
        """Initialize the introspector.

        Args:
            source: Where class files are loaded from
            module_graph: Exported packages per module
            filter_exports: Skip classes whose package is not exported
            verify_linkage: Fail classes whose super class or interfaces
                cannot be loaded from ``source``
        """
        self.source = source
        self.module_graph = module_graph
        self.filter_exports = filter_exports
        self.verify_linkage = verify_linkage

    def resolve(self, class_name: str) -> tuple:
        """Load and parse a class.

        Returns:
            Tuple of (LoadedClass, ClassFile)

        Raises:
            ClassResolutionError: If the class is missing, malformed, or
                one of its supertypes is missing.
        """
        loaded = self.source.load(class_name)
        class_file = parse_class_file(loaded.data, class_name)
        if class_file.this_class != class_name:
            raise ClassFormatError(f"class file defines {class_file.this_class}", class_name)

        if self.verify_linkage:
            supertypes = [class_file.super_class] if class_file.super_class else []
            for supertype in supertypes + class_file.interfaces:
                if not self.source.contains(supertype):
                    raise ClassLinkageError(class_name, supertype)

        return loaded, class_file

    def is_visible(self, module_name: str, class_file: ClassFile) -> bool:
        """Apply the class-level modifier and export filters."""
        if not is_public_or_protected(class_file.modifiers):
            return False
        if self.filter_exports and not self.module_graph.is_exported(module_name, class_file.package):
            return False
        return True

    def introspect(self, class_name: str) -> Optional[ClassRecord]:
        """Extract the record for one class.

        Args:
            class_name: Internal class name, e.g. ``java/util/List``

        Returns:
            ClassRecord, or None if the class is not visible

        Raises:
            ClassResolutionError: If the class cannot be resolved.
        """
        loaded, class_file = self.resolve(class_name)

        if not self.is_visible(loaded.module_name, class_file):
            logger.debug(f"Filtered out {class_name} (module {loaded.module_name})")
            return None

        members: List[MemberSignature] = []
        for constructor in class_file.constructors:
            if is_public_or_protected(constructor.access_flags):
                parameters, _ = self._parse_descriptor(class_name, constructor)
                members.append(MemberSignature.constructor(tuple(encode_type(p) for p in parameters)))

        for method in class_file.declared_methods:
            if is_public_or_protected(method.access_flags):
                parameters, return_type = self._parse_descriptor(class_name, method)
                members.append(MemberSignature.method(
                    method.name,
                    tuple(encode_type(p) for p in parameters),
                    encode_type(return_type),
                ))

        # Interfaces name java/lang/Object in the class file but have no super class.
        super_class = None if class_file.is_interface else class_file.super_class
        return ClassRecord(class_name, super_class, tuple(members))

    @staticmethod
    def _parse_descriptor(class_name: str, method: MethodInfo) -> tuple:
        try:
            return parse_method_descriptor(method.descriptor)
        except ClassFormatError as e:
            raise ClassFormatError(f"method {method.name}: {e.reason}", class_name) from e
