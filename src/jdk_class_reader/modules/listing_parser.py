"""Parser for the text listing of a runtime image (``jimage list`` output)."""

import logging
from typing import Iterable, List, Optional

from ..introspection.class_file import package_of
from .module_graph import ModuleEntry, ModuleGraph

logger = logging.getLogger(__name__)

MODULE_HEADER = "Module:"
CLASS_SUFFIX = ".class"
MODULE_INFO_FILE = "module-info.class"


class ModuleListingParser:
    """Turns a module listing into the ordered list of visible class names.

    The listing is split into blocks by ``Module: <name>`` lines. Class files
    of modules in the graph are kept when their package is exported; all
    other lines are dropped without error.
    """

    def __init__(self, module_graph: ModuleGraph):
        """Initialize the parser.

        Args:
            module_graph: Modules to accept and the packages they export
        """
        self.module_graph = module_graph

    def parse(self, lines: Iterable[str]) -> List[str]:
        """Parse listing lines.

        Args:
            lines: Listing text, one entry per line

        Returns:
            Internal class names in listing order
        """
        classes: List[str] = []
        current: Optional[ModuleEntry] = None
        unknown_modules = []

        for raw_line in lines:
            line = raw_line.strip()
            if line.startswith(MODULE_HEADER):
                module_name = line[len(MODULE_HEADER):].strip()
                current = self.module_graph.find_module(module_name)
                if current is None:
                    unknown_modules.append(module_name)
                continue

            if current is None or not line.endswith(CLASS_SUFFIX):
                continue
            if line.rsplit("/", 1)[-1] == MODULE_INFO_FILE:
                continue

            class_name = line[:-len(CLASS_SUFFIX)]
            if current.is_exported(package_of(class_name)):
                classes.append(class_name)

        if unknown_modules:
            logger.debug(f"Ignored {len(unknown_modules)} modules not in the module graph: {unknown_modules}")
        logger.info(f"Found {len(classes)} candidate classes in module listing")
        return classes


def parse_module_listing(text: str, module_graph: ModuleGraph) -> List[str]:
    """Parse a whole listing held in a string."""
    return ModuleListingParser(module_graph).parse(text.splitlines())
