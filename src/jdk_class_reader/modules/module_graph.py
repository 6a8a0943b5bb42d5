"""Module graph: which packages each platform module exports."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Set, Union

import yaml

from ..introspection.class_file import ModuleInfo, parse_class_file
from ..utils.error_handling import ClassFormatError, ModuleGraphError

logger = logging.getLogger(__name__)

MODULE_INFO_FILE = "module-info.class"


@dataclass(frozen=True)
class ModuleEntry:
    """A module and the packages it exports to every other module.

    Package names use the internal slash form (``java/util``).
    """

    name: str
    exported_packages: FrozenSet[str] = frozenset()

    def is_exported(self, package: str) -> bool:
        return package in self.exported_packages


class ModuleGraph:
    """Maps module names to their :class:`ModuleEntry`.

    A graph is built once per run and passed to the listing parser and the
    class introspector; it stands in for the platform's boot module layer.
    """

    def __init__(self, modules: Iterable[ModuleEntry] = ()):
        self._modules: Dict[str, ModuleEntry] = {m.name: m for m in modules}

    def __contains__(self, module_name: str) -> bool:
        return module_name in self._modules

    def __iter__(self) -> Iterator[ModuleEntry]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def find_module(self, module_name: str) -> Optional[ModuleEntry]:
        """Return the entry for a module, or None if it is not in the graph."""
        return self._modules.get(module_name)

    def is_exported(self, module_name: str, package: str) -> bool:
        """Return True if ``module_name`` is in the graph and exports ``package``."""
        module = self._modules.get(module_name)
        return module is not None and module.is_exported(package)

    @classmethod
    def from_image_dir(cls, image_dir: Union[str, Path]) -> "ModuleGraph":
        """Build the graph from ``<image_dir>/<module>/module-info.class`` files.

        Only the modules the boot layer would resolve are included: the
        default roots (modules that export at least one package to everyone
        and are not marked ``DO_NOT_RESOLVE_BY_DEFAULT``) and every module
        they require, directly or transitively.

        Args:
            image_dir: Root of an extracted (exploded) runtime image

        Returns:
            Module graph with one entry per resolved module descriptor

        Raises:
            ModuleGraphError: If the directory does not exist.
        """
        root = Path(image_dir)
        if not root.is_dir():
            raise ModuleGraphError(f"Image directory does not exist: {root}")

        descriptors: Dict[str, ModuleInfo] = {}
        for module_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            descriptor_path = module_dir / MODULE_INFO_FILE
            if not descriptor_path.is_file():
                continue
            try:
                class_file = parse_class_file(descriptor_path.read_bytes(), str(descriptor_path))
            except ClassFormatError as e:
                logger.warning(f"Skipping unreadable module descriptor {descriptor_path}: {e}")
                continue
            if class_file.module is None:
                logger.warning(f"No Module attribute in {descriptor_path}, skipping")
                continue
            descriptors[class_file.module.name] = class_file.module

        resolved = _resolve_default_modules(descriptors)
        for name in sorted(set(descriptors) - resolved):
            logger.debug(f"Module {name} is not resolved by default, skipping")

        modules = [
            ModuleEntry(name, module.exported_packages)
            for name, module in descriptors.items()
            if name in resolved
        ]
        logger.info(f"Built module graph with {len(modules)} modules from {root}")
        return cls(modules)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "ModuleGraph":
        """Load a graph written by :meth:`to_yaml`.

        Expected layout::

            modules:
              java.base:
                exports:
                  - java/lang
                  - java/util

        Dotted package names are accepted.
        """
        path = Path(yaml_path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ModuleGraphError(f"Failed to load module graph from {path}: {e}") from e

        raw_modules = data.get("modules") if isinstance(data, dict) else None
        if not isinstance(raw_modules, dict):
            raise ModuleGraphError(f"Module graph file {path} has no 'modules' mapping")

        modules = []
        for name, module_data in raw_modules.items():
            exports = (module_data or {}).get("exports") or []
            packages = frozenset(str(p).replace(".", "/") for p in exports)
            modules.append(ModuleEntry(str(name), packages))

        logger.debug(f"Loaded {len(modules)} modules from {path}")
        return cls(modules)

    def to_yaml(self, yaml_path: Union[str, Path]) -> str:
        """Write the graph as YAML.

        Returns:
            Path of the written file
        """
        path = Path(yaml_path)
        data = {
            "modules": {
                module.name: {"exports": sorted(module.exported_packages)}
                for module in sorted(self, key=lambda m: m.name)
            }
        }
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Wrote module graph with {len(self)} modules to {path}")
        return str(path)


def _resolve_default_modules(descriptors: Dict[str, ModuleInfo]) -> Set[str]:
    """Return the default root modules and everything they require."""
    pending = [
        name for name, module in descriptors.items()
        if module.resolved_by_default and module.exported_packages
    ]
    resolved: Set[str] = set()
    while pending:
        name = pending.pop()
        if name in resolved:
            continue
        resolved.add(name)
        module = descriptors.get(name)
        if module is None:
            logger.warning(f"Required module {name} has no descriptor in the image")
            continue
        pending.extend(module.requires)
    return resolved & set(descriptors)
