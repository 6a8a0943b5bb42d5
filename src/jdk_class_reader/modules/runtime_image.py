"""Access to a runtime image: the jimage utility and extracted class files."""

import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from ..introspection.class_file import package_of
from ..utils.error_handling import ClassNotFoundError, ClassResolutionError, ImageToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedClass:
    """Raw class file bytes and the module that defines the class."""

    class_name: str
    module_name: str
    data: bytes


class ExplodedImage:
    """Class source over an extracted image laid out as ``<root>/<module>/<class>.class``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._module_dirs: Optional[List[Path]] = None
        self._package_modules: Dict[str, str] = {}

    @property
    def module_dirs(self) -> List[Path]:
        if self._module_dirs is None:
            self._module_dirs = sorted(p for p in self.root.iterdir() if p.is_dir())
        return self._module_dirs

    def _find(self, class_name: str) -> Optional[Path]:
        relative = class_name + ".class"
        # Packages are never split across modules.
        cached_module = self._package_modules.get(package_of(class_name))
        if cached_module is not None:
            path = self.root / cached_module / relative
            if path.is_file():
                return path

        for module_dir in self.module_dirs:
            path = module_dir / relative
            if path.is_file():
                self._package_modules[package_of(class_name)] = module_dir.name
                return path
        return None

    def contains(self, class_name: str) -> bool:
        """Return True if a class file exists for ``class_name``."""
        return self._find(class_name) is not None

    def load(self, class_name: str) -> LoadedClass:
        """Read the class file for an internal class name.

        Raises:
            ClassNotFoundError: If no module contains the class.
        """
        path = self._find(class_name)
        if path is None:
            raise ClassNotFoundError(class_name)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ClassResolutionError(class_name, f"cannot read {path}: {e}") from e
        return LoadedClass(class_name, path.relative_to(self.root).parts[0], data)


class RuntimeImage:
    """Runs the jimage utility against a module archive (e.g. ``lib/modules``)."""

    def __init__(self, archive: Union[str, Path], jimage: str = "jimage"):
        """Initialize the runtime image.

        Args:
            archive: Path to the module archive
            jimage: jimage executable name or path
        """
        self.archive = Path(archive)
        self.jimage = jimage

    def _run(self, *arguments: str) -> str:
        command = [self.jimage, *arguments]
        logger.debug(f"Running {' '.join(command)}")
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            raise ImageToolError(f"Failed to run {self.jimage}: {e}") from e

        if result.returncode != 0:
            raise ImageToolError(
                f"{' '.join(command)} exited with status {result.returncode}: {result.stderr.strip()}"
            )
        return result.stdout

    def list_contents(self) -> str:
        """Return the text output of ``jimage list``."""
        logger.info(f"Listing module archive {self.archive}")
        return self._run("list", str(self.archive))

    def extract(self, target_dir: Union[str, Path]) -> ExplodedImage:
        """Extract all resources into ``target_dir`` and return it as a class source."""
        target = Path(target_dir)
        logger.info(f"Extracting module archive {self.archive} to {target}")
        self._run("extract", "--dir", str(target), str(self.archive))
        return ExplodedImage(target)

    @contextmanager
    def extracted(self, keep: bool = False) -> Iterator[ExplodedImage]:
        """Extract into a temporary directory for the duration of a ``with`` block.

        Args:
            keep: Leave the directory in place after the block
        """
        target = Path(tempfile.mkdtemp(prefix="jdk-class-reader-"))
        try:
            yield self.extract(target)
        finally:
            if keep:
                logger.info(f"Keeping extracted image at {target}")
            else:
                shutil.rmtree(target, ignore_errors=True)
