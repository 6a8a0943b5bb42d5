"""Extraction pipeline: module listing to classinfo file."""

import logging
import os
import tempfile
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .config import ExtractorConfig
from .generation.record_writer import RecordWriter
from .introspection.class_introspector import ClassIntrospector
from .modules.listing_parser import ModuleListingParser
from .modules.module_graph import ModuleGraph
from .modules.runtime_image import ExplodedImage, RuntimeImage
from .utils.error_handling import (
    ClassNotFoundError,
    ClassResolutionError,
    ModuleGraphError,
    OutputWriteError,
)

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Counters for one pipeline run."""

    output_path: str
    written: int = 0
    filtered: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.written + self.filtered + len(self.failed)


class ExtractionPipeline:
    """Introspects classes one by one and writes their records.

    Classes that cannot be resolved are reported and skipped; failing to
    write the output aborts the run.
    """

    def __init__(self, introspector: ClassIntrospector):
        self.introspector = introspector

    def run(self, class_names: Iterable[str], output_path: Union[str, Path]) -> ExtractionResult:
        """Write the records of ``class_names`` to ``output_path``.

        The records are written to a temporary file next to the destination,
        which replaces the destination once every record has been written.

        Raises:
            OutputWriteError: If the output cannot be created or written.
        """
        destination = Path(output_path)
        result = ExtractionResult(output_path=str(destination))

        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
            )
        except OSError as e:
            raise OutputWriteError(f"Cannot create output in {destination.parent}: {e}") from e

        try:
            with open(fd, 'w', encoding='utf-8', newline='\n') as stream:
                writer = RecordWriter(stream)
                for class_name in class_names:
                    self._process(class_name, writer, result)
                stream.flush()
                os.fsync(stream.fileno())
            os.chmod(temp_name, 0o644)
            os.replace(temp_name, destination)
        except OSError as e:
            self._discard(temp_name)
            raise OutputWriteError(f"Failed to write {destination}: {e}") from e
        except BaseException:
            self._discard(temp_name)
            raise

        logger.info(
            f"Wrote {result.written} classes to {destination} "
            f"({result.filtered} filtered, {len(result.failed)} failed)"
        )
        return result

    def _process(self, class_name: str, writer: RecordWriter, result: ExtractionResult) -> None:
        try:
            record = self.introspector.introspect(class_name)
        except ClassNotFoundError:
            logger.warning(f"Class not found: {class_name}! Skipping...")
            result.failed.append(class_name)
            return
        except ClassResolutionError as e:
            logger.warning(f"Failed to load class {class_name}: {e.reason}")
            result.failed.append(class_name)
            return

        if record is None:
            result.filtered += 1
            return

        writer.write(record)
        result.written += 1

    @staticmethod
    def _discard(temp_name: str) -> None:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass


def load_module_graph(image: ExplodedImage, module_graph_path: Optional[str] = None) -> ModuleGraph:
    """Load the module graph from a YAML file if given, else from the image."""
    if module_graph_path:
        return ModuleGraph.from_yaml(module_graph_path)
    return ModuleGraph.from_image_dir(image.root)


def collect_class_names(
    archive: Optional[str],
    module_graph: ModuleGraph,
    config: ExtractorConfig,
    listing_path: Optional[str] = None,
) -> List[str]:
    """Read the module listing (saved file or ``jimage list``) and parse it."""
    parser = ModuleListingParser(module_graph)
    if listing_path:
        with open(listing_path, 'r', encoding='utf-8') as f:
            return parser.parse(f)
    if not archive:
        raise ValueError("Either a module archive or a saved listing is required")
    listing = RuntimeImage(archive, config.jimage_command).list_contents()
    return parser.parse(listing.splitlines())


def extract_api(
    archive: Optional[str],
    output_path: str,
    config: ExtractorConfig,
    image_dir: Optional[str] = None,
    listing_path: Optional[str] = None,
    module_graph_path: Optional[str] = None,
) -> ExtractionResult:
    """Run the complete extraction for a module archive.

    Args:
        archive: Module archive, e.g. ``$JAVA_HOME/lib/modules``
        output_path: Classinfo file to create
        config: Extraction settings
        image_dir: Already extracted image; skips ``jimage extract``
        listing_path: Saved ``jimage list`` output; skips ``jimage list``
        module_graph_path: YAML module graph replacing the image's descriptors

    Returns:
        ExtractionResult with the run's counters
    """
    with ExitStack() as stack:
        if image_dir:
            if not Path(image_dir).is_dir():
                raise ModuleGraphError(f"Image directory does not exist: {image_dir}")
            image = ExplodedImage(image_dir)
        elif archive:
            runtime_image = RuntimeImage(archive, config.jimage_command)
            image = stack.enter_context(runtime_image.extracted(keep=config.keep_extracted))
        else:
            raise ValueError("Either a module archive or an image directory is required")

        module_graph = load_module_graph(image, module_graph_path)
        class_names = collect_class_names(archive, module_graph, config, listing_path)

        introspector = ClassIntrospector(
            image,
            module_graph,
            filter_exports=config.filter_exports,
            verify_linkage=config.verify_linkage,
        )
        return ExtractionPipeline(introspector).run(class_names, output_path)
