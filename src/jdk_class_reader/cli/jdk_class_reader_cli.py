"""Command-line interface for jdk-class-reader."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..config import DEFAULT_CONFIG_PATH, ExtractorConfig, load_config
from ..modules.module_graph import ModuleGraph
from ..modules.runtime_image import ExplodedImage, RuntimeImage
from ..pipeline import collect_class_names, extract_api, load_module_graph
from ..utils.error_handling import (
    ClassReaderError,
    format_user_error,
    format_user_warning,
)
from ..validation.record_reader import verify_classinfo

logger = logging.getLogger(__name__)


class JdkClassReaderCLI:
    """Command-line interface for extracting the JDK API surface."""

    def __init__(self):
        """Initialize the CLI."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="jdk-class-reader",
            description="Extract the public API surface of JDK runtime classes into a classinfo file",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Extract the API of the running JDK
  jdk-class-reader extract $JAVA_HOME/lib/modules jdk-classinfo.txt

  # Reuse an image extracted with 'jimage extract' and a saved 'jimage list'
  jdk-class-reader extract --image-dir /tmp/jdk21 --listing jdk21.list jdk21.txt

  # Show the classes that would be extracted
  jdk-class-reader list-classes $JAVA_HOME/lib/modules

  # Save the exported packages of every module
  jdk-class-reader dump-modules $JAVA_HOME/lib/modules --output modules.yaml

  # Check an existing classinfo file
  jdk-class-reader verify jdk-classinfo.txt
            """
        )

        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Enable verbose output"
        )

        parser.add_argument(
            "--config",
            type=str,
            default=DEFAULT_CONFIG_PATH,
            help="Path to configuration file"
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {__version__}"
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        # Extract command
        extract_parser = subparsers.add_parser("extract", help="Write the classinfo file for a module archive")
        extract_parser.add_argument("modules", nargs="?", help="Module archive, e.g. $JAVA_HOME/lib/modules")
        extract_parser.add_argument("output", help="Classinfo file to write")
        self._add_image_arguments(extract_parser)
        extract_parser.add_argument("--no-export-filter", action="store_true",
                                    help="Keep classes of packages that are not exported")
        extract_parser.add_argument("--no-verify-linkage", action="store_true",
                                    help="Keep classes whose super types are missing from the image")
        extract_parser.add_argument("--keep-extracted", action="store_true",
                                    help="Do not delete the temporary extracted image")

        # List classes command
        list_parser = subparsers.add_parser("list-classes", help="Print the candidate class names")
        list_parser.add_argument("modules", nargs="?", help="Module archive")
        self._add_image_arguments(list_parser)

        # Dump modules command
        dump_parser = subparsers.add_parser("dump-modules", help="Write the module graph as YAML")
        dump_parser.add_argument("modules", nargs="?", help="Module archive")
        dump_parser.add_argument("--image-dir", help="Already extracted image directory")
        dump_parser.add_argument("--output", required=True, help="YAML file to write")

        # Verify command
        verify_parser = subparsers.add_parser("verify", help="Check a classinfo file")
        verify_parser.add_argument("classinfo", help="Classinfo file to check")

        return parser

    @staticmethod
    def _add_image_arguments(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument("--image-dir", help="Already extracted image directory")
        subparser.add_argument("--listing", help="Saved 'jimage list' output")
        subparser.add_argument("--module-graph", help="YAML module graph written by dump-modules")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI with given arguments.

        Args:
            args: Command line arguments (defaults to sys.argv)

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            config = load_config(parsed_args.config)
            level = logging.DEBUG if parsed_args.verbose else config.logging_level
            logging.getLogger().setLevel(level)
            # Skipped-class warnings are part of the run report
            logging.getLogger("jdk_class_reader.pipeline").setLevel(min(level, logging.WARNING))

            handler_name = f"_handle_{parsed_args.command.replace('-', '_')}"
            handler = getattr(self, handler_name, None)

            if not handler:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

            return handler(parsed_args, config)

        except (ClassReaderError, OSError, ValueError) as e:
            print(format_user_error(e, f"{parsed_args.command} failed"), file=sys.stderr)
            if parsed_args.verbose:
                import traceback
                traceback.print_exc()
            return 1

    def _handle_extract(self, args, config: ExtractorConfig) -> int:
        """Handle extract command."""
        if args.no_export_filter:
            config.filter_exports = False
        if args.no_verify_linkage:
            config.verify_linkage = False
        if args.keep_extracted:
            config.keep_extracted = True

        if not args.modules and not (args.image_dir and args.listing):
            self.parser.error("extract needs a module archive unless both --image-dir and --listing are given")

        logger.info(f"Extracting API surface into {args.output}")
        result = extract_api(
            args.modules,
            args.output,
            config,
            image_dir=args.image_dir,
            listing_path=args.listing,
            module_graph_path=args.module_graph,
        )

        if result.failed:
            print(format_user_warning(f"{len(result.failed)} classes could not be loaded"), file=sys.stderr)
        print(f"✅ Wrote {result.written} classes to {result.output_path}")
        return 0

    def _handle_list_classes(self, args, config: ExtractorConfig) -> int:
        """Handle list-classes command."""
        if args.image_dir:
            image = ExplodedImage(args.image_dir)
            module_graph = load_module_graph(image, args.module_graph)
            class_names = collect_class_names(args.modules, module_graph, config, args.listing)
        elif args.modules:
            with RuntimeImage(args.modules, config.jimage_command).extracted() as image:
                module_graph = load_module_graph(image, args.module_graph)
                class_names = collect_class_names(args.modules, module_graph, config, args.listing)
        elif args.module_graph and args.listing:
            module_graph = ModuleGraph.from_yaml(args.module_graph)
            class_names = collect_class_names(None, module_graph, config, args.listing)
        else:
            self.parser.error("list-classes needs a module archive, --image-dir, or --module-graph with --listing")

        for class_name in class_names:
            print(class_name)
        return 0

    def _handle_dump_modules(self, args, config: ExtractorConfig) -> int:
        """Handle dump-modules command."""
        if args.image_dir:
            module_graph = ModuleGraph.from_image_dir(args.image_dir)
        elif args.modules:
            with RuntimeImage(args.modules, config.jimage_command).extracted() as image:
                module_graph = ModuleGraph.from_image_dir(image.root)
        else:
            self.parser.error("dump-modules needs a module archive or --image-dir")

        output = module_graph.to_yaml(Path(args.output))
        print(f"✅ Wrote {len(module_graph)} modules to {output}")
        return 0

    def _handle_verify(self, args, config: ExtractorConfig) -> int:
        """Handle verify command."""
        summary = verify_classinfo(args.classinfo)
        print(f"✅ {summary['path']}: {summary['classes']} classes, {summary['members']} members "
              f"({summary['constructors']} constructors, {summary['methods']} methods)")
        if summary["root_classes"]:
            print(f"   Root classes: {', '.join(summary['root_classes'])}")
        return 0


def main():
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    cli = JdkClassReaderCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
