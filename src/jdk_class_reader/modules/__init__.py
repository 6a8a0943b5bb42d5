"""Module graph and runtime image access for jdk-class-reader."""

from .module_graph import ModuleEntry, ModuleGraph
from .listing_parser import ModuleListingParser, parse_module_listing
from .runtime_image import ExplodedImage, LoadedClass, RuntimeImage

__all__ = [
    "ModuleEntry",
    "ModuleGraph",
    "ModuleListingParser",
    "parse_module_listing",
    "ExplodedImage",
    "LoadedClass",
    "RuntimeImage",
]
