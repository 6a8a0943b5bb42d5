"""Extract the public API surface of JDK runtime classes.

The extracted surface is written as a classinfo file: one header line per
class (``name:super:count``) followed by one ``--name(params)return`` line
per visible constructor and method.
"""

__version__ = "0.1.0"

from .config import ExtractorConfig, load_config
from .pipeline import ExtractionPipeline, ExtractionResult, extract_api

__all__ = [
    "__version__",
    "ExtractorConfig",
    "load_config",
    "ExtractionPipeline",
    "ExtractionResult",
    "extract_api",
]
