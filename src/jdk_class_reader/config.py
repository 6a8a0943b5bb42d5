"""Configuration loading for jdk-class-reader."""

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "jdk_class_reader.toml"
CONFIG_SECTION = "extractor"


@dataclass
class ExtractorConfig:
    """Settings for one extraction run."""

    jimage: Optional[str] = None
    java_home: Optional[str] = None
    filter_exports: bool = True
    verify_linkage: bool = True
    keep_extracted: bool = False
    log_level: str = "INFO"

    @property
    def jimage_command(self) -> str:
        """The jimage executable: explicit setting, then JAVA_HOME, then PATH."""
        if self.jimage:
            return self.jimage
        if self.java_home:
            return str(Path(self.java_home) / "bin" / "jimage")
        return "jimage"

    @property
    def logging_level(self) -> int:
        """Numeric level for ``log_level``."""
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExtractorConfig":
        """Build a config from the ``[extractor]`` table, ignoring unknown keys.

        Raises:
            ConfigurationError: If a known key has a value of the wrong type.
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {unknown}")

        values = {k: v for k, v in data.items() if k in known}
        for key, value in values.items():
            if known[key].type in (bool, "bool"):
                if not isinstance(value, bool):
                    raise ConfigurationError(f"{key} must be true or false, got {value!r}")
            elif value is not None and not isinstance(value, str):
                raise ConfigurationError(f"{key} must be a string, got {value!r}")

        if "log_level" in values:
            level = values["log_level"]
            if level is None or not isinstance(logging.getLevelName(level.upper()), int):
                raise ConfigurationError(f"log_level must be a logging level name, got {level!r}")
            values["log_level"] = level.upper()
        return cls(**values)


def _load_toml(config_file: Path) -> Dict[str, Any]:
    if sys.version_info >= (3, 11):
        import tomllib
        with open(config_file, 'rb') as f:
            return tomllib.load(f)
    else:
        import tomli
        with open(config_file, 'rb') as f:
            return tomli.load(f)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> ExtractorConfig:
    """Load configuration from a TOML file.

    A missing file yields the defaults. The warning is only logged when
    the file was named explicitly; the default path is optional.

    Raises:
        ConfigurationError: If the file exists but cannot be parsed.
    """
    config_file = Path(config_path)

    if not config_file.exists():
        if config_path != DEFAULT_CONFIG_PATH:
            logger.warning(f"Config file not found: {config_path}, using defaults")
        else:
            logger.debug(f"Config file not found: {config_path}, using defaults")
        return ExtractorConfig()

    try:
        data = _load_toml(config_file)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to read config file {config_path}: {e}") from e

    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"[{CONFIG_SECTION}] in {config_path} must be a table")
    return ExtractorConfig.from_mapping(section)
