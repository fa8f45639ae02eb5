"""Configuration management for nmdpredict.

This module handles loading, validating, and providing access to
nmdpredict configuration settings. Configuration can come from:
- Default values
- YAML configuration files
- Command-line arguments (applied by the CLI on top of the file)

Example:
    >>> from nmdpredict.config import Config
    >>> config = Config.load("nmdpredict.yaml")
    >>> config.nmd.threshold
    50

A configuration file mirrors the structure of ``Config.to_dict()``::

    nmd:
      threshold: 55
      return_stop_to_down_ejs: true
    parallel:
      max_workers: 4
      backend: processes
"""

from pathlib import Path
from typing import Any

import attrs
import yaml

from nmdpredict.core.nmd import DEFAULT_NMD_THRESHOLD
from nmdpredict.parallel.executor import ExecutorBackend

# =============================================================================
# Default Configuration Values
# =============================================================================

DEFAULT_MAX_WORKERS = 1
DEFAULT_BACKEND = ExecutorBackend.PROCESSES.value
VALID_ON_ERROR = ("raise", "skip")


class ConfigError(ValueError):
    """Raised when a configuration file has invalid content."""

    pass


# =============================================================================
# Configuration Classes
# =============================================================================


def _non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise ConfigError(f"{attribute.name} must be >= 0, got {value}")


@attrs.define
class NMDConfig:
    """Configuration for NMD prediction.

    Attributes:
        threshold: Minimum stop-to-last-junction distance (nt) for NMD.
        return_stop_to_down_ejs: Report distances to downstream junctions.
        skip_noncoding: Skip transcripts without CDS.
        on_error: "raise" or "skip" on per-transcript failures.
    """

    threshold: int = attrs.field(default=DEFAULT_NMD_THRESHOLD, validator=_non_negative)
    return_stop_to_down_ejs: bool = False
    skip_noncoding: bool = True
    on_error: str = attrs.field(default="raise")

    @on_error.validator
    def _check_on_error(self, attribute: attrs.Attribute, value: str) -> None:
        if value not in VALID_ON_ERROR:
            raise ConfigError(f"on_error must be one of {VALID_ON_ERROR}, got {value!r}")


@attrs.define
class ParallelConfig:
    """Configuration for parallel processing.

    Attributes:
        max_workers: Maximum number of parallel workers.
        backend: Executor backend (serial, threads, processes).
    """

    max_workers: int = attrs.field(default=DEFAULT_MAX_WORKERS, validator=_non_negative)
    backend: str = attrs.field(default=DEFAULT_BACKEND)

    @backend.validator
    def _check_backend(self, attribute: attrs.Attribute, value: str) -> None:
        valid = [b.value for b in ExecutorBackend]
        if value not in valid:
            raise ConfigError(f"backend must be one of {valid}, got {value!r}")


@attrs.define
class Config:
    """Main configuration container for nmdpredict.

    Attributes:
        nmd: NMD prediction configuration.
        parallel: Parallel processing configuration.
    """

    nmd: NMDConfig = attrs.Factory(NMDConfig)
    parallel: ParallelConfig = attrs.Factory(ParallelConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build configuration from a nested dictionary.

        Args:
            data: Dictionary with optional "nmd" and "parallel" sections.

        Returns:
            Configuration object.

        Raises:
            ConfigError: On unknown sections/keys or invalid values.
        """
        sections = {"nmd": NMDConfig, "parallel": ParallelConfig}
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name) or {}
            if not isinstance(values, dict):
                raise ConfigError(f"Section {name!r} must be a mapping")
            try:
                kwargs[name] = section_cls(**values)
            except TypeError as e:
                raise ConfigError(f"Invalid keys in section {name!r}: {e}") from e

        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from a YAML file.

        Args:
            path: Path to configuration file. If None, returns default
                configuration.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ConfigError: If configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return attrs.asdict(self)

    def save(self, path: Path | str) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path to save configuration file.
        """
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
