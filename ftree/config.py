from dataclasses import dataclass, asdict
from typing import Optional
from enum import Enum
import logging

import yaml


class NodeKind(Enum):
    HOST = 'host'
    EDGE = 'edge'
    AGGREGATION = 'agg'
    CORE = 'core'


class LinkKind(Enum):
    CABLE = 'cable'
    OPTICAL = 'ocs'


class DebugLevel(Enum):
    TRACE = 5
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING


class InvalidParameterError(ValueError):
    pass


class ConfigError(Exception):
    pass


DEFAULT_WIDTH = 4
DEFAULT_DEPTH = 3
DEFAULT_OPTICAL_LINKS = 4


def _as_int(name, value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}") from None


def coerce_width(value) -> int:
    """
    Normalize a user-supplied radix so the builder can accept it.

    Values below 2 are raised to 2 and odd values are rounded up to the
    next even number.
    """
    k = _as_int('width', value)
    if k < 2:
        k = 2
    if k % 2 != 0:
        k += 1
    return k


def coerce_optical_links(value) -> int:
    return max(0, _as_int('optical_links', value))


@dataclass(frozen=True)
class TopologyConfig:
    """
    Immutable configuration for one topology build.

    Direct construction stores the values as given; use ``coerce`` or
    ``replace`` to apply the width and optical-link normalization.

    Attributes:
        width: Radix k of the fat-tree (even, >= 2).
        depth: Number of tiers. Stored for interface stability only, the
            engine always builds a 3-tier tree.
        optical_links: Number of optical shortcut placement attempts.
        seed: Optional seed for the optical link draw.
    """
    width: int = DEFAULT_WIDTH
    depth: int = DEFAULT_DEPTH
    optical_links: int = DEFAULT_OPTICAL_LINKS
    seed: Optional[int] = None

    @classmethod
    def coerce(cls, width=DEFAULT_WIDTH, depth=DEFAULT_DEPTH,
               optical_links=DEFAULT_OPTICAL_LINKS, seed=None):
        """Build a config from raw (possibly string) form values."""
        return cls(
            width=coerce_width(width),
            depth=_as_int('depth', depth),
            optical_links=coerce_optical_links(optical_links),
            seed=None if seed is None else _as_int('seed', seed),
        )

    def replace(self, **changes):
        values = asdict(self)
        values.update(changes)
        return TopologyConfig.coerce(**values)

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(config_path: str) -> dict:
    """
    Load the YAML configuration file.

    Args:
        config_path (str): Path to the YAML config file.

    Returns:
        dict: Configuration parameters.

    Raises:
        ConfigError: If the file is missing or is not valid YAML.
    """
    try:
        with open(config_path, 'r') as file:
            config = yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file {config_path} not found.") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file: {e}") from e
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping.")
    logging.getLogger(__name__).info(f"Configuration loaded from {config_path}")
    return config


def validate_config(config: dict, required_keys=('FatTree',)) -> None:
    """
    Validate that all required keys are present in the configuration.

    Raises:
        ConfigError: If any required key is missing.
    """
    missing_keys = [key for key in required_keys if key not in config]
    if missing_keys:
        raise ConfigError(f"Missing configuration parameters: {', '.join(missing_keys)}")

    fat_tree_config = config['FatTree']
    if not isinstance(fat_tree_config, dict):
        raise ConfigError("'FatTree' section must be a mapping.")
    required_fat_tree_keys = ['width', 'optical_links']
    missing_fat_tree_keys = [key for key in required_fat_tree_keys if key not in fat_tree_config]
    if missing_fat_tree_keys:
        raise ConfigError(f"Missing FatTree configuration parameters: {', '.join(missing_fat_tree_keys)}")

    log_level = config.get('log_level')
    if log_level is not None and getattr(DebugLevel, str(log_level).upper(), None) is None:
        raise ConfigError(f"Unknown log level: {log_level}")


def config_from_dict(config: dict) -> TopologyConfig:
    validate_config(config)
    fat_tree_config = config['FatTree']
    try:
        return TopologyConfig.coerce(
            width=fat_tree_config['width'],
            depth=fat_tree_config.get('depth', DEFAULT_DEPTH),
            optical_links=fat_tree_config['optical_links'],
            seed=fat_tree_config.get('seed'),
        )
    except InvalidParameterError as e:
        raise ConfigError(f"Invalid FatTree configuration: {e}") from e
