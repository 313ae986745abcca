"""Configuration loading.

Reads the YAML command list once at startup and turns it into an immutable
SupervisorConfig. Any problem is reported as a ConfigError.
"""

import logging
from pathlib import Path

import pydantic
import yaml

from keepalive.core.errors import ConfigError
from keepalive.core.models import SupervisorConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "commands.yaml"


def _format_validation_error(error: pydantic.ValidationError) -> str:
    lines = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) or "<root>"
        lines.append(f"{loc}: {err['msg']}")
    return "; ".join(lines)


def parse_config(data: object, source: str = "<config>") -> SupervisorConfig:
    """Validate already-decoded YAML data.

    An empty document is treated as a config with no commands.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid config in '{source}': expected a mapping, got {type(data).__name__}"
        )
    try:
        return SupervisorConfig.model_validate(data)
    except pydantic.ValidationError as e:
        raise ConfigError(
            f"Invalid config in '{source}': {_format_validation_error(e)}"
        ) from e


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> SupervisorConfig:
    """Load and validate the command list from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated, frozen SupervisorConfig

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or does not
            match the command schema
    """
    config_path = Path(path)
    try:
        # PyYAML decodes the bytes; invalid encodings raise ReaderError
        with open(config_path, "rb") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config '{config_path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file '{config_path}': {e}") from e

    config = parse_config(data, source=str(config_path))
    logger.debug(f"Loaded {len(config.commands)} command(s) from {config_path}")
    return config
