"""
Configuration loader — reads machine.yml into a MachineConfig.

The file is optional. Lookup order:

    1. an explicit path (``--config``)
    2. ``$NEWMACHINE_CONFIG``
    3. ``~/.config/newmachine/machine.yml``

No file anywhere means defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from newmachine.core.models.config import MachineConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "NEWMACHINE_CONFIG"
CONFIG_FILE = "machine.yml"


class ConfigError(Exception):
    """Raised when the machine configuration is invalid or unreadable."""


def default_config_path(home: str | None = None) -> Path:
    base = Path(home) if home else Path.home()
    return base / ".config" / "newmachine" / CONFIG_FILE


def find_config_file(
    env: dict[str, str] | None = None,
    home: str | None = None,
) -> Path | None:
    """Locate machine.yml from the environment or the user config dir.

    Returns:
        Path to the file, or None if there is none.
    """
    env = os.environ if env is None else env
    explicit = env.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)

    candidate = default_config_path(home or env.get("HOME"))
    if candidate.is_file():
        return candidate
    return None


def load_config(path: Path | None = None) -> MachineConfig:
    """Load and validate the machine configuration.

    Args:
        path: Explicit path. If None, searches the default locations and
            falls back to defaults when nothing is found.

    Returns:
        Validated MachineConfig.

    Raises:
        ConfigError: If a named file is missing or invalid.
    """
    if path is None:
        path = find_config_file()
    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE)
        return MachineConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading machine config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return MachineConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = MachineConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid machine configuration in {path}: {e}") from e

    logger.info("Loaded machine config from %s", path)
    return config
