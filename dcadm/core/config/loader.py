"""
Configuration loader — reads dcadm.yml into an EngineConfig, and image
manifests into Image lists.

The config file is optional: without one every setting takes its
default. When present it is parsed with PyYAML and validated by pydantic.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import ValidationError

from dcadm.core.models.config import EngineConfig
from dcadm.core.models.resources import Image

logger = logging.getLogger(__name__)

CONFIG_FILE = "dcadm.yml"


class ConfigError(Exception):
    """Raised when engine configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for dcadm.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to dcadm.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path | None = None) -> EngineConfig:
    """Load and validate engine configuration.

    Args:
        path: Explicit path to dcadm.yml. If None, searches upward and
            falls back to defaults when nothing is found.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return EngineConfig()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = EngineConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    # Relative state_dir is anchored at the config file's directory
    state_dir = Path(config.state_dir)
    if not state_dir.is_absolute():
        config.state_dir = str(path.parent.resolve() / state_dir)

    return config


def load_client_factory(spec: str) -> Callable[..., Any]:
    """Resolve a ``package.module:callable`` reference.

    Raises:
        ConfigError: If the reference is malformed or cannot be imported.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"client_factory must look like 'module:callable', got {spec!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import client factory module {module_name!r}: {e}") from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigError(f"{spec!r} is not a callable")
    return factory


def load_image_manifest(path: Path) -> list[Image]:
    """Read the images to download from a YAML or JSON manifest.

    The manifest is either a list of images or a mapping with an
    ``images`` list. Each image needs at least a ``uuid``.

    Raises:
        ConfigError: If the file is unreadable or malformed.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid manifest {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("images")
    if data is None:
        data = []
    if not isinstance(data, list):
        raise ConfigError(f"Expected a list of images in {path}, got {type(data).__name__}")

    try:
        return [Image.model_validate(item) for item in data]
    except ValidationError as e:
        raise ConfigError(f"Invalid image in {path}: {e}") from e
