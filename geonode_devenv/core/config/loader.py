"""
Configuration loader — reads geonode-devenv.yml into SetupSettings.

The file is optional: without one, the defaults reproduce a stock
GeoNode development setup under ``~<SUDO_USER>/Documents``. A handful
of environment variables override the file, so passwords need not be
written to disk.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from geonode_devenv.core.models.settings import SetupSettings, default_install_dir, sudo_user

logger = logging.getLogger(__name__)

CONFIG_FILE = "geonode-devenv.yml"

# env var → settings field
ENV_OVERRIDES = {
    "GEONODE_PASSWORD": "geonode_password",
    "GEONODE_DATA_PASSWORD": "geonode_data_password",
    "GEOSERVER_ADMIN_PASSWORD": "geoserver_admin_password",
    "GEONODE_DEVENV_INSTALL_DIR": "install_dir",
}


class ConfigError(Exception):
    """Raised when the configuration file is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for geonode-devenv.yml from ``start_dir`` (default: cwd) upward."""
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


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_settings(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
    search: bool = True,
) -> SetupSettings:
    """Load and validate settings.

    Args:
        path: Explicit config file. Must exist when given.
        env: Environment for overrides and for the SUDO_USER defaults
            (default: ``os.environ``).
        search: Look for geonode-devenv.yml upward from the cwd when
            ``path`` is None.

    Returns:
        Validated SetupSettings.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    env = os.environ if env is None else env

    if path is None and search:
        path = find_config_file()

    data: dict = {}
    if path is not None:
        logger.debug("Loading settings from %s", path)
        data = _read_yaml(path)

    for var, field_name in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            logger.debug("Overriding %s from $%s", field_name, var)
            data[field_name] = value

    # SUDO_USER-derived defaults come from the same environment
    data.setdefault("target_user", sudo_user(env))
    if "install_dir" not in data:
        data["install_dir"] = default_install_dir(env)

    try:
        settings = SetupSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.info("Installation directory: %s", settings.install_path)
    return settings
