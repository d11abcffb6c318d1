"""
Config check use case — validate settings and flag risky values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from geonode_devenv.adapters.registry import AdapterRegistry, default_registry
from geonode_devenv.core.config.loader import ConfigError, find_config_file, load_settings
from geonode_devenv.core.models.settings import SetupSettings

_DEFAULT_PASSWORDS = {
    "geonode_password": "geonode",
    "geonode_data_password": "geonode_data",
    "geoserver_admin_password": "geoserver",
}


@dataclass
class ConfigCheckResult:
    valid: bool = False
    config_path: Path | None = None
    settings: SetupSettings | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    tools: dict[str, bool] = field(default_factory=dict)  # adapter -> tool on PATH

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "tools": self.tools,
        }


def check_config(
    config_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ConfigCheckResult:
    """Load settings, report problems and which host tools are present.

    Missing tools are not errors: a fresh host gets docker, git and npm
    from the run itself.
    """
    result = ConfigCheckResult(config_path=config_path or find_config_file())

    try:
        settings = load_settings(result.config_path, search=False)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.valid = True
    result.settings = settings

    if result.config_path is None:
        result.warnings.append("No geonode-devenv.yml found, using built-in defaults.")
    if not settings.target_user:
        result.warnings.append("No target user: SUDO_USER is unset and target_user is not configured.")
    for name, default in _DEFAULT_PASSWORDS.items():
        if getattr(settings, name) == default:
            result.warnings.append(f"{name} is still the default value.")
    if not settings.required_packages:
        result.warnings.append("required_packages is empty.")
    if settings.install_path.exists() and not settings.install_path.is_dir():
        result.errors.append(f"install_dir is not a directory: {settings.install_path}")
        result.valid = False

    registry = registry or default_registry()
    result.tools = registry.adapter_status()
    return result
