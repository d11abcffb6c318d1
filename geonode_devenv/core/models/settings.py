"""
Settings — the provisioning configuration model.

Every value the provisioning sequence needs lives here, with defaults
that reproduce a stock GeoNode development checkout. A configuration
file only has to name what differs.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_PACKAGES = [
    "curl",
    "git",
    "python3",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "nodejs",
    "npm",
]


def sudo_user(env: Mapping[str, str] | None = None) -> str | None:
    """The account that invoked sudo, if any."""
    env = os.environ if env is None else env
    return env.get("SUDO_USER") or None


def default_install_dir(env: Mapping[str, str] | None = None) -> str:
    """``~<sudo user>/Documents`` when invoked through sudo, else the cwd."""
    user = sudo_user(env)
    if user:
        home = os.path.expanduser(f"~{user}")
        if home.startswith("~"):
            # Unknown to the passwd database
            home = f"/home/{user}"
        return str(Path(home) / "Documents")
    return str(Path.cwd())


class DockerSettings(BaseModel):
    """Docker engine and Compose installation."""

    install_script_url: str = "https://get.docker.com"
    install_script: str = "get-docker.sh"
    compose_package: str = "docker-compose-plugin"
    group: str = "docker"


class GeoNodeSettings(BaseModel):
    """The GeoNode checkout and its compose stack."""

    repo_url: str = "https://github.com/GeoNode/geonode.git"
    directory: str = "geonode"
    env_helper: str = "create-envfile.py"
    compose_project: str = "geonode"
    compose_files: list[str] = Field(
        default_factory=lambda: [
            "docker-compose-dev.yml",
            ".devcontainer/docker-compose.yml",
        ]
    )
    db_container: str = "db4geonode"
    db_superuser: str = "postgres"
    db_user: str = "geonode"
    db_data_user: str = "geonode_data"
    geoserver_container: str = "geoserver4geonode"
    geoserver_users_path: str = (
        "/geoserver_data/data/security/usergroup/default/users.xml"
    )


class PollSettings(BaseModel):
    """Readiness polling. ``timeout`` of None waits forever."""

    interval: float = 5.0
    timeout: float | None = None

    @field_validator("interval")
    @classmethod
    def _positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll interval must be positive")
        return v

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("poll timeout must be positive (or null to wait forever)")
        return v


class ClientSettings(BaseModel):
    """The MapStore2 client checkout and its asset build."""

    enabled: bool = True
    repo_url: str = "https://github.com/GeoNode/geonode-mapstore-client.git"
    directory: str = "geonode-mapstore-client-dev"
    source_subdir: str = "geonode_mapstore_client/client"
    dev_server_host: str = "localhost:8000"
    dev_server_protocol: str = "http"


class EditorSettings(BaseModel):
    """Visual Studio Code from Microsoft's apt repository."""

    enabled: bool = True
    command: str = "code"
    package: str = "code"
    key_url: str = "https://packages.microsoft.com/keys/microsoft.asc"
    keyring: str = "/usr/share/keyrings/packages.microsoft.gpg"
    list_file: str = "/etc/apt/sources.list.d/vscode.list"
    repo_url: str = "https://packages.microsoft.com/repos/vscode"
    suite: str = "stable"
    components: str = "main"


class SetupSettings(BaseModel):
    """Root configuration for one provisioning run."""

    install_dir: str = Field(default_factory=default_install_dir)
    target_user: str | None = Field(default_factory=sudo_user)

    geonode_password: str = "geonode"
    geonode_data_password: str = "geonode_data"
    geoserver_admin_password: str = "geoserver"

    required_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))

    docker: DockerSettings = Field(default_factory=DockerSettings)
    geonode: GeoNodeSettings = Field(default_factory=GeoNodeSettings)
    poll: PollSettings = Field(default_factory=PollSettings)
    mapstore_client: ClientSettings = Field(default_factory=ClientSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)

    @field_validator("geonode_password", "geonode_data_password", "geoserver_admin_password")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("passwords must not be empty")
        return v

    # ── Derived paths ────────────────────────────────────────────

    @property
    def install_path(self) -> Path:
        return Path(self.install_dir).expanduser()

    @property
    def geonode_path(self) -> Path:
        return self.install_path / self.geonode.directory

    @property
    def client_path(self) -> Path:
        return self.install_path / self.mapstore_client.directory

    @property
    def client_source_path(self) -> Path:
        return self.client_path / self.mapstore_client.source_subdir

    @property
    def docker_script_path(self) -> Path:
        return self.install_path / self.docker.install_script

    def masked(self) -> dict:
        """Serializable view with passwords hidden."""
        data = self.model_dump(mode="json")
        for key in ("geonode_password", "geonode_data_password", "geoserver_admin_password"):
            data[key] = "********"
        return data
