"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from geonode_devenv.core.engine.step import StepContext
from geonode_devenv.core.models.settings import DEFAULT_PACKAGES, SetupSettings

from tests.fakes import FakeAdapters, FakeHost


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings resolution."""
    for var in (
        "GEONODE_PASSWORD",
        "GEONODE_DATA_PASSWORD",
        "GEOSERVER_ADMIN_PASSWORD",
        "GEONODE_DEVENV_INSTALL_DIR",
        "GEONODE_DEVENV_LOG_FILE",
        "GEONODE_DEVENV_LOG_LEVEL",
        "SUDO_USER",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> SetupSettings:
    """Settings rooted in a temporary install directory."""
    return SetupSettings(
        install_dir=str(tmp_path / "Documents"),
        target_user="dev",
        geonode_password="db-secret",
        geonode_data_password="data-secret",
        geoserver_admin_password="gs-secret",
    )


@pytest.fixture
def fresh_host(settings: SetupSettings) -> FakeHost:
    """A root shell on a machine with nothing installed yet.

    The GeoNode helper script is present so the env-file step can run
    once the (mocked) clone has happened.
    """
    return FakeHost(paths={settings.geonode_path / settings.geonode.env_helper})


@pytest.fixture
def provisioned_host(settings: SetupSettings) -> FakeHost:
    """A machine a previous run has already provisioned completely."""
    env_text = (
        "DEBUG=True\n"
        f"GEONODE_DATABASE_PASSWORD={settings.geonode_password}\n"
        f"GEONODE_GEODATABASE_PASSWORD={settings.geonode_data_password}\n"
    )
    return FakeHost(
        commands={"docker", "code"},
        packages=set(DEFAULT_PACKAGES),
        succeeding={("docker", "compose", "version")},
        paths={settings.geonode_path, settings.client_path},
        files={settings.geonode_path / ".env": env_text},
    )


@pytest.fixture
def adapters() -> FakeAdapters:
    return FakeAdapters()


@pytest.fixture
def step_context(settings: SetupSettings, fresh_host: FakeHost, adapters: FakeAdapters) -> StepContext:
    return StepContext(
        settings=settings,
        host=fresh_host,
        registry=adapters.registry,
        sleep=lambda _s: None,
    )
