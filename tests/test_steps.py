"""
Tests for the provisioning steps — guards and the actions they plan.
"""

import json

from geonode_devenv.core.engine.step import StepContext
from geonode_devenv.core.models.settings import DEFAULT_PACKAGES, SetupSettings
from geonode_devenv.core.services.host import HostProbe
from geonode_devenv.core.services.provisioning_steps import (
    DOCKER_RELOGIN_MESSAGE,
    STEPS,
    build_steps,
    completion_hints,
)

from tests.fakes import FakeHost

STEP_IDS = [
    "privileges",
    "install-dir",
    "apt-update",
    "packages",
    "docker",
    "docker-compose",
    "clone-geonode",
    "env-file",
    "env-passwords",
    "compose-build",
    "compose-up",
    "wait-database",
    "database-users",
    "wait-geoserver",
    "geoserver-admin",
    "compose-restart",
    "clone-client",
    "compile-client",
    "editor",
    "cleanup",
]


def _plan(step_id: str, ctx: StepContext):
    step = next(s for s in STEPS if s.id == step_id)
    return step.plan(ctx)


def _with_host(ctx: StepContext, host: FakeHost) -> StepContext:
    ctx.host = host
    return ctx


# ── Sequence ────────────────────────────────────────────────────────


class TestSequence:
    def test_order(self):
        assert [s.id for s in STEPS] == STEP_IDS

    def test_only_compose_up_tolerates_failure(self):
        assert [s.id for s in STEPS if s.tolerate_failure] == ["compose-up"]

    def test_build_steps_all(self, settings: SetupSettings):
        assert [s.id for s in build_steps(settings)] == STEP_IDS

    def test_build_steps_without_optional_groups(self, settings: SetupSettings):
        ids = [s.id for s in build_steps(settings, include_client=False, include_editor=False)]
        assert "clone-client" not in ids
        assert "compile-client" not in ids
        assert "editor" not in ids
        assert ids[-1] == "cleanup"

    def test_build_steps_from_config(self, settings: SetupSettings):
        settings.editor.enabled = False
        ids = [s.id for s in build_steps(settings)]
        assert "editor" not in ids
        assert "compile-client" in ids

    def test_flag_overrides_config(self, settings: SetupSettings):
        settings.mapstore_client.enabled = False
        ids = [s.id for s in build_steps(settings, include_client=True)]
        assert "clone-client" in ids


# ── Host Preparation ────────────────────────────────────────────────


class TestPrivileges:
    def test_root_passes(self, step_context):
        plan = _plan("privileges", step_context)
        assert plan.error is None
        assert plan.actions == []

    def test_not_root_fails(self, step_context):
        plan = _plan("privileges", _with_host(step_context, FakeHost(root=False)))
        assert plan.error == "Please run this script with sudo."
        assert plan.error_code == 1

    def test_not_root_in_dry_run_is_a_note(self, step_context):
        step_context.dry_run = True
        plan = _plan("privileges", _with_host(step_context, FakeHost(root=False)))
        assert plan.error is None
        assert plan.notes


class TestInstallDir:
    def test_mkdir(self, step_context, settings):
        plan = _plan("install-dir", step_context)
        assert plan.actions[0].params == {"operation": "mkdir", "path": str(settings.install_path)}


class TestPackages:
    def test_installs_only_missing(self, step_context):
        installed = set(DEFAULT_PACKAGES) - {"nodejs", "npm"}
        plan = _plan("packages", _with_host(step_context, FakeHost(packages=installed)))
        assert [a.params["packages"] for a in plan.actions] == [["nodejs"], ["npm"]]
        assert not plan.skipped

    def test_all_installed_skips(self, step_context):
        plan = _plan("packages", _with_host(step_context, FakeHost(packages=set(DEFAULT_PACKAGES))))
        assert plan.skipped
        assert plan.actions == []

    def test_fresh_host_installs_in_list_order(self, step_context):
        plan = _plan("packages", step_context)
        assert [a.params["packages"][0] for a in plan.actions] == DEFAULT_PACKAGES


class TestDocker:
    def test_present_skips(self, step_context):
        plan = _plan("docker", _with_host(step_context, FakeHost(commands={"docker"})))
        assert plan.skip_reason == "Docker is already installed."

    def test_install_then_halt(self, step_context, settings):
        plan = _plan("docker", step_context)
        commands = [a.params["command"] for a in plan.actions]
        assert commands[0] == f"curl -fsSL https://get.docker.com -o {settings.docker_script_path}"
        assert commands[1] == f"sh {settings.docker_script_path}"
        assert commands[2] == "usermod -aG docker dev"
        assert plan.halt_message == DOCKER_RELOGIN_MESSAGE

    def test_no_target_user(self, step_context, settings):
        settings.target_user = None
        plan = _plan("docker", step_context)
        assert len(plan.actions) == 2
        assert any("not adding anyone" in n for n in plan.notes)
        assert plan.halt_message


class TestDockerCompose:
    def test_plugin_present_skips(self, step_context):
        host = FakeHost(succeeding={("docker", "compose", "version")})
        assert _plan("docker-compose", _with_host(step_context, host)).skipped

    def test_legacy_binary_skips(self, step_context):
        host = FakeHost(commands={"docker-compose"})
        assert _plan("docker-compose", _with_host(step_context, host)).skipped

    def test_installs_plugin(self, step_context):
        plan = _plan("docker-compose", step_context)
        assert plan.actions[0].params["packages"] == ["docker-compose-plugin"]


# ── GeoNode ─────────────────────────────────────────────────────────


class TestCloneGeoNode:
    def test_clone(self, step_context, settings):
        plan = _plan("clone-geonode", step_context)
        params = plan.actions[0].params
        assert params["url"] == "https://github.com/GeoNode/geonode.git"
        assert params["dest"] == str(settings.geonode_path)

    def test_existing_repo_skips(self, step_context, settings):
        host = FakeHost(paths={settings.geonode_path})
        assert _plan("clone-geonode", _with_host(step_context, host)).skipped


class TestEnvFile:
    def test_runs_helper_in_repo(self, step_context, settings):
        plan = _plan("env-file", step_context)
        action = plan.actions[0]
        assert action.adapter == "python"
        assert action.cwd == str(settings.geonode_path)
        assert action.params["script"] == "create-envfile.py"

    def test_existing_env_skips(self, step_context, settings):
        host = FakeHost(paths={settings.geonode_path / ".env"})
        assert _plan("env-file", _with_host(step_context, host)).skipped

    def test_missing_helper_fails(self, step_context, settings):
        host = FakeHost(paths={settings.geonode_path})
        plan = _plan("env-file", _with_host(step_context, host))
        assert plan.error == "Error: create-envfile.py not found."
        assert plan.error_code == 1

    def test_dry_run_before_clone_is_a_note(self, step_context):
        step_context.dry_run = True
        plan = _plan("env-file", _with_host(step_context, FakeHost()))
        assert plan.error is None
        assert len(plan.actions) == 1
        assert plan.notes


class TestEnvPasswords:
    def test_rewrites_both_keys(self, step_context, settings):
        plan = _plan("env-passwords", step_context)
        params = plan.actions[0].params
        assert params["operation"] == "env_set"
        assert params["path"] == str(settings.geonode_path / ".env")
        assert params["values"] == {
            "GEONODE_DATABASE_PASSWORD": "db-secret",
            "GEONODE_GEODATABASE_PASSWORD": "data-secret",
        }

    def test_already_set_skips(self, step_context, provisioned_host):
        assert _plan("env-passwords", _with_host(step_context, provisioned_host)).skipped

    def test_stale_value_rewrites(self, step_context, settings):
        env = settings.geonode_path / ".env"
        host = FakeHost(files={env: "GEONODE_DATABASE_PASSWORD=geonode\nGEONODE_GEODATABASE_PASSWORD=data-secret\n"})
        assert not _plan("env-passwords", _with_host(step_context, host)).skipped

    def test_trailing_whitespace_rewrites(self, step_context, settings):
        env = settings.geonode_path / ".env"
        host = FakeHost(files={env: "GEONODE_DATABASE_PASSWORD=db-secret  \nGEONODE_GEODATABASE_PASSWORD=data-secret\n"})
        assert not _plan("env-passwords", _with_host(step_context, host)).skipped

    def test_latin1_env_is_planned(self, step_context, settings):
        env = settings.geonode_path / ".env"
        env.parent.mkdir(parents=True)
        env.write_bytes(b"SITE_NAME=Caf\xe9\nGEONODE_DATABASE_PASSWORD=x\nGEONODE_GEODATABASE_PASSWORD=y\n")
        step_context.host = HostProbe()
        plan = _plan("env-passwords", step_context)
        assert not plan.skipped
        assert plan.actions[0].params["operation"] == "env_set"


class TestCompose:
    def test_build_up_restart(self, step_context, settings):
        for step_id, args in (
            ("compose-build", ["build"]),
            ("compose-up", ["up", "-d"]),
            ("compose-restart", ["restart"]),
        ):
            action = _plan(step_id, step_context).actions[0]
            assert action.cwd == str(settings.geonode_path)
            assert action.params["project"] == "geonode"
            assert action.params["files"] == ["docker-compose-dev.yml", ".devcontainer/docker-compose.yml"]
            assert action.params["args"] == args


class TestReadiness:
    def test_database_probe(self, step_context):
        plan = _plan("wait-database", step_context)
        assert plan.actions == []
        assert plan.wait_for.id == "wait-database:ready"
        assert plan.wait_for.params["container"] == "db4geonode"
        assert plan.wait_for.params["args"] == ["pg_isready", "-U", "postgres"]

    def test_geoserver_probe(self, step_context):
        probe = _plan("wait-geoserver", step_context).wait_for
        assert probe.params["container"] == "geoserver4geonode"
        assert probe.params["args"] == [
            "test", "-f", "/geoserver_data/data/security/usergroup/default/users.xml",
        ]


class TestDatabaseUsers:
    def test_psql_with_statements_on_stdin(self, step_context):
        params = _plan("database-users", step_context).actions[0].params
        assert params["container"] == "db4geonode"
        assert params["args"] == ["psql", "-v", "ON_ERROR_STOP=1", "-U", "postgres"]
        assert params["stdin"] == (
            "ALTER USER geonode WITH PASSWORD 'db-secret';\n"
            "ALTER USER geonode_data WITH PASSWORD 'data-secret';\n"
        )


class TestGeoServerAdmin:
    def test_write_copy_remove(self, step_context, settings):
        write, copy, remove = _plan("geoserver-admin", step_context).actions
        local = str(settings.geonode_path / "users.xml")

        assert write.params["path"] == local
        assert write.params["mode"] == 0o600
        assert 'password="plain:gs-secret"' in write.params["content"]

        assert copy.params["operation"] == "cp"
        assert copy.params["src"] == local
        assert copy.params["container"] == "geoserver4geonode"
        assert copy.params["dest"].endswith("/usergroup/default/users.xml")

        assert remove.params == {"operation": "delete", "path": local}


# ── MapStore Client ─────────────────────────────────────────────────


class TestClient:
    def test_clone_recursive(self, step_context, settings):
        params = _plan("clone-client", step_context).actions[0].params
        assert params["recursive"] is True
        assert params["dest"] == str(settings.install_path / "geonode-mapstore-client-dev")

    def test_guard_checks_clone_destination(self, step_context, settings):
        host = FakeHost(paths={settings.install_path / "geonode-mapstore-client-dev"})
        assert _plan("clone-client", _with_host(step_context, host)).skipped

    def test_compile(self, step_context, settings):
        actions = _plan("compile-client", step_context).actions
        source = str(settings.install_path / "geonode-mapstore-client-dev/geonode_mapstore_client/client")
        assert [a.params["operation"] for a in actions[:3]] == ["update", "install", "script"]
        assert all(a.cwd == source for a in actions[:3])
        assert actions[2].params["script"] == "compile"

        env_json = actions[3]
        assert env_json.params["path"] == f"{source}/env.json"
        assert json.loads(env_json.params["content"]) == {
            "DEV_SERVER_HOST": "localhost:8000",
            "DEV_SERVER_HOST_PROTOCOL": "http",
        }


# ── Editor and Cleanup ──────────────────────────────────────────────


class TestEditor:
    def test_present_skips(self, step_context):
        assert _plan("editor", _with_host(step_context, FakeHost(commands={"code"}))).skipped

    def test_repository_line_uses_host_arch(self, step_context):
        add_repo, update, install = _plan("editor", _with_host(step_context, FakeHost(arch="arm64"))).actions
        assert add_repo.params["line"] == (
            "deb [arch=arm64 signed-by=/usr/share/keyrings/packages.microsoft.gpg] "
            "https://packages.microsoft.com/repos/vscode stable main"
        )
        assert add_repo.params["list_file"] == "/etc/apt/sources.list.d/vscode.list"
        assert update.params["operation"] == "update"
        assert install.params["packages"] == ["code"]


class TestCleanup:
    def test_removes_installer(self, step_context, settings):
        params = _plan("cleanup", step_context).actions[0].params
        assert params == {"operation": "delete", "path": str(settings.install_path / "get-docker.sh")}


class TestCompletionHints:
    def test_hints(self, settings):
        hints = completion_hints(settings)
        assert hints[0] == "newgrp docker"
        assert f"sudo chown -R dev:dev {settings.geonode_path}" in hints
        assert f"sudo chown -R dev:dev {settings.client_path}" in hints
        assert hints[-1] == "sudo reboot"

    def test_no_client_hint_when_skipped(self, settings):
        hints = completion_hints(settings, include_client=False)
        assert not any(str(settings.client_path) in h for h in hints)
