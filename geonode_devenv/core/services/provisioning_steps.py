"""
Provisioning steps — the GeoNode development setup sequence.

Each planner inspects the host through ``ctx.host`` and fills in a
StepPlan. Order matters and is fixed by ``STEPS``; ``build_steps``
drops the optional groups the configuration switches off.
"""

from __future__ import annotations

import shlex

from geonode_devenv.core.engine.step import Step, StepContext, StepPlan
from geonode_devenv.core.models.settings import SetupSettings
from geonode_devenv.core.services.credentials import (
    alter_user_sql,
    render_client_env,
    render_users_xml,
)
from geonode_devenv.core.services.envfile import set_env_values

DOCKER_RELOGIN_MESSAGE = (
    "Docker installed successfully. Please log out and log back in to apply group changes.\n"
    "After logging back in, re-run the script to continue the setup."
)

ENV_PASSWORD_KEYS = ("GEONODE_DATABASE_PASSWORD", "GEONODE_GEODATABASE_PASSWORD")


# ── Host preparation ────────────────────────────────────────────


def _privileges(ctx: StepContext, plan: StepPlan) -> None:
    if ctx.host.is_root():
        return
    if ctx.dry_run or ctx.registry.mock_mode:
        plan.notes.append("Not running as root: a real run would stop here.")
        return
    plan.error = "Please run this script with sudo."


def _install_dir(ctx: StepContext, plan: StepPlan) -> None:
    path = ctx.settings.install_path
    plan.add("filesystem", f"Create {path}", operation="mkdir", path=str(path))


def _apt_update(ctx: StepContext, plan: StepPlan) -> None:
    plan.add("apt", "Update package lists", operation="update")


def _packages(ctx: StepContext, plan: StepPlan) -> None:
    missing = []
    for package in ctx.settings.required_packages:
        if ctx.host.package_installed(package):
            plan.notes.append(f"{package} is already installed.")
            continue
        missing.append(package)
        plan.add("apt", f"Install {package}", operation="install", packages=[package])
    if not missing:
        plan.skip_reason = "All required packages are already installed."


def _docker(ctx: StepContext, plan: StepPlan) -> None:
    if ctx.host.command_exists("docker"):
        plan.skip_reason = "Docker is already installed."
        return

    s = ctx.settings
    script = shlex.quote(str(s.docker_script_path))
    plan.add(
        "shell",
        f"Download {s.docker.install_script_url}",
        command=f"curl -fsSL {shlex.quote(s.docker.install_script_url)} -o {script}",
    )
    plan.add("shell", "Run the Docker install script", command=f"sh {script}", timeout=1800)

    if s.target_user:
        plan.add(
            "shell",
            f"Add {s.target_user} to the {s.docker.group} group",
            command=f"usermod -aG {shlex.quote(s.docker.group)} {shlex.quote(s.target_user)}",
        )
    else:
        plan.notes.append(
            f"No target user (SUDO_USER is unset): not adding anyone to the {s.docker.group} group."
        )
    plan.halt_message = DOCKER_RELOGIN_MESSAGE


def _docker_compose(ctx: StepContext, plan: StepPlan) -> None:
    if ctx.host.command_succeeds(["docker", "compose", "version"]) or ctx.host.command_exists(
        "docker-compose"
    ):
        plan.skip_reason = "Docker Compose is already installed."
        return
    package = ctx.settings.docker.compose_package
    plan.add("apt", f"Install {package}", operation="install", packages=[package])


# ── GeoNode ─────────────────────────────────────────────────────


def _clone_geonode(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    if ctx.host.path_exists(s.geonode_path):
        plan.skip_reason = "GeoNode repository already exists."
        return
    plan.add(
        "git",
        f"Clone {s.geonode.repo_url}",
        operation="clone",
        url=s.geonode.repo_url,
        dest=str(s.geonode_path),
    )


def _env_file(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    repo = s.geonode_path
    if ctx.host.path_exists(repo / ".env"):
        plan.skip_reason = ".env file already exists."
        return

    helper = s.geonode.env_helper
    if not ctx.host.path_exists(repo / helper):
        if ctx.dry_run and not ctx.host.path_exists(repo):
            plan.notes.append(f"{helper} is looked up once the repository is cloned.")
        else:
            plan.error = f"Error: {helper} not found."
            return
    plan.add("python", "Create environment file", cwd=str(repo), operation="run", script=helper)


def _env_passwords(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    env_path = s.geonode_path / ".env"
    values = dict(zip(ENV_PASSWORD_KEYS, (s.geonode_password, s.geonode_data_password)))

    current = ctx.host.read_text(env_path)
    if current is not None:
        updated, changed = set_env_values(current, values)
        if updated == current and len(changed) == len(values):
            plan.skip_reason = "Database passwords are already set in .env."
            return

    plan.add(
        "filesystem",
        "Update .env file with database passwords",
        operation="env_set",
        path=str(env_path),
        values=values,
    )


def _compose(ctx: StepContext, plan: StepPlan, args: list[str], description: str) -> None:
    g = ctx.settings.geonode
    plan.add(
        "docker",
        description,
        cwd=str(ctx.settings.geonode_path),
        operation="compose",
        project=g.compose_project,
        files=list(g.compose_files),
        args=args,
    )


def _compose_build(ctx: StepContext, plan: StepPlan) -> None:
    _compose(ctx, plan, ["build"], "Build GeoNode images")


def _compose_up(ctx: StepContext, plan: StepPlan) -> None:
    _compose(ctx, plan, ["up", "-d"], "Start GeoNode containers")


def _compose_restart(ctx: StepContext, plan: StepPlan) -> None:
    _compose(ctx, plan, ["restart"], "Restart GeoNode containers")


def _wait_database(ctx: StepContext, plan: StepPlan) -> None:
    g = ctx.settings.geonode
    plan.wait(
        "docker",
        f"Database ({g.db_container})",
        operation="exec",
        container=g.db_container,
        args=["pg_isready", "-U", g.db_superuser],
        timeout=30,
    )


def _database_users(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    g = s.geonode
    sql = alter_user_sql({
        g.db_user: s.geonode_password,
        g.db_data_user: s.geonode_data_password,
    })
    plan.add(
        "docker",
        "Set PostgreSQL role passwords",
        operation="exec",
        container=g.db_container,
        args=["psql", "-v", "ON_ERROR_STOP=1", "-U", g.db_superuser],
        stdin=sql,
    )


def _wait_geoserver(ctx: StepContext, plan: StepPlan) -> None:
    g = ctx.settings.geonode
    plan.wait(
        "docker",
        f"GeoServer ({g.geoserver_container})",
        operation="exec",
        container=g.geoserver_container,
        args=["test", "-f", g.geoserver_users_path],
        timeout=30,
    )


def _geoserver_admin(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    g = s.geonode
    local = s.geonode_path / "users.xml"
    plan.add(
        "filesystem",
        "Write GeoServer users.xml",
        operation="write",
        path=str(local),
        content=render_users_xml(s.geoserver_admin_password),
        mode=0o600,
    )
    plan.add(
        "docker",
        f"Copy users.xml into {g.geoserver_container}",
        operation="cp",
        src=str(local),
        container=g.geoserver_container,
        dest=g.geoserver_users_path,
    )
    plan.add("filesystem", "Remove the local users.xml", operation="delete", path=str(local))


# ── MapStore client ─────────────────────────────────────────────


def _clone_client(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    if ctx.host.path_exists(s.client_path):
        plan.skip_reason = "MapStore2 client repository already exists."
        return
    plan.add(
        "git",
        f"Clone {s.mapstore_client.repo_url}",
        operation="clone",
        url=s.mapstore_client.repo_url,
        dest=str(s.client_path),
        recursive=True,
    )


def _compile_client(ctx: StepContext, plan: StepPlan) -> None:
    s = ctx.settings
    c = s.mapstore_client
    cwd = str(s.client_source_path)
    plan.add("node", "npm update", cwd=cwd, operation="update")
    plan.add("node", "npm install", cwd=cwd, operation="install")
    plan.add("node", "npm run compile", cwd=cwd, operation="script", script="compile")
    plan.add(
        "filesystem",
        "Write env.json",
        operation="write",
        path=str(s.client_source_path / "env.json"),
        content=render_client_env(c.dev_server_host, c.dev_server_protocol),
    )


# ── Editor and cleanup ──────────────────────────────────────────


def _editor(ctx: StepContext, plan: StepPlan) -> None:
    e = ctx.settings.editor
    if ctx.host.command_exists(e.command):
        plan.skip_reason = "Visual Studio Code is already installed."
        return
    arch = ctx.host.dpkg_architecture()
    line = f"deb [arch={arch} signed-by={e.keyring}] {e.repo_url} {e.suite} {e.components}"
    plan.add(
        "apt",
        "Register the Visual Studio Code repository",
        operation="add_repository",
        key_url=e.key_url,
        keyring=e.keyring,
        list_file=e.list_file,
        line=line,
    )
    plan.add("apt", "Update package lists", operation="update")
    plan.add("apt", f"Install {e.package}", operation="install", packages=[e.package])


def _cleanup(ctx: StepContext, plan: StepPlan) -> None:
    plan.add(
        "filesystem",
        "Remove temporary files",
        operation="delete",
        path=str(ctx.settings.docker_script_path),
    )


STEPS: list[Step] = [
    Step("privileges", "Checking privileges", _privileges),
    Step("install-dir", "Preparing installation directory", _install_dir),
    Step("apt-update", "Updating package lists", _apt_update),
    Step("packages", "Installing required packages", _packages),
    Step("docker", "Installing Docker", _docker),
    Step("docker-compose", "Installing Docker Compose", _docker_compose),
    Step("clone-geonode", "Cloning GeoNode repository", _clone_geonode),
    Step("env-file", "Creating environment file", _env_file),
    Step("env-passwords", "Updating .env file with database passwords", _env_passwords),
    Step("compose-build", "Building Docker containers", _compose_build),
    Step("compose-up", "Starting Docker containers", _compose_up, tolerate_failure=True),
    Step("wait-database", "Waiting for the database to be ready", _wait_database),
    Step("database-users", "Configuring PostgreSQL users", _database_users),
    Step("wait-geoserver", "Waiting for GeoServer to be ready", _wait_geoserver),
    Step("geoserver-admin", "Updating GeoServer admin password", _geoserver_admin),
    Step("compose-restart", "Restarting Docker containers", _compose_restart),
    Step("clone-client", "Cloning MapStore2 client repository", _clone_client, group="client"),
    Step("compile-client", "Compiling MapStore2 client", _compile_client, group="client"),
    Step("editor", "Installing Visual Studio Code", _editor, group="editor"),
    Step("cleanup", "Cleaning up temporary files", _cleanup),
]


def build_steps(
    settings: SetupSettings,
    include_client: bool | None = None,
    include_editor: bool | None = None,
) -> list[Step]:
    """The step sequence for these settings.

    ``include_client``/``include_editor`` override the configuration
    when given (CLI flags).
    """
    enabled = {
        "client": settings.mapstore_client.enabled if include_client is None else include_client,
        "editor": settings.editor.enabled if include_editor is None else include_editor,
    }
    return [step for step in STEPS if step.group is None or enabled[step.group]]


def completion_hints(settings: SetupSettings, include_client: bool | None = None) -> list[str]:
    """Commands the user should run once provisioning is done."""
    user = settings.target_user or "$USER"
    owner = f"{user}:{user}"
    hints = [
        "newgrp docker",
        f"sudo chown -R {owner} {shlex.quote(str(settings.geonode_path))}",
    ]
    if settings.mapstore_client.enabled if include_client is None else include_client:
        hints.append(f"sudo chown -R {owner} {shlex.quote(str(settings.client_path))}")
    hints.append("sudo reboot")
    return hints
