"""
Docker adapter — compose stacks and container operations.

Uses the docker CLI, never the Docker API directly, so the behaviour
matches what a developer typing the same commands would see.
"""

from __future__ import annotations

import shutil

from geonode_devenv.adapters.base import Adapter, ExecutionContext, check_operation
from geonode_devenv.adapters.process import run_process
from geonode_devenv.core.models.action import Receipt


def compose_command(project: str, files: list[str], args: list[str]) -> list[str]:
    """``docker compose --project-name P -f a.yml -f b.yml <args>``."""
    cmd = ["docker", "compose", "--project-name", project]
    for f in files:
        cmd.extend(["-f", f])
    cmd.extend(args)
    return cmd


class DockerAdapter(Adapter):
    """Docker and Docker Compose operations.

    Action params:
        operation (str): One of 'compose', 'exec', 'cp'.
        project (str): Compose project name (for 'compose').
        files (list[str]): Compose files (for 'compose').
        args (list[str]): Compose sub-command and its flags (for 'compose'),
                          or the command run inside the container (for 'exec').
        container (str): Target container (for 'exec' and 'cp').
        stdin (str): Text piped into the container (for 'exec'; adds ``-i``).
        src (str): Local path (for 'cp').
        dest (str): Path inside the container (for 'cp').
        timeout (int): Timeout in seconds.
    """

    _VALID_OPS = {"compose", "exec", "cp"}

    @property
    def name(self) -> str:
        return "docker"

    def is_available(self) -> bool:
        return shutil.which("docker") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return check_operation(
            context,
            self._VALID_OPS,
            required={
                "compose": ("project", "files", "args"),
                "exec": ("container", "args"),
                "cp": ("src", "container", "dest"),
            },
        )

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "compose":
            return self._compose(context)
        if operation == "exec":
            return self._exec(context)
        if operation == "cp":
            return self._cp(context)
        return self._unknown_operation(context, operation)

    # ── Operations ──────────────────────────────────────────────

    def _compose(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.params
        cmd = compose_command(p["project"], list(p["files"]), list(p["args"]))
        # Image builds routinely take tens of minutes
        return self._run(ctx, cmd, timeout=p.get("timeout", 3600))

    def _exec(self, ctx: ExecutionContext) -> Receipt:
        stdin = ctx.params.get("stdin")
        cmd = ["docker", "exec"]
        if stdin is not None:
            cmd.append("-i")
        cmd.append(ctx.params["container"])
        cmd.extend(ctx.params["args"])
        return self._run(ctx, cmd, timeout=ctx.params.get("timeout", 120), stdin=stdin)

    def _cp(self, ctx: ExecutionContext) -> Receipt:
        p = ctx.params
        target = f"{p['container']}:{p['dest']}"
        return self._run(ctx, ["docker", "cp", p["src"], target], timeout=p.get("timeout", 120))

    # ── Helpers ─────────────────────────────────────────────────

    def _run(
        self,
        ctx: ExecutionContext,
        cmd: list[str],
        timeout: float | None,
        stdin: str | None = None,
    ) -> Receipt:
        return run_process(
            self.name,
            ctx.action.id,
            cmd,
            cwd=ctx.working_dir,
            timeout=timeout,
            stdin=stdin,
        )
