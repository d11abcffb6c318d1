"""
Shell command adapter — run a command line through ``/bin/sh``.

Used for the handful of steps that are genuinely shell pipelines
(fetching and dearmoring an apt signing key) or that run a downloaded
installer script.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from geonode_devenv.adapters.base import Adapter, ExecutionContext
from geonode_devenv.adapters.process import run_process
from geonode_devenv.core.models.action import Receipt


class ShellCommandAdapter(Adapter):
    """Execute shell commands and capture output.

    Action params:
        command (str): The command to execute.
        shell (bool): Whether to run through shell (default: True).
        stdin (str): Text piped to the command.
        timeout (int): Timeout in seconds (default: 300).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command", "")
        if not command:
            return False, "Missing required param: 'command'"

        # Skipped in dry-run: earlier steps may not have created it yet
        cwd = context.working_dir
        if not context.dry_run and cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.params["command"]
        use_shell = context.params.get("shell", True)
        return run_process(
            self.name,
            context.action.id,
            command if use_shell else command.split(),
            shell=use_shell,
            cwd=context.working_dir,
            timeout=context.params.get("timeout", 300),
            stdin=context.params.get("stdin"),
        )
