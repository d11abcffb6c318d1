"""
Python adapter — run helper scripts shipped by the provisioned projects.

GeoNode generates its ``.env`` with its own ``create-envfile.py``; this
adapter runs such scripts with the system interpreter.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from geonode_devenv.adapters.base import Adapter, ExecutionContext, check_operation
from geonode_devenv.adapters.process import run_process
from geonode_devenv.core.models.action import Receipt


class PythonAdapter(Adapter):
    """Python interpreter adapter.

    Action params:
        operation (str): 'run'.
        script (str): Script path, relative to the working dir (for 'run').
        args (list[str]): Script arguments (for 'run').
        timeout (int): Timeout in seconds (default: 300).
    """

    @property
    def name(self) -> str:
        return "python"

    def is_available(self) -> bool:
        return shutil.which("python3") is not None or shutil.which("python") is not None

    def _python_cmd(self) -> str:
        """Resolve the Python interpreter command."""
        if shutil.which("python3"):
            return "python3"
        return "python"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return check_operation(context, {"run"}, required={"run": ("script",)})

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "run":
            return self._run_script(context)
        return self._unknown_operation(context, operation)

    def _run_script(self, ctx: ExecutionContext) -> Receipt:
        script = ctx.params["script"]
        if not (Path(ctx.working_dir) / script).is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"{script} not found.",
                metadata={"script": script, "cwd": ctx.working_dir, "return_code": 1},
            )
        cmd = [self._python_cmd(), script, *ctx.params.get("args", [])]
        return run_process(
            self.name,
            ctx.action.id,
            cmd,
            cwd=ctx.working_dir,
            timeout=ctx.params.get("timeout", 300),
        )
