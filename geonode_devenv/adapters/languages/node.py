"""
Node.js adapter — npm operations for the MapStore client build.
"""

from __future__ import annotations

import shutil

from geonode_devenv.adapters.base import Adapter, ExecutionContext, check_operation
from geonode_devenv.adapters.process import run_process
from geonode_devenv.core.models.action import Receipt

_NPM_ARGS = {
    "install": ["install"],
    "update": ["update"],
}


class NodeAdapter(Adapter):
    """npm adapter.

    Action params:
        operation (str): One of 'install', 'update', 'script'.
        script (str): npm script name (for 'script').
        timeout (int): Timeout in seconds (default: 1800).
    """

    @property
    def name(self) -> str:
        return "node"

    def is_available(self) -> bool:
        return shutil.which("npm") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return check_operation(
            context,
            {"install", "update", "script"},
            required={"script": ("script",)},
        )

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "script":
            args = ["run", context.params["script"]]
        elif operation in _NPM_ARGS:
            args = _NPM_ARGS[operation]
        else:
            return self._unknown_operation(context, operation)

        return run_process(
            self.name,
            context.action.id,
            ["npm", *args],
            cwd=context.working_dir,
            timeout=context.params.get("timeout", 1800),
        )
