"""
Git adapter — repository checkout.

The provisioner only ever clones: GeoNode and the MapStore client are
fetched once and then left to the developer.
"""

from __future__ import annotations

import shutil

from geonode_devenv.adapters.base import Adapter, ExecutionContext, check_operation
from geonode_devenv.adapters.process import run_process
from geonode_devenv.core.models.action import Receipt


class GitAdapter(Adapter):
    """Git operations.

    Action params:
        operation (str): 'clone'.
        url (str): Repository URL (for 'clone').
        dest (str): Destination directory (for 'clone').
        recursive (bool): Also clone submodules (default: False).
        timeout (int): Timeout in seconds (default: 1800).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return check_operation(
            context,
            {"clone"},
            required={"clone": ("url", "dest")},
        )

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "clone":
            return self._clone(context)
        return self._unknown_operation(context, operation)

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        url = ctx.params["url"]
        dest = ctx.params["dest"]
        args = ["git", "clone"]
        if ctx.params.get("recursive", False):
            args.append("--recursive")
        args.extend([url, dest])

        receipt = run_process(
            self.name,
            ctx.action.id,
            args,
            cwd=ctx.working_dir,
            timeout=ctx.params.get("timeout", 1800),
        )
        receipt.metadata.update({"url": url, "dest": dest})
        return receipt
