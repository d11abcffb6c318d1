"""
APT adapter — Debian/Ubuntu package management.

Wraps ``apt-get`` for index refreshes and installs, and registers
third-party repositories (signing key into ``/usr/share/keyrings``,
a ``signed-by`` source list into ``/etc/apt/sources.list.d``).
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
from pathlib import Path

from geonode_devenv.adapters.base import Adapter, ExecutionContext, check_operation
from geonode_devenv.adapters.process import run_process
from geonode_devenv.core.models.action import Receipt

logger = logging.getLogger(__name__)


def _apt_env() -> dict[str, str]:
    env = os.environ.copy()
    env["DEBIAN_FRONTEND"] = "noninteractive"
    return env


class AptAdapter(Adapter):
    """apt-get operations.

    Action params:
        operation (str): One of 'update', 'install', 'add_repository'.
        packages (list[str]): Packages to install (for 'install').
        key_url (str): ASCII-armored signing key URL (for 'add_repository').
        keyring (str): Dearmored keyring destination (for 'add_repository').
        list_file (str): Source list to write (for 'add_repository').
        line (str): The ``deb ...`` source line (for 'add_repository').
        timeout (int): Timeout in seconds.
    """

    _VALID_OPS = {"update", "install", "add_repository"}

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return shutil.which("apt-get") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return check_operation(
            context,
            self._VALID_OPS,
            required={
                "install": ("packages",),
                "add_repository": ("key_url", "keyring", "list_file", "line"),
            },
        )

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "update":
            return self._update(context)
        if operation == "install":
            return self._install(context)
        if operation == "add_repository":
            return self._add_repository(context)
        return self._unknown_operation(context, operation)

    # ── Operations ──────────────────────────────────────────────

    def _update(self, ctx: ExecutionContext) -> Receipt:
        return run_process(
            self.name,
            ctx.action.id,
            ["apt-get", "update"],
            timeout=ctx.params.get("timeout", 600),
            env=_apt_env(),
        )

    def _install(self, ctx: ExecutionContext) -> Receipt:
        packages = list(ctx.params["packages"])
        receipt = run_process(
            self.name,
            ctx.action.id,
            ["apt-get", "install", "-y", *packages],
            timeout=ctx.params.get("timeout", 1800),
            env=_apt_env(),
        )
        receipt.metadata["packages"] = packages
        return receipt

    def _add_repository(self, ctx: ExecutionContext) -> Receipt:
        key_url = ctx.params["key_url"]
        keyring = Path(ctx.params["keyring"])
        list_file = Path(ctx.params["list_file"])

        keyring.parent.mkdir(parents=True, exist_ok=True)
        fetch = (
            f"curl -fsSL {shlex.quote(key_url)} | "
            f"gpg --dearmor --yes -o {shlex.quote(str(keyring))}"
        )
        receipt = run_process(
            self.name,
            ctx.action.id,
            fetch,
            shell=True,
            timeout=ctx.params.get("timeout", 120),
        )
        if receipt.failed:
            return receipt

        try:
            keyring.chmod(0o644)
            list_file.parent.mkdir(parents=True, exist_ok=True)
            list_file.write_text(ctx.params["line"].rstrip("\n") + "\n", encoding="utf-8")
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Cannot register repository: {e}",
                metadata={"keyring": str(keyring), "list_file": str(list_file)},
            )

        logger.info("Registered apt repository in %s", list_file)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Repository registered: {list_file}",
            metadata={"keyring": str(keyring), "list_file": str(list_file), "return_code": 0},
        )
