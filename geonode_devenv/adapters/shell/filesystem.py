"""
Filesystem adapter — file and directory operations with receipts.

Covers the local file work of the provisioning sequence: creating the
installation directory, rewriting ``.env`` values, writing generated
artefacts (``users.xml``, ``env.json``, apt source lists) and removing
temporary files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from geonode_devenv.adapters.base import Adapter, ExecutionContext, check_operation
from geonode_devenv.core.models.action import Receipt
from geonode_devenv.core.services.envfile import set_env_values

logger = logging.getLogger(__name__)


class FilesystemAdapter(Adapter):
    """File and directory operations.

    Action params:
        operation (str): One of 'exists', 'read', 'write', 'mkdir',
                         'delete', 'env_set'.
        path (str): Target path (relative to working_dir or absolute).
        content (str): Content to write (for 'write').
        mode (int): Permission bits the file is created with (for 'write').
        values (dict[str, str]): Keys to rewrite (for 'env_set').
    """

    _VALID_OPS = {"exists", "read", "write", "mkdir", "delete", "env_set"}

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        valid, msg = check_operation(
            context,
            self._VALID_OPS,
            required={
                "exists": ("path",),
                "read": ("path",),
                "write": ("path",),
                "mkdir": ("path",),
                "delete": ("path",),
                "env_set": ("path", "values"),
            },
        )
        if not valid:
            return valid, msg
        if context.params["operation"] == "write" and "content" not in context.params:
            return False, "Missing required param: 'content' for write operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]

        target = Path(context.params["path"])
        if not target.is_absolute():
            target = Path(context.working_dir) / target

        handlers = {
            "exists": self._exists,
            "read": self._read,
            "write": self._write,
            "mkdir": self._mkdir,
            "delete": self._delete,
            "env_set": self._env_set,
        }
        handler = handlers.get(operation)
        if handler is None:
            return self._unknown_operation(context, operation)

        try:
            return handler(context, target)
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    def _exists(self, ctx: ExecutionContext, target: Path) -> Receipt:
        exists = target.exists()
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=str(exists),
            metadata={"exists": exists, "is_dir": target.is_dir(), "path": str(target)},
        )

    def _read(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if not target.is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"File not found: {target}",
            )
        content = target.read_text(encoding="utf-8")
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=content,
            metadata={"path": str(target), "size": len(content)},
        )

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        content = ctx.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        mode = ctx.params.get("mode")
        if mode is None:
            target.write_text(content, encoding="utf-8")
        else:
            # Created with its final mode; chmod covers a pre-existing file
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            os.fchmod(fd, mode)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Written {len(content)} bytes to {target}",
            metadata={"path": str(target), "size": len(content)},
        )

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.mkdir(parents=True, exist_ok=True)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Directory ready: {target}",
            metadata={"path": str(target)},
        )

    def _delete(self, ctx: ExecutionContext, target: Path) -> Receipt:
        # rm -f semantics: a missing file is not an error
        existed = target.is_file()
        target.unlink(missing_ok=True)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Removed {target}" if existed else f"Nothing to remove at {target}",
            metadata={"path": str(target), "existed": existed},
        )

    def _env_set(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if not target.is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"File not found: {target}",
            )
        values: dict[str, str] = ctx.params["values"]
        # Non-UTF-8 bytes elsewhere in the file are written back as they were
        original = target.read_text(encoding="utf-8", errors="surrogateescape")
        updated, changed = set_env_values(original, values)
        if updated != original:
            target.write_text(updated, encoding="utf-8", errors="surrogateescape")
        missing = sorted(set(values) - set(changed))
        if missing:
            logger.warning("Keys not present in %s, left unset: %s", target, ", ".join(missing))
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Updated {', '.join(changed) or 'nothing'} in {target}",
            metadata={"path": str(target), "changed": changed, "missing": missing},
        )
