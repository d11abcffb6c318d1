"""
Adapter registry — the one door from provisioning steps to the host.

Steps hand Actions to ``execute_action``; the registry picks the adapter
named by the action (or the mock, in mock mode), validates the params,
stops short of execution in dry-run and stamps the duration on the
Receipt it returns. It never raises.
"""

from __future__ import annotations

import logging
import time

from geonode_devenv.adapters.base import Adapter, ExecutionContext
from geonode_devenv.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus mock mode and dispatch."""

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Route every action to ``mock_adapter`` (or to a canned success)."""
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    # ── Registration ────────────────────────────────────────────

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def adapter_status(self) -> dict[str, bool]:
        """Adapter name to whether its tool (apt-get, docker, git, ...) is on PATH."""
        status: dict[str, bool] = {}
        for name, adapter in sorted(self._adapters.items()):
            try:
                available = adapter.is_available()
            except Exception as e:
                logger.debug("Availability check for %s failed: %s", name, e)
                available = False
            status[name] = available
        return status

    # ── Dispatch ────────────────────────────────────────────────

    def _resolve(self, action: Action) -> Adapter | Receipt:
        if self._mock_mode:
            if self._mock_adapter is not None:
                return self._mock_adapter
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.description or action.id}",
                metadata={"mock": True},
            )
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )
        return adapter

    def execute_action(
        self,
        action: Action,
        install_dir: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Validate and run one action.

        Args:
            action: What to do.
            install_dir: Working directory for actions without their own ``cwd``.
            dry_run: Validate only; answer with a skipped receipt.

        Returns:
            The adapter's receipt, with ``duration_ms`` set.
        """
        started = time.monotonic()

        resolved = self._resolve(action)
        if isinstance(resolved, Receipt):
            return resolved
        adapter = resolved

        context = ExecutionContext(action=action, install_dir=install_dir, dry_run=dry_run)

        try:
            valid, reason = adapter.validate(context)
        except Exception as e:
            valid, reason = False, f"validator raised {e}"
        if not valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {reason}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] {action.description or action.id}",
                metadata={"dry_run": True},
            )

        logger.debug("Dispatching %s to %s: %s", action.id, adapter.name, action.description)
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", adapter.name, action.id, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        return receipt


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry wired with every real adapter the provisioner uses."""
    from geonode_devenv.adapters.containers.docker import DockerAdapter
    from geonode_devenv.adapters.languages import NodeAdapter, PythonAdapter
    from geonode_devenv.adapters.shell.command import ShellCommandAdapter
    from geonode_devenv.adapters.shell.filesystem import FilesystemAdapter
    from geonode_devenv.adapters.system.apt import AptAdapter
    from geonode_devenv.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    for adapter in (
        ShellCommandAdapter(),
        FilesystemAdapter(),
        AptAdapter(),
        GitAdapter(),
        DockerAdapter(),
        PythonAdapter(),
        NodeAdapter(),
    ):
        registry.register(adapter)
    return registry
