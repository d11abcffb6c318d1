"""
Adapter base — the protocol contract between the runner and tools.

Provisioning steps only talk to the host through adapters, and
adapters only report back through Receipts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from geonode_devenv.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action."""

    action: Action
    install_dir: str = "."
    dry_run: bool = False

    @property
    def params(self) -> dict:
        return self.action.params

    @property
    def working_dir(self) -> str:
        """Resolved working directory for the action."""
        return self.action.cwd or self.install_dir


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'apt', 'docker', 'git')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is on this host.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def _unknown_operation(self, context: ExecutionContext, operation: str) -> Receipt:
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=f"Unknown operation: {operation}",
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def check_operation(
    context: ExecutionContext,
    valid_ops: set[str],
    required: dict[str, tuple[str, ...]] | None = None,
) -> tuple[bool, str]:
    """Shared validation: known operation plus its required params."""
    operation = context.params.get("operation", "")
    if not operation:
        return False, "Missing required param: 'operation'"
    if operation not in valid_ops:
        return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(valid_ops))}"
    for param in (required or {}).get(operation, ()):
        if param not in context.params or context.params[param] in ("", None, []):
            return False, f"Missing required param: '{param}' for {operation} operation"
    return True, ""
