"""
Mock adapter — test double standing in for any real adapter.

Used by ``run --mock`` and by the test-suite to exercise the whole
provisioning sequence without apt, Docker or the network.
"""

from __future__ import annotations

from geonode_devenv.adapters.base import Adapter, ExecutionContext
from geonode_devenv.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter.

    Succeeds by default. Individual actions can be made to fail, or to
    fail a fixed number of times before succeeding (for readiness polls).
    Responses are keyed by action id or by step id.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._failures_before_success: dict[str, int] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_for_step(self, step_id: str) -> list[ExecutionContext]:
        return [c for c in self._call_log if c.action.step == step_id]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, key: str, receipt: Receipt) -> None:
        """Set a custom response for an action id or step id."""
        self._responses[key] = receipt

    def set_failure(self, key: str, error: str = "Mock failure", return_code: int = 1) -> None:
        """Configure an action id or step id to fail."""
        self._responses[key] = Receipt.failure(
            adapter=self._name,
            action_id=key,
            error=error,
            metadata={"return_code": return_code},
        )

    def fail_times(self, key: str, times: int) -> None:
        """Fail the first ``times`` calls for a key, then succeed."""
        self._failures_before_success[key] = times

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action = context.action

        for key in (action.id, action.step):
            remaining = self._failures_before_success.get(key, 0)
            if remaining > 0:
                self._failures_before_success[key] = remaining - 1
                return Receipt.failure(
                    adapter=self._name,
                    action_id=action.id,
                    error="[mock] not ready",
                )
            if key in self._responses:
                return self._responses[key].model_copy(update={"action_id": action.id})

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
        self._failures_before_success.clear()
