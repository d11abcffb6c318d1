"""
Action and Receipt models — the execution contract.

A provisioning step never touches the host itself: it emits Actions,
the adapter registry dispatches them, and adapters answer with
Receipts. Failures travel in the Receipt, never as exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["ok", "skipped", "failed"]


class Action(BaseModel):
    """A single side effect requested by a provisioning step."""

    id: str                         # "<step>:<n>" within a run
    adapter: str                    # adapter name in the registry
    description: str = ""           # shown in plans and dry-runs
    step: str = ""
    params: dict[str, Any] = Field(default_factory=dict)
    cwd: str | None = None          # None: the install dir


class Receipt(BaseModel):
    """What came of one Action.

    ``metadata["return_code"]`` carries the exit code when a command ran;
    the CLI exits with it when the receipt ends the run.
    """

    adapter: str
    action_id: str
    status: ReceiptStatus = "ok"
    output: str = ""
    error: str | None = None
    finished_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def return_code(self) -> int | None:
        code = self.metadata.get("return_code")
        return code if isinstance(code, int) else None

    # Factories keep adapters from spelling out the status literal.

    @classmethod
    def _make(cls, status: ReceiptStatus, adapter: str, action_id: str, **fields: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status=status, **fields)

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls._make("ok", adapter, action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls._make("failed", adapter, action_id, error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """Skipped receipt; ``reason`` becomes the output line."""
        return cls._make("skipped", adapter, action_id, output=reason, **kwargs)
