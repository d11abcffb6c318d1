"""
SetupState — what the last provisioning run left behind.

Serialized to ``<install_dir>/.geonode-devenv/state.json``. The state
is informational only: guards always probe the host, never this file,
so deleting it changes nothing about what the next run does.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepState(BaseModel):
    """Last known outcome of one provisioning step."""

    name: str
    last_status: str | None = None  # ok, skipped, failed, warning
    last_run_at: str | None = None
    message: str = ""


class RunRecord(BaseModel):
    """Summary of the last provisioning run."""

    run_id: str = ""
    started_at: str = ""
    ended_at: str = ""
    status: str = ""  # ok, halted, failed
    steps_total: int = 0
    steps_succeeded: int = 0
    steps_skipped: int = 0
    steps_failed: int = 0
    stopped_at: str | None = None


class SetupState(BaseModel):
    """Root state model."""

    schema_version: int = 1

    install_dir: str = ""

    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    steps: dict[str, StepState] = Field(default_factory=dict)
    last_run: RunRecord = Field(default_factory=RunRecord)

    metadata: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def set_step_state(self, name: str, **kwargs: Any) -> None:
        """Update or create a step state entry."""
        if name in self.steps:
            for key, value in kwargs.items():
                setattr(self.steps[name], key, value)
        else:
            self.steps[name] = StepState(name=name, **kwargs)
