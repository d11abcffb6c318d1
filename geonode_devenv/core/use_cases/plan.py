"""
Plan use case — show what a run would do, without doing it.

Evaluates every guard against the host and lists the actions each
pending step would dispatch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from geonode_devenv.adapters.registry import AdapterRegistry
from geonode_devenv.core.config.loader import ConfigError, load_settings
from geonode_devenv.core.engine.step import StepContext
from geonode_devenv.core.models.settings import SetupSettings
from geonode_devenv.core.services.host import HostProbe
from geonode_devenv.core.services.provisioning_steps import build_steps

logger = logging.getLogger(__name__)


@dataclass
class PlannedStep:
    step_id: str
    title: str
    state: str  # pending, satisfied, blocked
    reason: str = ""
    actions: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    tolerate_failure: bool = False

    def to_dict(self) -> dict:
        return {
            "step": self.step_id,
            "title": self.title,
            "state": self.state,
            "reason": self.reason,
            "actions": self.actions,
            "notes": self.notes,
            "tolerate_failure": self.tolerate_failure,
        }


@dataclass
class PlanResult:
    settings: SetupSettings | None = None
    steps: list[PlannedStep] = field(default_factory=list)
    error: str | None = None

    @property
    def pending(self) -> int:
        return sum(1 for s in self.steps if s.state == "pending")

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "install_dir": str(self.settings.install_path) if self.settings else "",
            "pending": self.pending,
            "steps": [s.to_dict() for s in self.steps],
        }


def plan_provision(
    config_path: Path | None = None,
    settings: SetupSettings | None = None,
    include_client: bool | None = None,
    include_editor: bool | None = None,
    host: HostProbe | None = None,
) -> PlanResult:
    """Evaluate the step sequence read-only."""
    result = PlanResult()

    if settings is None:
        try:
            settings = load_settings(config_path)
        except ConfigError as e:
            result.error = str(e)
            return result
    result.settings = settings

    ctx = StepContext(
        settings=settings,
        host=host or HostProbe(),
        registry=AdapterRegistry(),
        dry_run=True,
    )

    for step in build_steps(settings, include_client=include_client, include_editor=include_editor):
        try:
            plan = step.plan(ctx)
        except Exception as e:
            logger.debug("Step %s could not be planned: %s", step.id, e)
            result.steps.append(
                PlannedStep(
                    step_id=step.id,
                    title=step.title,
                    state="blocked",
                    reason=f"Planning error: {e}",
                    tolerate_failure=step.tolerate_failure,
                )
            )
            continue

        if plan.error:
            state, reason = "blocked", plan.error
        elif plan.skipped:
            state, reason = "satisfied", plan.skip_reason or ""
        else:
            state, reason = "pending", plan.halt_message or ""

        actions = [a.description for a in plan.actions]
        if plan.wait_for is not None:
            actions.append(f"wait for {plan.wait_for.description}")

        result.steps.append(
            PlannedStep(
                step_id=step.id,
                title=step.title,
                state=state,
                reason=reason,
                actions=actions,
                notes=plan.notes,
                tolerate_failure=step.tolerate_failure,
            )
        )

    return result
