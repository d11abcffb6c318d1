"""
Provisioning step — one guarded unit of the setup sequence.

A step looks at the host through its guard and either declares itself
satisfied (skip) or produces a StepPlan: the actions to dispatch, an
optional readiness probe to poll, and whether the run halts afterwards.
Steps never execute anything themselves.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from geonode_devenv.adapters.registry import AdapterRegistry
from geonode_devenv.core.models.action import Action
from geonode_devenv.core.models.settings import SetupSettings
from geonode_devenv.core.services.host import HostProbe


@dataclass
class StepContext:
    """What a step may consult while planning, and what the runner needs."""

    settings: SetupSettings
    host: HostProbe
    registry: AdapterRegistry
    dry_run: bool = False
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic


@dataclass
class StepPlan:
    """The outcome of planning one step."""

    step_id: str
    actions: list[Action] = field(default_factory=list)
    wait_for: Action | None = None       # readiness probe, polled after actions
    skip_reason: str | None = None       # guard satisfied
    error: str | None = None             # precondition failed, nothing to run
    error_code: int = 1
    halt_message: str | None = None      # stop the run successfully afterwards
    notes: list[str] = field(default_factory=list)

    def add(
        self,
        adapter: str,
        description: str,
        cwd: str | None = None,
        **params: Any,
    ) -> Action:
        """Append an action with a step-scoped id."""
        action = Action(
            id=f"{self.step_id}:{len(self.actions) + 1}",
            adapter=adapter,
            description=description,
            step=self.step_id,
            params=params,
            cwd=cwd,
        )
        self.actions.append(action)
        return action

    def wait(self, adapter: str, description: str, cwd: str | None = None, **params: Any) -> Action:
        self.wait_for = Action(
            id=f"{self.step_id}:ready",
            adapter=adapter,
            description=description,
            step=self.step_id,
            params=params,
            cwd=cwd,
        )
        return self.wait_for

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None


@dataclass
class Step:
    """A named provisioning step.

    Attributes:
        id: Stable identifier, used in state, audit and action ids.
        title: Banner shown while the step runs.
        planner: Builds the StepPlan from the current host.
        tolerate_failure: Failed actions become a warning, the run goes on.
        group: Optional feature group ('client', 'editor') that can be
            switched off as a whole.
    """

    id: str
    title: str
    planner: Callable[[StepContext, StepPlan], None]
    tolerate_failure: bool = False
    group: str | None = None

    def plan(self, ctx: StepContext) -> StepPlan:
        plan = StepPlan(step_id=self.id)
        self.planner(ctx, plan)
        return plan
