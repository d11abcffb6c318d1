"""
Engine executor — runs the provisioning steps in order.

Flow per step:
    plan (guard) → skip | dispatch actions → poll readiness → record outcome

The run stops at the first failed step, except for steps that tolerate
failure (reported as warnings), and stops successfully when a step
asks to halt (e.g. the user must log in again after joining a group).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Callable

from geonode_devenv.core.engine.poll import poll_until_ready
from geonode_devenv.core.engine.step import Step, StepContext
from geonode_devenv.core.models.action import Receipt
from geonode_devenv.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """What happened to one step."""

    step_id: str
    title: str
    status: str = "ok"  # ok, skipped, failed, warning, halted
    message: str = ""
    notes: list[str] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)
    exit_code: int = 0

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def to_dict(self) -> dict:
        return {
            "step": self.step_id,
            "title": self.title,
            "status": self.status,
            "message": self.message,
            "notes": self.notes,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


@dataclass
class ProvisionReport:
    """Result of running the step sequence."""

    run_id: str = ""
    started_at: str = ""
    ended_at: str = ""
    dry_run: bool = False
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def _count(self, *statuses: str) -> int:
        return sum(1 for o in self.outcomes if o.status in statuses)

    @property
    def succeeded(self) -> int:
        return self._count("ok", "warning", "halted")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def warnings(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status == "warning"]

    @property
    def halted(self) -> bool:
        return bool(self.outcomes) and self.outcomes[-1].status == "halted"

    @property
    def stopped_at(self) -> str | None:
        """Step id the run ended early on, if it did."""
        if self.outcomes and self.outcomes[-1].status in ("failed", "halted"):
            return self.outcomes[-1].step_id
        return None

    @property
    def status(self) -> str:
        if self.failed:
            return "failed"
        if self.halted:
            return "halted"
        return "ok"

    @property
    def exit_code(self) -> int:
        for outcome in self.outcomes:
            if outcome.failed:
                return outcome.exit_code or 1
        return 0

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": self.status,
            "exit_code": self.exit_code,
            "dry_run": self.dry_run,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "total": self.total,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "stopped_at": self.stopped_at,
            "steps": [o.to_dict() for o in self.outcomes],
        }


def _failure_exit_code(receipt: Receipt) -> int:
    code = receipt.return_code
    return code if code and code > 0 else 1


def run_step(step: Step, ctx: StepContext) -> StepOutcome:
    """Plan and execute a single step."""
    outcome = StepOutcome(step_id=step.id, title=step.title)
    install_dir = str(ctx.settings.install_path)

    try:
        plan = step.plan(ctx)
    except Exception as e:
        logger.error("Step %s could not be planned: %s", step.id, e)
        outcome.status = "failed"
        outcome.message = f"Planning error: {e}"
        outcome.exit_code = 1
        return outcome

    outcome.notes = list(plan.notes)

    if plan.error:
        outcome.status = "failed"
        outcome.message = plan.error
        outcome.exit_code = plan.error_code
        return outcome

    if plan.skipped:
        outcome.status = "skipped"
        outcome.message = plan.skip_reason or ""
        return outcome

    for action in plan.actions:
        receipt = ctx.registry.execute_action(action, install_dir=install_dir, dry_run=ctx.dry_run)
        outcome.receipts.append(receipt)
        if receipt.failed:
            return _record_failure(step, outcome, receipt)

    if plan.wait_for is not None:
        receipt = poll_until_ready(
            ctx.registry,
            plan.wait_for,
            install_dir=install_dir,
            interval=ctx.settings.poll.interval,
            timeout=ctx.settings.poll.timeout,
            dry_run=ctx.dry_run,
            sleep=ctx.sleep,
            clock=ctx.clock,
        )
        outcome.receipts.append(receipt)
        if receipt.failed:
            return _record_failure(step, outcome, receipt)

    if plan.halt_message:
        outcome.status = "halted"
        outcome.message = plan.halt_message

    return outcome


def _record_failure(step: Step, outcome: StepOutcome, receipt: Receipt) -> StepOutcome:
    error = receipt.error or "failed"
    if step.tolerate_failure:
        logger.warning("Step %s failed, continuing: %s", step.id, error)
        outcome.status = "warning"
        outcome.message = error
        return outcome
    outcome.status = "failed"
    outcome.message = error
    outcome.exit_code = _failure_exit_code(receipt)
    return outcome


def run_steps(
    steps: list[Step],
    ctx: StepContext,
    run_id: str = "",
    on_step_start: Callable[[Step], None] | None = None,
    on_step_end: Callable[[StepOutcome], None] | None = None,
) -> ProvisionReport:
    """Run steps in order until one fails or halts.

    Args:
        steps: The sequence to run.
        ctx: Shared step context.
        run_id: Identifier stamped on the report.
        on_step_start: Called before each step (progress banners).
        on_step_end: Called with each outcome.

    Returns:
        ProvisionReport with one outcome per step that ran.
    """
    report = ProvisionReport(
        run_id=run_id or generate_run_id(),
        started_at=datetime.now(UTC).isoformat(),
        dry_run=ctx.dry_run,
    )

    for step in steps:
        if on_step_start:
            on_step_start(step)

        outcome = run_step(step, ctx)
        report.outcomes.append(outcome)

        status_marker = {"ok": "✓", "skipped": "⊘", "warning": "!", "halted": "■"}.get(
            outcome.status, "✗"
        )
        logger.info("%s %s → %s", status_marker, step.id, outcome.status)

        if on_step_end:
            on_step_end(outcome)

        if outcome.status in ("failed", "halted"):
            break

    report.ended_at = datetime.now(UTC).isoformat()
    return report


def write_audit_entry(report: ProvisionReport, audit_writer: AuditWriter, install_dir: str) -> None:
    """Append the run summary to the audit ledger."""
    entry = AuditEntry(
        run_id=report.run_id,
        install_dir=install_dir,
        status=report.status,
        exit_code=report.exit_code,
        steps_total=report.total,
        steps_succeeded=report.succeeded,
        steps_skipped=report.skipped,
        steps_failed=report.failed,
        stopped_at=report.stopped_at,
        errors=[o.message for o in report.outcomes if o.failed],
        warnings=[o.message for o in report.warnings],
    )
    audit_writer.write(entry)


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"
