"""
Provision use case — run the whole GeoNode development setup.

Loads settings, assembles the step sequence, runs it through the
adapter registry and records the outcome in the run ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from geonode_devenv.adapters.registry import AdapterRegistry, default_registry
from geonode_devenv.core.config.loader import ConfigError, load_settings
from geonode_devenv.core.engine.executor import (
    ProvisionReport,
    StepOutcome,
    generate_run_id,
    run_steps,
    write_audit_entry,
)
from geonode_devenv.core.engine.step import Step, StepContext
from geonode_devenv.core.models.settings import SetupSettings
from geonode_devenv.core.persistence.audit import AuditWriter
from geonode_devenv.core.persistence.state_file import default_state_path, load_state, save_state
from geonode_devenv.core.services.host import HostProbe
from geonode_devenv.core.services.provisioning_steps import build_steps, completion_hints

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    report: ProvisionReport | None = None
    settings: SetupSettings | None = None
    hints: list[str] = field(default_factory=list)
    state_saved: bool = False
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return 1
        return self.report.exit_code if self.report else 1

    def to_dict(self) -> dict:
        result: dict = {"exit_code": self.exit_code}
        if self.error:
            result["error"] = self.error
            return result
        if self.settings:
            result["install_dir"] = str(self.settings.install_path)
        if self.report:
            result["report"] = self.report.to_dict()
        result["hints"] = self.hints
        return result


def run_provision(
    config_path: Path | None = None,
    settings: SetupSettings | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    include_client: bool | None = None,
    include_editor: bool | None = None,
    registry: AdapterRegistry | None = None,
    host: HostProbe | None = None,
    sleep: Callable[[float], None] | None = None,
    on_step_start: Callable[[Step], None] | None = None,
    on_step_end: Callable[[StepOutcome], None] | None = None,
) -> ProvisionResult:
    """Run the provisioning sequence.

    Args:
        config_path: Explicit geonode-devenv.yml (default: search upward).
        settings: Pre-built settings; skips config loading when given.
        dry_run: Evaluate guards and validate actions, execute nothing.
        mock_mode: Dispatch every action to a mock that always succeeds.
        include_client: Override ``mapstore_client.enabled``.
        include_editor: Override ``editor.enabled``.
        registry: Pre-configured adapter registry (default: real adapters).
        host: Host probes (default: the real host).
        sleep: Sleep function used by readiness polls.
        on_step_start: Progress callback before each step.
        on_step_end: Progress callback after each step.

    Returns:
        ProvisionResult with the report and completion hints.
    """
    result = ProvisionResult()

    if settings is None:
        try:
            settings = load_settings(config_path)
        except ConfigError as e:
            result.error = str(e)
            return result
    result.settings = settings

    if registry is None:
        registry = default_registry(mock_mode=mock_mode)
    elif mock_mode:
        registry.set_mock_mode(True)

    ctx = StepContext(
        settings=settings,
        host=host or HostProbe(),
        registry=registry,
        dry_run=dry_run,
    )
    if sleep is not None:
        ctx.sleep = sleep

    steps = build_steps(settings, include_client=include_client, include_editor=include_editor)
    run_id = generate_run_id()
    logger.info("Starting %s (%d steps, dry_run=%s)", run_id, len(steps), dry_run)

    report = run_steps(
        steps,
        ctx,
        run_id=run_id,
        on_step_start=on_step_start,
        on_step_end=on_step_end,
    )
    result.report = report

    if report.status == "ok":
        result.hints = completion_hints(settings, include_client=include_client)

    if not dry_run and not registry.mock_mode:
        result.state_saved = _record_run(report, settings)

    return result


def _record_run(report: ProvisionReport, settings: SetupSettings) -> bool:
    """Persist state and audit. Never fails the run."""
    install_dir = settings.install_path
    if not install_dir.is_dir():
        # Stopped before the install dir existed (e.g. not root)
        return False

    state_path = default_state_path(install_dir)
    state = load_state(state_path)
    state.install_dir = str(install_dir)
    last = state.last_run
    last.run_id = report.run_id
    last.started_at = report.started_at
    last.ended_at = report.ended_at
    last.status = report.status
    last.steps_total = report.total
    last.steps_succeeded = report.succeeded
    last.steps_skipped = report.skipped
    last.steps_failed = report.failed
    last.stopped_at = report.stopped_at

    for outcome in report.outcomes:
        state.set_step_state(
            outcome.step_id,
            last_status=outcome.status,
            last_run_at=report.ended_at,
            message=outcome.message,
        )

    try:
        save_state(state, state_path)
    except OSError as e:
        logger.error("Could not save run state: %s", e)
        return False

    write_audit_entry(report, AuditWriter(install_dir=install_dir), str(install_dir))
    return True
