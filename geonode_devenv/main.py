"""
GeoNode development environment — CLI entrypoint.

Usage:
    sudo geonode-devenv run
    geonode-devenv plan
    geonode-devenv status
    python -m geonode_devenv.main --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from geonode_devenv import __version__
from geonode_devenv.core.observability.logging_config import setup_logging

_BANNER = "=" * 25


@click.group()
@click.version_option(version=__version__, prog_name="geonode-devenv")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to geonode-devenv.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """GeoNode development environment — provision a local GeoNode stack."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("GEONODE_DEVENV_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("GEONODE_DEVENV_LOG_FILE"),
        log_file_level=os.environ.get("GEONODE_DEVENV_LOG_FILE_LEVEL"),
    )


# ── run ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Check guards and validate, execute nothing.")
@click.option("--mock", is_flag=True, help="Use mock adapters (no real execution).")
@click.option("--skip-client", is_flag=True, help="Do not clone or compile the MapStore2 client.")
@click.option("--skip-editor", is_flag=True, help="Do not install Visual Studio Code.")
@click.pass_context
def run(
    ctx: click.Context,
    as_json: bool,
    dry_run: bool,
    mock: bool,
    skip_client: bool,
    skip_editor: bool,
) -> None:
    """Provision the GeoNode development environment.

    Every step checks first whether its work is already done, so the
    command can be re-run after a partial run or after logging in again
    once Docker has been installed.

    Examples:

        sudo geonode-devenv run

        geonode-devenv run --dry-run --skip-editor
    """
    from geonode_devenv.core.use_cases.provision import run_provision

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    show_progress = not as_json

    def on_start(step) -> None:
        if show_progress and not quiet:
            click.secho(f"{_BANNER} {step.title}... {_BANNER}", fg="cyan", bold=True)

    def on_end(outcome) -> None:
        if show_progress:
            _print_outcome(outcome, verbose=verbose, quiet=quiet)

    result = run_provision(
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        mock_mode=mock,
        include_client=False if skip_client else None,
        include_editor=False if skip_editor else None,
        on_step_start=on_start,
        on_step_end=on_end,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None

    click.echo()
    if report.status == "ok":
        mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
        click.secho(f"{_BANNER} {mode_label}Setup complete. Run {_BANNER}", fg="green", bold=True)
        for hint in result.hints:
            click.echo(hint)
    elif report.status == "halted":
        click.secho(f"   Stopped after '{report.stopped_at}' — re-run once done.", fg="yellow")
    else:
        click.secho(
            f"   Setup failed at '{report.stopped_at}' "
            f"({report.succeeded}/{report.total} steps done)",
            fg="red",
            bold=True,
        )

    for outcome in report.warnings:
        click.secho(f"   ⚠️  {outcome.step_id}: {outcome.message}", fg="yellow")

    sys.exit(result.exit_code)


def _print_outcome(outcome, verbose: bool, quiet: bool) -> None:
    if not quiet:
        for note in outcome.notes:
            click.echo(f"   {note}")

    if outcome.status == "ok":
        if quiet:
            return
        for receipt in outcome.receipts:
            marker = "⊘" if receipt.skipped else "✓"
            timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
            label = receipt.output if receipt.skipped else receipt.action_id
            click.secho(f"   {marker} {label}{timing}", fg="green" if receipt.ok else "yellow")
            if verbose and receipt.ok and receipt.output:
                for line in receipt.output.splitlines()[-10:]:
                    click.echo(f"     │ {line}")
    elif outcome.status == "skipped":
        if not quiet:
            click.secho(f"   ⊘ {outcome.message}", fg="white")
    elif outcome.status == "warning":
        click.secho(
            f"   Warning: {outcome.title.lower()} failed, but continuing script execution.",
            fg="yellow",
        )
        for line in outcome.message.splitlines()[:5]:
            click.echo(f"     │ {line}")
    elif outcome.status == "halted":
        click.secho(outcome.message, fg="yellow", bold=True)
    else:
        click.secho(f"   ✗ {outcome.title} failed", fg="red", bold=True)
        for line in outcome.message.splitlines()[:10]:
            click.echo(f"     │ {line}")


# ── plan ────────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--skip-client", is_flag=True, help="Leave out the MapStore2 client steps.")
@click.option("--skip-editor", is_flag=True, help="Leave out the editor step.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool, skip_client: bool, skip_editor: bool) -> None:
    """Show which steps a run would perform. Changes nothing."""
    from geonode_devenv.core.use_cases.plan import plan_provision

    result = plan_provision(
        config_path=ctx.obj.get("config_path"),
        include_client=False if skip_client else None,
        include_editor=False if skip_editor else None,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.settings is not None
    click.secho(f"\n📋 Plan for {result.settings.install_path}", fg="cyan", bold=True)
    click.echo(f"   Pending steps: {result.pending}/{len(result.steps)}")
    click.echo()

    icons = {"pending": ("•", "white"), "satisfied": ("✓", "green"), "blocked": ("✗", "red")}
    for step in result.steps:
        icon, color = icons.get(step.state, ("?", "white"))
        suffix = " (failure tolerated)" if step.tolerate_failure else ""
        click.secho(f"   {icon} {step.step_id}", fg=color, nl=False)
        click.echo(f" — {step.title}{suffix}")
        if step.reason:
            click.echo(f"       {step.reason}")
        if ctx.obj.get("verbose"):
            for action in step.actions:
                click.echo(f"       → {action}")
            for note in step.notes:
                click.echo(f"       · {note}")

    click.echo()


# ── status ──────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show the last recorded provisioning run."""
    from geonode_devenv.core.use_cases.status import get_status

    result = get_status(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"\n📦 {result.install_dir}", fg="cyan", bold=True)
    if not result.has_run:
        click.echo("   No provisioning run recorded yet.")
        click.echo()
        return

    assert result.state is not None
    last = result.state.last_run
    status_color = {"ok": "green", "halted": "yellow", "failed": "red"}.get(last.status, "white")
    click.echo(f"   Last run: {last.run_id} — ", nl=False)
    click.secho(last.status, fg=status_color, bold=True)
    click.echo(f"   Ended:    {last.ended_at}")
    click.echo(
        f"   Steps:    {last.steps_succeeded} done, {last.steps_skipped} skipped, "
        f"{last.steps_failed} failed"
    )
    if last.stopped_at:
        click.echo(f"   Stopped at: {last.stopped_at}")

    if ctx.obj.get("verbose"):
        click.echo()
        for name, step in result.state.steps.items():
            click.echo(f"     • {name}: {step.last_status}")

    if len(result.history) > 1:
        click.echo()
        click.secho("   Recent runs:", bold=True)
        for entry in reversed(result.history):
            click.echo(f"     {entry.timestamp}  {entry.status:<7} {entry.run_id}")

    click.echo()


# ── Register sub-command groups from geonode_devenv/ui/cli/ ──────

from geonode_devenv.ui.cli.config import config  # noqa: E402

cli.add_command(config)


if __name__ == "__main__":
    cli()
