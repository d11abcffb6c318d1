"""
CLI commands for configuration — show and check.

Thin wrappers over ``geonode_devenv.core.use_cases.config_check``.
"""

from __future__ import annotations

import json
import sys

import click
import yaml


@click.group()
def config() -> None:
    """Configuration — resolved settings and validation."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Print the resolved settings (passwords masked)."""
    from geonode_devenv.core.config.loader import ConfigError, load_settings

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    data = settings.masked()
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    click.echo(yaml.safe_dump(data, sort_keys=False), nl=False)


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Validate geonode-devenv.yml and environment overrides."""
    from geonode_devenv.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.settings is not None
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   File:        {result.config_path or '(defaults)'}")
        click.echo(f"   Install dir: {result.settings.install_path}")
        click.echo(f"   Target user: {result.settings.target_user or '(none)'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.tools:
        present = [name for name, ok in result.tools.items() if ok]
        absent = [name for name, ok in result.tools.items() if not ok]
        click.echo(f"   Tools:       {', '.join(present) or '(none)'}")
        if absent:
            click.echo(f"   Not yet on PATH: {', '.join(absent)}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()
