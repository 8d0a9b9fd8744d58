"""
CLI commands for background services (``brew services``).

Thin wrappers over the probe (list) and BrewAdapter (start/stop).
"""

from __future__ import annotations

import json
import os
import sys

import click

from ampp_setup.ui.cli.helpers import load_profile_or_exit


@click.group()
def services() -> None:
    """Services — list, start, stop (via brew services)."""


@services.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_services(ctx: click.Context, as_json: bool) -> None:
    """Show services registered with brew services."""
    from ampp_setup.core.services.homebrew import HomebrewProbe

    profile = load_profile_or_exit(ctx)
    probe = HomebrewProbe(fallback=profile.homebrew_bin)
    if not probe.locate():
        click.secho("❌ Homebrew not found", fg="red", err=True)
        sys.exit(1)

    rows = probe.service_table()
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.secho("⚠️  No services registered", fg="yellow")
        return

    click.secho("🔧 Services:", fg="cyan", bold=True)
    for row in rows:
        color = "green" if row["status"] == "started" else "white"
        click.secho(f"   {row['name']:<20} {row['status']:<10} {row['user']}", fg=color)
    click.echo()


def _run_service_op(ctx: click.Context, operation: str, formulae: tuple[str, ...]) -> None:
    from ampp_setup.adapters.registry import create_default_registry
    from ampp_setup.core.models.action import Action
    from ampp_setup.core.services.homebrew import HomebrewProbe, ensure_brew_on_path

    profile = load_profile_or_exit(ctx)
    targets = list(formulae) or profile.services
    ensure_brew_on_path(HomebrewProbe(fallback=profile.homebrew_bin), os.environ)
    registry = create_default_registry(prefix=profile.homebrew_prefix)

    failed = False
    for formula in targets:
        receipt = registry.execute_action(Action(
            id=f"service:{operation}:{formula}",
            adapter="brew",
            params={"operation": operation, "formulae": [formula]},
        ))
        verb = "Started" if operation == "service_start" else "Stopped"
        if receipt.ok:
            click.secho(f"   ✓ {verb} {formula}", fg="green")
        else:
            failed = True
            click.secho(f"   ✗ {formula}: {receipt.error}", fg="red", err=True)

    if failed:
        sys.exit(1)


@services.command()
@click.argument("formulae", nargs=-1)
@click.pass_context
def start(ctx: click.Context, formulae: tuple[str, ...]) -> None:
    """Start services (default: the profile's services)."""
    _run_service_op(ctx, "service_start", formulae)


@services.command()
@click.argument("formulae", nargs=-1)
@click.pass_context
def stop(ctx: click.Context, formulae: tuple[str, ...]) -> None:
    """Stop services (default: the profile's services)."""
    _run_service_op(ctx, "service_stop", formulae)
