"""
CLI commands for configuration patches.

Lets a mentor inspect what the installer would change, or re-apply a
single patch after restoring a config file by hand.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from ampp_setup.ui.cli.helpers import ClickPrompter, load_profile_or_exit

_MASKED_SECRET = "<generated-at-apply-time>"


def _prefix(profile) -> str:
    from ampp_setup.core.services.homebrew import HomebrewProbe

    probe = HomebrewProbe(fallback=profile.homebrew_bin)
    prefix = probe.prefix() if probe.locate() else None
    return (prefix or profile.homebrew_prefix).rstrip("/")


@click.group()
def patches() -> None:
    """Patches — list, show, apply configuration patches."""


@patches.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_patches(ctx: click.Context, as_json: bool) -> None:
    """List configured patches and whether their targets exist."""
    profile = load_profile_or_exit(ctx)
    prefix = _prefix(profile)

    rows = [
        {
            "name": spec.name,
            "label": spec.display_name,
            "template": spec.template,
            "target": f"{prefix}/{spec.target}",
            "target_exists": Path(prefix, spec.target).is_file(),
            "follow_ups": len(spec.after),
        }
        for spec in profile.patches
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    click.secho("🩹 Patches:", fg="cyan", bold=True)
    for row in rows:
        icon = "✅" if row["target_exists"] else "⚠️"
        click.echo(f"   {icon} {row['name']:<12} {row['target']}")
    click.echo()


@patches.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Print the rendered diff for one patch."""
    from ampp_setup.core.services.patching import build_placeholders, render_patch

    profile = load_profile_or_exit(ctx)
    spec = profile.get_patch(name)
    if spec is None:
        click.secho(f"❌ Unknown patch: {name}", fg="red", err=True)
        sys.exit(1)

    placeholders = build_placeholders(profile, _prefix(profile), blowfish_secret=_MASKED_SECRET)
    click.echo(render_patch(spec, placeholders), nl=False)


@patches.command()
@click.argument("name")
@click.option("--dry-run", is_flag=True, help="Validate but don't apply.")
@click.pass_context
def apply(ctx: click.Context, name: str, dry_run: bool) -> None:
    """Apply one patch (and its follow-ups) after confirmation."""
    from ampp_setup.adapters.registry import create_default_registry
    from ampp_setup.core.engine.sequencer import Sequencer
    from ampp_setup.core.errors import ProvisionError
    from ampp_setup.core.services.patching import build_placeholders, patch_step

    profile = load_profile_or_exit(ctx)
    spec = profile.get_patch(name)
    if spec is None:
        click.secho(f"❌ Unknown patch: {name}", fg="red", err=True)
        sys.exit(1)

    prefix = _prefix(profile)
    step = patch_step(profile, spec, prefix, build_placeholders(profile, prefix))
    sequencer = Sequencer(create_default_registry(prefix), ClickPrompter(), dry_run=dry_run)
    try:
        sequencer.run_step(step)
    except ProvisionError as e:
        click.secho(str(e), fg="red", err=True)
        sys.exit(e.exit_code)
