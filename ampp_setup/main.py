"""
ampp-setup — CLI entrypoint.

Usage:
    ampp-setup --help
    ampp-setup check
    ampp-setup install
    python -m ampp_setup.main plan
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from ampp_setup import __version__
from ampp_setup.core.observability.logging_config import resolve_level, setup_logging
from ampp_setup.ui.cli.helpers import ClickPrompter, load_profile_or_exit


@click.group()
@click.version_option(version=__version__, prog_name="ampp-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Profile YAML overlaid on the built-in defaults.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """ampp-setup — install Apache, PHP, MariaDB and phpMyAdmin with Homebrew."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("AMPP_LOG_FILE"),
        log_file_level=os.environ.get("AMPP_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.option("--dry-run", is_flag=True, help="Ask every question but change nothing.")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every question.")
@click.pass_context
def install(ctx: click.Context, dry_run: bool, assume_yes: bool) -> None:
    """Run the interactive setup.

    Every change is confirmed first (default: no). The first failing
    command ends the run.
    """
    from ampp_setup.core.engine.prompter import AutoPrompter
    from ampp_setup.core.use_cases.provision import provision

    profile = load_profile_or_exit(ctx)
    prompter = ClickPrompter()
    if assume_yes:
        prompter = AutoPrompter(answer=True, output=prompter)

    if not assume_yes:
        prompter.warn(
            f"This setup is for Apple Silicon Macs with the default {profile.required_shell} "
            "shell. If you're using an Intel Mac and/or another shell, the setup will halt "
            "and you should consult your studio mentors."
        )

    result = provision(profile, prompter, dry_run=dry_run)

    if not result.ok:
        click.secho(f"✘ {result.error}", fg="red", err=True)
        sys.exit(1)

    prompter.success("All done." if not dry_run else "[dry-run] All done. Nothing was changed.")
    click.echo()
    prompter.info("Find the webroot folder of Apache...")
    click.echo(
        f"The root of your web server is located at '{result.webroot}' - Files inside "
        f"this folder are served at http://localhost:{profile.http_port}"
    )
    if profile.open_webroot:
        click.echo("This folder will open for you in Finder - add it to the sidebar for quick access!")
    click.echo()
    prompter.info("Next steps:")
    for line in result.next_steps:
        indent = "   " if line.startswith("  ") else " - "
        click.echo(f"{indent}{line.strip()}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Check the platform and tools without changing anything."""
    from ampp_setup.core.use_cases.check import run_check

    profile = load_profile_or_exit(ctx)
    result = run_check(profile)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ready else 1)

    click.secho(f"\n🔍 Preflight: {profile.name}", fg="cyan", bold=True)
    for c in result.preflight.checks:
        if c.ok:
            click.secho(f"   ✓ {c.name:<8}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {c.name:<8}", fg="red", nl=False)
        click.echo(f" {c.message}")

    click.echo()
    if result.brew_path:
        click.secho(f"   ✓ brew     {result.brew_path} (prefix {result.prefix})", fg="green")
    else:
        click.secho("   ⊘ brew     not installed (install will offer to set it up)", fg="yellow")

    for tool, available in sorted(result.tools.items()):
        icon, color = ("✓", "green") if available else ("✗", "red")
        click.secho(f"   {icon} {tool:<10}", fg=color, nl=False)
        click.echo("available" if available else "missing")

    click.echo()
    if not result.ready:
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """List target formulae that are already installed."""
    from ampp_setup.core.use_cases.detect import run_detect

    profile = load_profile_or_exit(ctx)
    result = run_detect(profile)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    inventory = result.inventory
    assert inventory is not None

    click.secho(
        f"\n📦 Installed: {len(inventory.found)}/{len(inventory.candidates)} candidates",
        fg="cyan",
        bold=True,
    )
    for formula in inventory.candidates:
        if formula in inventory.found:
            click.secho(f"   ✓ {formula} ", fg="green", nl=False)
            click.echo(inventory.versions.get(formula, ""))
        else:
            click.echo(f"   · {formula}")

    if result.services:
        click.echo()
        click.secho("   Services:", fg="white", bold=True)
        for row in result.services:
            click.echo(f"     • {row['name']} ({row['status']})")

    if inventory.any_found:
        click.echo()
        click.secho("   ⚠️  install will offer to uninstall all target packages first", fg="yellow")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Show the steps an install would ask about, in order."""
    from ampp_setup.core.engine.plan import build_plan, update_step
    from ampp_setup.core.services.homebrew import HomebrewProbe
    from ampp_setup.core.services.inventory import PackageInventory, detect_installed
    from ampp_setup.core.services.patching import build_placeholders

    profile = load_profile_or_exit(ctx)
    probe = HomebrewProbe(fallback=profile.homebrew_bin)

    if probe.locate():
        prefix = (probe.prefix() or profile.homebrew_prefix).rstrip("/")
        inventory = detect_installed(probe, profile.candidates)
        running = probe.service_names()
    else:
        prefix = profile.homebrew_prefix
        inventory = PackageInventory(candidates=profile.candidates)
        running = []

    placeholders = build_placeholders(profile, prefix, blowfish_secret="<generated>")
    steps = [update_step(), *build_plan(profile, prefix, inventory, running, placeholders)]

    rows = []
    for top in steps:
        for step in top.walk():
            rows.append({
                "id": step.id,
                "question": step.question if step.confirm else None,
                "description": step.description,
                "actions": [a.label for a in step.actions],
                "nested": step is not top,
            })

    if as_json:
        click.echo(json.dumps({"prefix": prefix, "steps": rows}, indent=2))
        return

    click.secho(f"\n🗺  Plan: {profile.name} (prefix {prefix})", fg="cyan", bold=True)
    for i, row in enumerate(rows, 1):
        indent = "      " if row["nested"] else "   "
        label = row["question"] or f"{row['description']} (no prompt)"
        click.echo(f"{indent}{i:>2}. {label}")
        if ctx.obj.get("verbose"):
            for name in row["actions"]:
                click.echo(f"{indent}      │ {name}")
    click.echo()


@cli.group()
def config() -> None:
    """Profile configuration commands."""


@config.command("check")
@click.pass_context
def config_check(ctx: click.Context) -> None:
    """Validate the profile and its templates."""
    from ampp_setup.core.data import TemplateError, read_template

    profile = load_profile_or_exit(ctx)

    errors: list[str] = []
    for spec in profile.patches:
        try:
            read_template("patches", spec.template)
        except TemplateError as e:
            errors.append(f"{spec.name}: {e}")
        for op in spec.after:
            if op.template is None:
                continue
            try:
                read_template("webroot", op.template)
            except TemplateError as e:
                errors.append(f"{spec.name}: {e}")

    if errors:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in errors:
            click.echo(f"   • {err}")
        click.echo()
        sys.exit(1)

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    click.echo(f"   Profile: {profile.name}")
    click.echo(f"   Formulae: {' '.join(profile.formulae)}")
    click.echo(f"   Patches: {', '.join(p.name for p in profile.patches)}")
    click.echo(f"   Services: {' '.join(profile.services)}")
    click.echo()


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective profile as JSON."""
    profile = load_profile_or_exit(ctx)
    click.echo(json.dumps(profile.model_dump(mode="json"), indent=2))


# ── Register sub-command groups from ui/cli/ ──────────────────────

from ampp_setup.ui.cli.patches import patches  # noqa: E402
from ampp_setup.ui.cli.services import services  # noqa: E402

cli.add_command(patches)
cli.add_command(services)


if __name__ == "__main__":
    cli()
