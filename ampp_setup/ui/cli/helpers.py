"""
Shared CLI helpers — the terminal prompter and profile loading.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from ampp_setup.core.engine.prompter import Prompter
from ampp_setup.core.models.profile import Profile


class ClickPrompter(Prompter):
    """Interactive prompter on the terminal.

    Questions default to No. click re-asks on anything that is not a
    y/yes/n/no answer. Errors go to stderr.
    """

    def confirm(self, question: str) -> bool:
        return click.confirm(question, default=False)

    def echo(self, message: str = "") -> None:
        click.echo(message)

    def info(self, message: str) -> None:
        click.secho(f"ℹ︎ {message}", fg="cyan")

    def success(self, message: str) -> None:
        click.secho(f"✔ {message}", fg="green")

    def warn(self, message: str) -> None:
        click.secho(f"⚠ {message}", fg="yellow")

    def error(self, message: str) -> None:
        click.secho(f"✘ {message}", fg="red", err=True)


def load_profile_or_exit(ctx: click.Context) -> Profile:
    """Load the profile named by ``--config`` (or the defaults); exit 1 on error."""
    from ampp_setup.core.config.loader import ConfigError, load_profile

    config_path: Path | None = ctx.obj.get("config_path")
    try:
        return load_profile(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
