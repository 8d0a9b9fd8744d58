"""
Homebrew — read-only probes and the bootstrap steps.

Probes answer "what is there" (brew location, prefix, installed
formulae, registered services) without changing anything, so they are
safe to call while building the plan. Changes go through BrewAdapter.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import MutableMapping
from pathlib import Path

from ampp_setup.adapters.shell.runner import run_subprocess
from ampp_setup.core.models.action import Action
from ampp_setup.core.models.profile import Profile
from ampp_setup.core.models.step import Step

logger = logging.getLogger(__name__)


class HomebrewProbe:
    """Read-only queries against an installed ``brew``."""

    def __init__(self, brew: str = "brew", fallback: str | None = None, timeout: int = 60):
        self.brew = brew
        self.fallback = fallback
        self.timeout = timeout

    def locate(self) -> str | None:
        """Path to brew: PATH first, then the well-known install location."""
        found = shutil.which(self.brew)
        if found:
            return found
        if self.fallback and os.access(self.fallback, os.X_OK):
            return self.fallback
        return None

    def _brew(self, *args: str) -> dict:
        return run_subprocess([self.locate() or self.brew, *args], timeout=self.timeout)

    def prefix(self) -> str | None:
        result = self._brew("--prefix")
        if not result["ok"]:
            logger.debug("brew --prefix failed: %s", result.get("error"))
            return None
        return result["stdout"].strip() or None

    def installed_version(self, formula: str) -> str | None:
        """Installed version(s) of a formula, or None if not installed.

        ``brew list --formula --versions php`` prints ``php 8.3.4 8.4.1``.
        """
        result = self._brew("list", "--formula", "--versions", formula)
        if not result["ok"]:
            return None
        parts = result["stdout"].split()
        return " ".join(parts[1:]) if len(parts) > 1 else ""

    def is_installed(self, formula: str) -> bool:
        return self.installed_version(formula) is not None

    def service_names(self) -> list[str]:
        """Formulae known to ``brew services`` (first column, header dropped)."""
        return [row["name"] for row in self.service_table()]

    def service_table(self) -> list[dict[str, str]]:
        """Rows of ``brew services list`` as ``{name, status, user}`` dicts."""
        result = self._brew("services", "list")
        if not result["ok"]:
            return []
        rows = []
        for line in result["stdout"].splitlines():
            fields = line.split()
            if not fields or fields[0] == "Name":
                continue
            rows.append({
                "name": fields[0],
                "status": fields[1] if len(fields) > 1 else "",
                "user": fields[2] if len(fields) > 2 else "",
            })
        return rows


def shellenv_line(brew_bin: str) -> str:
    return f'eval "$({brew_bin} shellenv zsh)"'


def bootstrap_steps(profile: Profile) -> list[Step]:
    """Install Homebrew with the official installer, then wire up the shell.

    The installer needs sudo and a keypress, so it streams to the terminal.
    """
    install = Step(
        id="homebrew:install",
        description="Install Homebrew",
        prompt="Install Homebrew now?",
        intro=[
            "Homebrew not found. It is required for this setup.",
            "The official installer from brew.sh will be used.",
            "Homebrew installation requires 'sudo' access (you'll need to type in "
            "your account password once during the procedure), and this process "
            "can take quite a while depending on your Internet speed.",
        ],
        success_message="Homebrew installed. Initialising Homebrew in current terminal session...",
        skip_message="Homebrew is required. Aborting.",
        actions=[
            Action(
                id="homebrew:installer",
                name="Run Homebrew installer",
                adapter="shell",
                params={
                    "command": f'/bin/bash -c "$(curl -fsSL {profile.homebrew_installer_url})"',
                    "stream": True,
                    "timeout": None,
                },
            ),
            Action(
                id="homebrew:shellenv",
                name=f"Add brew shellenv to {profile.shell_profile}",
                adapter="filesystem",
                params={
                    "operation": "append",
                    "path": str(profile.shell_profile_path),
                    "content": "\n" + shellenv_line(profile.homebrew_bin) + "\n",
                    "unless_contains": "brew shellenv",
                },
            ),
        ],
    )
    return [install]


def activate_homebrew(environ: MutableMapping[str, str], brew_bin: str) -> None:
    """Put brew's bin/sbin on PATH for this process (what ``shellenv`` does)."""
    brew_path = Path(brew_bin)
    prefix = brew_path.parent.parent
    entries = [str(prefix / "bin"), str(prefix / "sbin")]
    current = [p for p in environ.get("PATH", "").split(os.pathsep) if p]
    environ["PATH"] = os.pathsep.join(entries + [p for p in current if p not in entries])
    environ.setdefault("HOMEBREW_PREFIX", str(prefix))


def ensure_brew_on_path(probe: HomebrewProbe, environ: MutableMapping[str, str]) -> str | None:
    """Locate brew and make sure later ``brew`` calls find it by name.

    A fresh terminal that never sourced ``~/.zprofile`` has brew at its
    install location but not on PATH; activate it in that case.
    """
    located = probe.locate()
    if located and shutil.which(probe.brew, path=environ.get("PATH", "")) is None:
        logger.info("brew found at %s but not on PATH; activating", located)
        activate_homebrew(environ, located)
    return located
