"""
Provision use case — the full install run, top to bottom.

    preflight → Homebrew bootstrap → brew update → detect → plan → run

Preflight failures happen before anything is touched. Everything after
that goes through the sequencer, so each change is confirmed first and
the first failure ends the run.
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from dataclasses import dataclass, field

from ampp_setup.adapters.registry import AdapterRegistry, create_default_registry
from ampp_setup.core.engine.plan import build_plan, next_steps, update_step
from ampp_setup.core.engine.prompter import Prompter
from ampp_setup.core.engine.sequencer import Sequencer
from ampp_setup.core.errors import MissingDependencyError, ProvisionError
from ampp_setup.core.models.profile import Profile
from ampp_setup.core.models.step import RunReport
from ampp_setup.core.services.homebrew import (
    HomebrewProbe,
    activate_homebrew,
    bootstrap_steps,
    ensure_brew_on_path,
)
from ampp_setup.core.services.inventory import PackageInventory, detect_installed
from ampp_setup.core.services.patching import build_placeholders
from ampp_setup.core.services.preflight import PreflightReport, ensure_platform

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Everything a caller needs to describe how the run went."""

    report: RunReport = field(default_factory=RunReport)
    preflight: PreflightReport | None = None
    inventory: PackageInventory | None = None
    prefix: str = ""
    dry_run: bool = False
    error: str | None = None
    next_steps: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def webroot(self) -> str:
        return f"{self.prefix}/var/www" if self.prefix else ""

    def to_dict(self) -> dict:
        result: dict = {
            "ok": self.ok,
            "dry_run": self.dry_run,
            "prefix": self.prefix,
            "report": self.report.to_dict(),
        }
        if self.error:
            result["error"] = self.error
        if self.preflight:
            result["preflight"] = self.preflight.to_dict()
        if self.inventory:
            result["inventory"] = self.inventory.to_dict()
        return result


def _ensure_homebrew(
    profile: Profile,
    probe: HomebrewProbe,
    sequencer: Sequencer,
    environ: MutableMapping[str, str],
) -> None:
    if ensure_brew_on_path(probe, environ):
        return

    outcome = sequencer.run_step(bootstrap_steps(profile)[0])
    if outcome.status == "skipped":
        raise MissingDependencyError("Homebrew is required. Aborting.")
    activate_homebrew(environ, profile.homebrew_bin)


def provision(
    profile: Profile,
    prompter: Prompter,
    *,
    registry: AdapterRegistry | None = None,
    probe: HomebrewProbe | None = None,
    dry_run: bool = False,
    environ: MutableMapping[str, str] | None = None,
    platform_overrides: dict[str, str] | None = None,
    placeholders: dict[str, str] | None = None,
) -> ProvisionResult:
    """Run the whole provisioning flow.

    Args:
        profile: What to install and how to configure it.
        prompter: Where questions and status lines go.
        registry: Adapter registry (default: real adapters).
        probe: Homebrew probe (default: real brew).
        dry_run: Ask every question but execute nothing.
        environ: Process environment updated after bootstrap.
        platform_overrides: ``machine``/``shell``/``system`` for preflight.
        placeholders: Template values (default: generated per run).

    Returns:
        ProvisionResult. ``error`` is set when the run was aborted.
    """
    environ = os.environ if environ is None else environ
    probe = probe or HomebrewProbe(fallback=profile.homebrew_bin)
    result = ProvisionResult(dry_run=dry_run)

    prompter.info("Welcome to the Industry Experience Development Environment Setup!")
    prompter.warn(
        "Read on-screen information carefully as this script may make significant "
        "changes to your operating system."
    )

    try:
        result.preflight = ensure_platform(profile, **(platform_overrides or {}))
        for check in result.preflight.checks:
            prompter.success(f"{check.message} Continuing...")

        # The prefix is unknown until brew exists; bootstrap actions use absolute paths.
        registry = registry or create_default_registry(prefix="")
        sequencer = Sequencer(registry, prompter, dry_run=dry_run, report=result.report)

        _ensure_homebrew(profile, probe, sequencer, environ)

        result.prefix = (probe.prefix() or profile.homebrew_prefix).rstrip("/")
        registry.prefix = result.prefix
        prompter.success(f"Using Homebrew prefix: {result.prefix}")

        sequencer.run_step(update_step())

        result.inventory = detect_installed(probe, profile.candidates)
        if result.inventory.any_found:
            prompter.warn(f"Detected installed packages: {' '.join(result.inventory.found)}")
            prompter.warn(
                "To continue this script, all packages listed above will need to be "
                "uninstalled first."
            )
            running = probe.service_names()
        else:
            prompter.success("No existing target packages detected.")
            running = []

        steps = build_plan(
            profile,
            result.prefix,
            result.inventory,
            running,
            placeholders or build_placeholders(profile, result.prefix),
        )
        sequencer.run(steps)
    except ProvisionError as e:
        result.error = str(e)
        result.report.aborted = True
        logger.info("Run aborted: %s", e)
        return result

    result.next_steps = next_steps(profile, result.prefix)
    return result
