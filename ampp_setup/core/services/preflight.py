"""
Preflight — refuse to run on machines this setup was not written for.

Read-only: nothing here touches the filesystem or runs a command other
than reading the platform and ``$SHELL``.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field

from ampp_setup.core.errors import PreflightError
from ampp_setup.core.models.profile import Profile


@dataclass
class PreflightCheck:
    name: str
    ok: bool
    detected: str
    message: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "detected": self.detected,
            "message": self.message,
        }


@dataclass
class PreflightReport:
    checks: list[PreflightCheck] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(c.ok for c in self.checks)

    @property
    def failures(self) -> list[PreflightCheck]:
        return [c for c in self.checks if not c.ok]

    def to_dict(self) -> dict:
        return {"ok": self.ok, "checks": [c.to_dict() for c in self.checks]}


def check_platform(
    profile: Profile,
    *,
    machine: str | None = None,
    shell: str | None = None,
    system: str | None = None,
) -> PreflightReport:
    """Check CPU architecture, login shell and operating system.

    Arguments default to the running machine: ``platform.machine()``,
    ``$SHELL`` and ``platform.system()``.
    """
    machine = platform.machine() if machine is None else machine
    shell = os.environ.get("SHELL", "") if shell is None else shell
    system = platform.system() if system is None else system

    report = PreflightReport()

    if machine == profile.required_arch:
        report.checks.append(PreflightCheck(
            "arch", True, machine, f"Apple Silicon ({machine}) detected.",
        ))
    else:
        report.checks.append(PreflightCheck(
            "arch", False, machine,
            f"This script is intended for Apple Silicon ({profile.required_arch}) "
            f"Macs only. Detected: {machine or 'unknown'}",
        ))

    shell_name = os.path.basename(shell) if shell else ""
    if shell_name == profile.required_shell:
        report.checks.append(PreflightCheck(
            "shell", True, shell, f"SHELL indicates {shell_name} ({shell}).",
        ))
    else:
        report.checks.append(PreflightCheck(
            "shell", False, shell,
            f"This script requires your login shell to be {profile.required_shell}. "
            f"Detected SHELL: {shell or 'unset'}",
        ))

    if profile.required_system:
        report.checks.append(PreflightCheck(
            "system",
            system == profile.required_system,
            system,
            f"Operating system: {system}." if system == profile.required_system
            else f"This script supports {profile.required_system} only. Detected: {system}",
        ))

    return report


def ensure_platform(profile: Profile, **overrides: str) -> PreflightReport:
    """Run :func:`check_platform` and raise on the first failing check."""
    report = check_platform(profile, **overrides)
    if not report.ok:
        first = report.failures[0]
        raise PreflightError(f"{first.message}\n  Exiting without making changes.")
    return report
