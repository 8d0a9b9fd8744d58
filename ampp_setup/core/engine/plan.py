"""
Plan builder — turns a profile into the ordered list of steps.

Flow:
    update → [uninstall group] → install → PATH → patches → services → open webroot

The uninstall group only exists when the inventory found something.
Its single gating question covers the whole set; stopping services and
uninstalling remain individually confirmable underneath it, and the
cleanup that follows runs without asking again.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ampp_setup.core.models.action import Action
from ampp_setup.core.models.profile import Profile
from ampp_setup.core.models.step import Step
from ampp_setup.core.services.inventory import PackageInventory
from ampp_setup.core.services.patching import patch_step

logger = logging.getLogger(__name__)


def _brew(action_id: str, operation: str, formulae: list[str] | None = None, **params) -> Action:
    return Action(
        id=action_id,
        name=" ".join(["brew", operation, *(formulae or [])]),
        adapter="brew",
        params={"operation": operation, "formulae": list(formulae or []), **params},
    )


def update_step() -> Step:
    return Step(
        id="brew:update",
        description="Update Homebrew and formulae (brew update)",
        actions=[_brew("brew:update", "update")],
    )


def uninstall_group(profile: Profile, prefix: str, running_services: list[str]) -> Step:
    """Gate + stop services + uninstall + cleanup, for the whole target set."""
    names = " ".join(profile.uninstall)
    stop_steps = [
        Step(
            id=f"service:stop:{formula}",
            description=f"Stop service for {formula}",
            actions=[_brew(f"service:stop:{formula}", "service_stop", [formula])],
        )
        for formula in profile.stop_services
        if formula in running_services
    ]
    uninstall = Step(
        id="brew:uninstall",
        description=f"Uninstall Homebrew packages: {names}",
        actions=[_brew("brew:uninstall", "uninstall", profile.uninstall)],
    )
    cleanup = Step(
        id="cleanup",
        description="Clean up data and configurations",
        confirm=False,
        announce="Cleaning up data and configurations for uninstalled packages...",
        success_message="",
        actions=[_brew("brew:cleanup", "cleanup")] + [
            Action(
                id=f"cleanup:{path}",
                name=f"rm -rf {prefix}/{path}",
                adapter="filesystem",
                params={"operation": "remove", "path": path},
            )
            for path in profile.cleanup_paths
        ],
    )
    return Step(
        id="uninstall",
        description="Uninstall existing packages",
        prompt=f"Proceed to STOP services and UNINSTALL ALL of: {', '.join(profile.uninstall)} ?",
        intro=[
            "Uninstalling may remove binaries, configs, and data directories under Homebrew.",
            "This can include webroot, database data under "
            f"{prefix}/var/mysql,",
            "and custom .conf files. All data that is not backed up will be lost!",
            "",
        ],
        skip_message="Uninstall step skipped at your request.",
        success_message="",
        substeps=[*stop_steps, uninstall, cleanup],
    )


def install_step(profile: Profile) -> Step:
    names = " ".join(profile.formulae)
    return Step(
        id="brew:install",
        description=f"Install {names}",
        actions=[_brew("brew:install", "install", profile.formulae)],
    )


def _shell_rc_intro(rc_path: Path) -> list[str]:
    if rc_path.is_file():
        contents = rc_path.read_text(encoding="utf-8", errors="replace").rstrip("\n")
        return [
            f"Here are the existing contents in your '{rc_path.name}' file:",
            "------------------------------------------------",
            *contents.splitlines(),
            "------------------------------------------------",
        ]
    return [
        f"No {rc_path.name} file exists in your home directory.",
        "This is normal if you never installed Homebrew before — "
        "the file will be created when needed.",
    ]


def shell_path_step(profile: Profile, prefix: str) -> Step:
    """Append the PHP formula's bin/sbin to PATH in the shell rc file."""
    php = profile.php_formula
    opt = f"{prefix.rstrip('/')}/opt/{php}"
    rc_path = profile.shell_rc_path
    content = (
        "\n"
        f'export PATH="{opt}/bin:$PATH"\n'
        f'export PATH="{opt}/sbin:$PATH"\n'
    )
    return Step(
        id="shell:php-path",
        description=f"Add {php} to PATH",
        prompt=f"Add {php} to system PATH?",
        intro=[
            *_shell_rc_intro(rc_path),
            "",
            f"Next is to add {php} to system PATH. This will make PHP v{profile.php_version} "
            "the default PHP interpreter in your terminal.",
            f"If you already see something like 'export PATH={opt}'",
            f"in your '{rc_path.name}' file, you should select no. "
            "Otherwise, you should select yes.",
        ],
        skip_message=f"Skipped: Add {php} to PATH.",
        actions=[
            Action(
                id="shell:php-path",
                name=f"Append PATH exports to {rc_path}",
                adapter="filesystem",
                params={
                    "operation": "append",
                    "path": str(rc_path),
                    "content": content,
                    "unless_contains": f"{opt}/bin",
                },
            ),
        ],
    )


def patch_steps(profile: Profile, prefix: str, placeholders: dict[str, str]) -> list[Step]:
    return [patch_step(profile, spec, prefix, placeholders) for spec in profile.patches]


def service_steps(profile: Profile) -> list[Step]:
    """One independently confirmable start per service."""
    return [
        Step(
            id=f"service:start:{formula}",
            description=f"Start {formula}",
            prompt=f"Start {formula} as a background service (launchd)?",
            success_message=f"Started service: {formula}",
            skip_message=f"Service not started: {formula}",
            actions=[_brew(f"service:start:{formula}", "service_start", [formula])],
        )
        for formula in profile.services
    ]


def open_webroot_step(prefix: str) -> Step:
    webroot = f"{prefix.rstrip('/')}/var/www"
    return Step(
        id="open:webroot",
        description=f"Open {webroot} in Finder",
        confirm=False,
        fatal=False,
        success_message="",
        actions=[
            Action(
                id="open:webroot",
                name=f"open {webroot}",
                adapter="shell",
                params={"command": ["open", webroot], "timeout": 30},
            ),
        ],
    )


def build_plan(
    profile: Profile,
    prefix: str,
    inventory: PackageInventory,
    running_services: list[str],
    placeholders: dict[str, str],
) -> list[Step]:
    """Every step after detection, in execution order."""
    steps: list[Step] = []
    if inventory.any_found:
        steps.append(uninstall_group(profile, prefix, running_services))
    steps.append(install_step(profile))
    steps.append(shell_path_step(profile, prefix))
    steps.extend(patch_steps(profile, prefix, placeholders))
    steps.extend(service_steps(profile))
    if profile.open_webroot:
        steps.append(open_webroot_step(prefix))
    logger.debug("Planned %d top-level steps", len(steps))
    return steps


def next_steps(profile: Profile, prefix: str) -> list[str]:
    """Verification checklist printed at the end of a run."""
    port = profile.http_port
    php_version = profile.php_version
    return [
        f"Run 'php -v' command and check if PHP {php_version} is the default PHP interpreter",
        f"  If PHP version is higher than {php_version}.x, open another terminal and try again.",
        "Run 'composer about' command and check if Composer is installed correctly",
        "Run 'mariadb -e \"SELECT VERSION();\"' command and check if database is "
        "successfully connected",
        f"Open http://localhost:{port}/ to verify Apache web server is working correctly",
        f"Open http://localhost:{port}/phpinfo.php to verify PHP interpreter is working correctly",
        f"Open http://localhost:{port}/phpmyadmin to verify phpMyAdmin is correctly setup "
        "and is connected to MariaDB server",
    ]
