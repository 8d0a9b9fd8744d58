"""
Homebrew adapter — package and service side effects.

Read-only queries (is it installed, which services exist) live in
``core/services/homebrew.py``; this adapter only changes things.
"""

from __future__ import annotations

import shutil

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.adapters.shell.runner import run_subprocess
from ampp_setup.core.models.action import Receipt

# operation → (argv after "brew", needs formulae, streams to terminal)
_OPERATIONS: dict[str, tuple[list[str], bool, bool]] = {
    "update": (["update"], False, True),
    "install": (["install"], True, True),
    "uninstall": (["uninstall", "--force"], True, True),
    "cleanup": (["cleanup"], False, True),
    "service_start": (["services", "start"], True, False),
    "service_stop": (["services", "stop"], True, False),
}


class BrewAdapter(Adapter):
    """Run ``brew`` subcommands.

    Action params:
        operation (str): update, install, uninstall, cleanup,
            service_start or service_stop.
        formulae (list[str]): Formulae the operation applies to.
        brew (str): brew executable (default: ``brew`` on PATH).
        timeout (int | None): Seconds (default: no limit; installs are slow).
    """

    def __init__(self, brew: str = "brew"):
        self._brew = brew

    @property
    def name(self) -> str:
        return "brew"

    def is_available(self) -> bool:
        return shutil.which(self._brew) is not None

    def build_command(self, params: dict) -> list[str]:
        args, _, _ = _OPERATIONS[params["operation"]]
        brew = params.get("brew", self._brew)
        return [brew, *args, *params.get("formulae", [])]

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in _OPERATIONS:
            return False, (
                f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_OPERATIONS))}"
            )
        _, needs_formulae, _ = _OPERATIONS[operation]
        if needs_formulae and not context.params.get("formulae"):
            return False, f"Operation '{operation}' needs at least one formula"
        if not context.dry_run and shutil.which(context.params.get("brew", self._brew)) is None:
            return False, "brew not found on PATH"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        _, _, stream = _OPERATIONS[context.params["operation"]]
        cmd = self.build_command(context.params)

        result = run_subprocess(cmd, timeout=context.params.get("timeout"), stream=stream)

        stdout = result.get("stdout", "").strip()
        if result["ok"]:
            return self.succeeded(context, stdout, command=cmd)
        return self.failed(
            context, result["error"], command=cmd, return_code=result.get("return_code"), stdout=stdout,
        )
