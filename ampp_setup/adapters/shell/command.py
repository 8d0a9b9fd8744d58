"""
Shell command adapter — run an arbitrary command.

Used for the few steps that are neither brew nor file operations: the
Homebrew installer and opening the webroot in Finder.
"""

from __future__ import annotations

import shutil

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.adapters.shell.runner import run_subprocess
from ampp_setup.core.models.action import Receipt


class ShellCommandAdapter(Adapter):
    """Execute a command and capture (or stream) its output.

    Action params:
        command (list[str] | str): Argument list, or a shell string.
        timeout (int | None): Seconds (default: 300).
        stream (bool): Attach to the terminal instead of capturing.
        cwd (str): Working directory, relative to the prefix.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command")
        if not command:
            return False, "Missing required param: 'command'"
        if isinstance(command, list) and shutil.which(command[0]) is None:
            return False, f"Executable not found: {command[0]}"
        cwd = context.params.get("cwd")
        if cwd and not context.resolve(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.params["command"]
        cwd = context.params.get("cwd")

        result = run_subprocess(
            command,
            timeout=context.params.get("timeout", 300),
            cwd=str(context.resolve(cwd)) if cwd else None,
            stream=context.params.get("stream", False),
        )

        stdout = result.get("stdout", "").strip()
        return_code = result.get("return_code")
        if result["ok"]:
            return self.succeeded(context, stdout, command=command, return_code=return_code)
        return self.failed(context, result["error"], command=command, return_code=return_code,
                           stdout=stdout)
