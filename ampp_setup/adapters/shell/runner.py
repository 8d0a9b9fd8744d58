"""
Subprocess runner — the single place where ``subprocess.run`` is called.

Adapters and read-only probes all go through :func:`run_subprocess`,
so logging, timeouts and error shapes stay the same everywhere.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

_TAIL = 4000


def run_subprocess(
    cmd: list[str] | str,
    *,
    timeout: int | None = 120,
    cwd: str | None = None,
    stream: bool = False,
) -> dict[str, Any]:
    """Run a command and describe the result as a dict.

    Args:
        cmd: Argument list, or a string to run through ``/bin/sh``.
        timeout: Seconds before giving up (None waits forever).
        cwd: Working directory.
        stream: Leave stdin/stdout/stderr attached to the terminal.
            Used for long or interactive tools (the Homebrew installer
            asks for a sudo password, ``brew install`` prints progress).

    Returns:
        ``{"ok": True, "stdout": ..., "stderr": ..., "return_code": 0,
        "elapsed_ms": N}`` on success; ``{"ok": False, "error": ...}``
        plus whatever output was captured on failure.
    """
    use_shell = isinstance(cmd, str)
    logger.debug("exec: %s (cwd=%s, stream=%s)", cmd, cwd, stream)

    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            shell=use_shell,
            capture_output=not stream,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "return_code": None}
    except FileNotFoundError as e:
        return {"ok": False, "error": f"Command not found: {e.filename}", "return_code": None}
    except OSError as e:
        logger.exception("Subprocess error: %s", cmd)
        return {"ok": False, "error": str(e), "return_code": None}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = (result.stdout or "")[-_TAIL:]
    stderr = (result.stderr or "")[-_TAIL:]

    if result.returncode == 0:
        return {
            "ok": True,
            "stdout": stdout,
            "stderr": stderr,
            "return_code": 0,
            "elapsed_ms": elapsed_ms,
        }

    logger.debug("exit %d: %s", result.returncode, cmd)
    return {
        "ok": False,
        "error": stderr.strip() or f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "return_code": result.returncode,
        "elapsed_ms": elapsed_ms,
    }
