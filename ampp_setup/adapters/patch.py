"""
Patch adapter — apply a unified diff to a configuration file.

The diff is written to a temporary patch file first so it can be
inspected after a failure. A rejected hunk is reported as a failed
receipt; nothing here tries to recover a partially patched file.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.adapters.shell.runner import run_subprocess
from ampp_setup.core.models.action import Receipt

logger = logging.getLogger(__name__)

PATCH_FILE_PREFIX = "ieampp_"


def patch_file_path(patch_dir: str, name: str) -> Path:
    """Where the diff for patch ``name`` is written before applying."""
    return Path(patch_dir).expanduser() / f"{PATCH_FILE_PREFIX}{name}.patch"


class PatchAdapter(Adapter):
    """Apply a diff with the ``patch`` utility.

    Action params:
        name (str): Patch name (used for the temporary file name).
        target (str): File to patch, relative to the prefix.
        diff (str): Unified diff text.
        patch_dir (str): Directory for the temporary patch file.
        backup (bool): Copy the target to ``<target>.bak.<timestamp>`` first.
    """

    def __init__(self, patch_bin: str = "patch"):
        self._patch_bin = patch_bin

    @property
    def name(self) -> str:
        return "patch"

    def is_available(self) -> bool:
        return shutil.which(self._patch_bin) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        for key in ("name", "target", "diff"):
            if not context.params.get(key):
                return False, f"Missing required param: '{key}'"
        if not self.is_available():
            return False, f"'{self._patch_bin}' utility not found on PATH"
        if not context.dry_run:
            target = context.resolve(context.params["target"])
            if not target.is_file():
                return False, f"Target file does not exist: {target}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        name = context.params["name"]
        target = context.resolve(context.params["target"])
        patch_file = patch_file_path(context.params.get("patch_dir", "/tmp"), name)

        metadata: dict = {"target": str(target), "patch_file": str(patch_file)}

        try:
            patch_file.parent.mkdir(parents=True, exist_ok=True)
            patch_file.write_text(context.params["diff"], encoding="utf-8")
            if context.params.get("backup"):
                backup = Path(f"{target}.bak.{time.strftime('%Y%m%d_%H%M%S')}")
                shutil.copy2(target, backup)
                metadata["backup"] = str(backup)
                logger.info("Backed up %s → %s", target, backup)
        except OSError as e:
            return self.failed(context, f"Cannot prepare patch: {e}", **metadata)

        cmd = [self._patch_bin, "--forward", str(target), "-i", str(patch_file)]
        result = run_subprocess(cmd, timeout=60)
        stdout = result.get("stdout", "").strip()

        if result["ok"]:
            return self.succeeded(context, stdout, **metadata)

        logger.warning("patch rejected for %s:\n%s", target, stdout)
        return self.failed(
            context,
            f"Patch {target} failed (exit {result.get('return_code')})",
            stdout=stdout,
            return_code=result.get("return_code"),
            **metadata,
        )
