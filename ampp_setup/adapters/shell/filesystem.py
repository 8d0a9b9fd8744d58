"""
Filesystem adapter — file and directory operations with receipts.

Covers cleanup (``remove``), webroot files (``write``/``touch``/``mkdir``)
and shell profile edits (``append``). Relative paths resolve against the
Homebrew prefix; ``~`` expands to the home directory.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.core.models.action import Receipt

logger = logging.getLogger(__name__)

VALID_OPERATIONS = frozenset({"write", "append", "mkdir", "touch", "remove"})


class FilesystemAdapter(Adapter):
    """File and directory operations.

    Action params:
        operation (str): One of VALID_OPERATIONS.
        path (str): Target path.
        content (str): Text for 'write' and 'append'.
        unless_contains (str): For 'append', skip when the file already
            contains this marker.
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"
        if operation not in VALID_OPERATIONS:
            return False, (
                f"Unknown operation '{operation}'. "
                f"Valid: {', '.join(sorted(VALID_OPERATIONS))}"
            )
        if not context.params.get("path"):
            return False, "Missing required param: 'path'"
        if operation in ("write", "append") and "content" not in context.params:
            return False, f"Missing required param: 'content' for {operation} operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        target = context.resolve(context.params["path"])
        try:
            return getattr(self, f"_{operation}")(context, target)
        except OSError as e:
            return self.failed(context, f"Filesystem error: {e}", operation=operation,
                               path=str(target))

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        content = ctx.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return self.succeeded(ctx, f"Wrote {target}", path=str(target), size=len(content))

    def _append(self, ctx: ExecutionContext, target: Path) -> Receipt:
        marker = ctx.params.get("unless_contains")
        existing = target.read_text(encoding="utf-8") if target.is_file() else ""
        if marker and marker in existing:
            logger.debug("%s already contains %r, not appending", target, marker)
            return self.succeeded(ctx, f"{target} already configured", path=str(target),
                                  appended=False)

        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(ctx.params["content"])
        return self.succeeded(ctx, f"Appended to {target}", path=str(target), appended=True)

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.mkdir(parents=True, exist_ok=True)
        return self.succeeded(ctx, f"Created {target}", path=str(target))

    def _touch(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.touch()
        return self.succeeded(ctx, f"Touched {target}", path=str(target))

    def _remove(self, ctx: ExecutionContext, target: Path) -> Receipt:
        # rm -rf: a missing target is not an error
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            return self.succeeded(ctx, f"Not present: {target}", path=str(target), removed=False)
        return self.succeeded(ctx, f"Removed {target}", path=str(target), removed=True)
