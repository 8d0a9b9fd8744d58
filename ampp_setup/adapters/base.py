"""
Adapter base — how the sequencer reaches brew, patch, the filesystem
and the shell.

Nothing in ``core/`` runs a command that changes the machine. Steps
carry Actions; the registry hands each one to the adapter named in
``action.adapter`` together with an ExecutionContext.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from ampp_setup.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """The action being run plus the run-wide settings it needs."""

    action: Action
    prefix: str = ""                # Homebrew prefix; relative paths hang off it
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    def resolve(self, raw_path: str) -> Path:
        """``~`` expands to home; relative paths are joined to the prefix."""
        path = Path(raw_path).expanduser()
        if path.is_absolute() or not self.prefix:
            return path
        return Path(self.prefix) / path


class Adapter(ABC):
    """One external tool.

    ``execute`` must not raise: every outcome, including a crash of the
    tool, comes back as a Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Value of ``Action.adapter`` this adapter answers to."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the tool is installed. Used by ``check``."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """(True, "") if the action can run, else (False, reason)."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Perform the side effect."""

    def succeeded(self, context: ExecutionContext, output: str = "", **metadata: Any) -> Receipt:
        return Receipt.success(self.name, context.action.id, output, metadata=metadata)

    def failed(self, context: ExecutionContext, error: str, **metadata: Any) -> Receipt:
        return Receipt.failure(self.name, context.action.id, error, metadata=metadata)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
