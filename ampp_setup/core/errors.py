"""
Provisioning errors.

Every error here is fatal to the run: the CLI prints it to stderr and
exits 1. Operator refusals are not errors and never show up here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ampp_setup.core.models.action import Receipt
    from ampp_setup.core.models.step import Step


class ProvisionError(Exception):
    """Base class for anything that stops a provisioning run."""

    exit_code = 1


class PreflightError(ProvisionError):
    """The machine is not one this setup supports (CPU, shell, OS)."""


class MissingDependencyError(ProvisionError):
    """A required tool is absent and the operator declined to install it."""


class StepFailedError(ProvisionError):
    """An external command behind a step failed."""

    def __init__(self, step: Step, receipt: Receipt):
        self.step = step
        self.receipt = receipt
        detail = receipt.error or "unknown error"
        super().__init__(f"Failed: {step.description}\n{detail}")


class PatchRejectedError(StepFailedError):
    """``patch`` refused a hunk; the target file may be partly modified."""

    def __init__(self, step: Step, receipt: Receipt):
        super().__init__(step, receipt)
        target = receipt.metadata.get("target") or _action_target(step, receipt.action_id)
        detail = receipt.metadata.get("stdout") or receipt.error or ""
        self.args = (f"Patch {target} failed; printing context and aborting.\n{detail}",)


def _action_target(step: Step, action_id: str) -> str:
    for action in step.actions:
        if action.id == action_id:
            return action.params.get("target", "?")
    return "?"
