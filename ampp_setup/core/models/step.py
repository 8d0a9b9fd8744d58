"""
Step model — one confirmable unit of the provisioning run.

A step bundles the question put to the operator with the actions that
run when the answer is yes. Steps are built by the plan builder,
executed once by the sequencer, and thrown away.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field

from ampp_setup.core.models.action import Action, Receipt


class Step(BaseModel):
    """A confirmable provisioning step."""

    id: str
    description: str
    actions: list[Action] = Field(default_factory=list)

    confirm: bool = True            # ask the operator before running
    prompt: str = ""                # question text (default: description)
    fatal: bool = True              # a failed action aborts the run

    intro: list[str] = Field(default_factory=list)      # shown before the prompt
    announce: str = ""              # shown after "yes", before the actions
    success_message: str | None = None
    skip_message: str = ""

    substeps: list[Step] = Field(default_factory=list)

    @property
    def question(self) -> str:
        return self.prompt or self.description

    def walk(self) -> list[Step]:
        """This step followed by all nested substeps, depth first."""
        steps = [self]
        for sub in self.substeps:
            steps.extend(sub.walk())
        return steps


Step.model_rebuild()

StepStatus = Literal["ok", "skipped", "failed"]


@dataclass
class StepOutcome:
    """What happened to one step."""

    step_id: str
    description: str
    status: StepStatus = "ok"
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def error(self) -> str | None:
        for receipt in self.receipts:
            if receipt.failed:
                return receipt.error
        return None

    def to_dict(self) -> dict:
        return {
            "step_id": self.step_id,
            "description": self.description,
            "status": self.status,
            "error": self.error,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


@dataclass
class RunReport:
    """Ordered record of a provisioning run."""

    outcomes: list[StepOutcome] = field(default_factory=list)
    aborted: bool = False

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def completed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "ok")

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    @property
    def status(self) -> str:
        if self.aborted:
            return "aborted"
        if self.failed:
            return "partial"
        return "ok"

    def get(self, step_id: str) -> StepOutcome | None:
        for outcome in self.outcomes:
            if outcome.step_id == step_id:
                return outcome
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total": self.total,
            "completed": self.completed,
            "skipped": self.skipped,
            "failed": self.failed,
            "steps": [o.to_dict() for o in self.outcomes],
        }
