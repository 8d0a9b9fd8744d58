"""
Provisioning sequencer — run confirmable steps in declared order.

For each step:

    prompt → yes → run actions → report ✔ / ✘ (✘ on a fatal step aborts)
           → no  → report ⚠ Skipped, continue

There are no retries and no rollback. A failed fatal step raises
StepFailedError (PatchRejectedError for a rejected diff) after the
outcome has been recorded, so the caller still has the full report.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ampp_setup.adapters.registry import AdapterRegistry
from ampp_setup.core.engine.prompter import Prompter
from ampp_setup.core.errors import PatchRejectedError, StepFailedError
from ampp_setup.core.models.step import RunReport, Step, StepOutcome

logger = logging.getLogger(__name__)


class Sequencer:
    """Runs steps one at a time against an adapter registry."""

    def __init__(
        self,
        registry: AdapterRegistry,
        prompter: Prompter,
        *,
        dry_run: bool = False,
        report: RunReport | None = None,
    ):
        self.registry = registry
        self.prompter = prompter
        self.dry_run = dry_run
        self.report = report if report is not None else RunReport()

    def run(self, steps: Iterable[Step]) -> RunReport:
        for step in steps:
            self.run_step(step)
        return self.report

    def run_step(self, step: Step) -> StepOutcome:
        outcome = StepOutcome(step_id=step.id, description=step.description)
        self.report.outcomes.append(outcome)

        if step.confirm:
            for line in step.intro:
                self.prompter.echo(line)
            if not self.prompter.confirm(step.question):
                outcome.status = "skipped"
                self.prompter.warn(step.skip_message or f"Skipped: {step.description}")
                logger.info("⊘ %s (declined)", step.id)
                return outcome

        if step.announce:
            self.prompter.warn(step.announce)

        for action in step.actions:
            receipt = self.registry.execute_action(action, dry_run=self.dry_run)
            outcome.receipts.append(receipt)
            if receipt.failed:
                outcome.status = "failed"
                break

        if outcome.status == "failed":
            logger.info("✗ %s", step.id)
            self._fail(step, outcome)
            return outcome

        logger.info("✓ %s", step.id)
        message = step.success_message
        if message is None and step.actions:
            message = step.description
        if message:
            self.prompter.success(f"[dry-run] {message}" if self.dry_run else message)

        for sub in step.substeps:
            self.run_step(sub)
        return outcome

    def _fail(self, step: Step, outcome: StepOutcome) -> None:
        receipt = outcome.receipts[-1]
        if not step.fatal:
            self.prompter.warn(f"Failed (continuing): {step.description}: {receipt.error}")
            return

        self.report.aborted = True
        self.prompter.error(f"Failed: {step.description}")
        if receipt.adapter == "patch" and "return_code" in receipt.metadata:
            raise PatchRejectedError(step, receipt)
        raise StepFailedError(step, receipt)
