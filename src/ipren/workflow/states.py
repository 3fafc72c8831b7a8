"""
Workflow state machine for renewal tasks.

Step track:

    NEW(0) -> REMINDED(2) -> PAYMENT_ORDERED(4) -> [RECEIPTS(6) -> RECEIPTS_SENT(8)] -> CLOSED(10)

with side exits ABANDONED(12) from NEW or REMINDED, and LAPSED(14) from
REMINDED, PAYMENT_ORDERED or ABANDONED. The receipts sub-path exists only
when receipt tabs are enabled. CLOSED and LAPSED accept no transition;
ABANDONED only accepts LAPSED.

Invoice track (independent): TO_INVOICE(1) -> INVOICED(2) -> PAID(3).
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Dict, FrozenSet, Optional

from ipren.core import InvoiceStep, Step, Task
from ipren.errors import InvalidTransitionError

_BASE_TRANSITIONS: Dict[Step, FrozenSet[Step]] = {
    Step.NEW: frozenset({Step.REMINDED, Step.PAYMENT_ORDERED, Step.ABANDONED}),
    Step.REMINDED: frozenset({Step.REMINDED, Step.PAYMENT_ORDERED, Step.ABANDONED, Step.LAPSED}),
    Step.PAYMENT_ORDERED: frozenset({Step.CLOSED, Step.LAPSED}),
    Step.ABANDONED: frozenset({Step.LAPSED}),
    Step.CLOSED: frozenset(),
    Step.LAPSED: frozenset(),
}

_RECEIPT_TRANSITIONS: Dict[Step, FrozenSet[Step]] = {
    Step.PAYMENT_ORDERED: frozenset({Step.RECEIPTS, Step.LAPSED}),
    Step.RECEIPTS: frozenset({Step.RECEIPTS_SENT}),
    Step.RECEIPTS_SENT: frozenset({Step.CLOSED}),
}

# Reaching these marks the task done
_DONE_STEPS = frozenset({Step.CLOSED, Step.ABANDONED, Step.LAPSED})

# Reaching these clears the grace flag
_GRACE_CLEARING_STEPS = frozenset({Step.ABANDONED, Step.LAPSED})


class WorkflowStateMachine:
    """Validates and applies step and invoice-step transitions."""

    def __init__(self, receipt_tabs: bool = False):
        self.receipt_tabs = receipt_tabs
        self._transitions = dict(_BASE_TRANSITIONS)
        if receipt_tabs:
            self._transitions.update(_RECEIPT_TRANSITIONS)

    @property
    def steps(self) -> FrozenSet[Step]:
        return frozenset(self._transitions)

    def allowed_steps(self, step: Step) -> FrozenSet[Step]:
        return self._transitions.get(Step(step), frozenset())

    def can_transition(self, step: Step, target: Step) -> bool:
        return Step(target) in self.allowed_steps(step)

    def transition(self, task: Task, target: Step, today: Optional[date] = None) -> Task:
        """
        Return a copy of the task moved to `target`.

        Raises InvalidTransitionError (task untouched) when the move is not
        allowed from the task's current step.
        """
        target = Step(target)
        if target not in self._transitions:
            raise InvalidTransitionError(
                f"Step {target.name} is not enabled in this workflow",
                task_id=task.task_id, from_step=task.step, to_step=target,
            )
        if not self.can_transition(task.step, target):
            raise InvalidTransitionError(
                f"Task {task.task_id} cannot move from {Step(task.step).name} to {target.name}",
                task_id=task.task_id, from_step=task.step, to_step=target,
            )

        changes = {"step": target}
        if target in _DONE_STEPS and not task.done:
            changes["done"] = True
            changes["done_date"] = today or date.today()
        if target in _GRACE_CLEARING_STEPS:
            changes["grace_period"] = False
        return replace(task, **changes)

    def advance_invoice(self, task: Task, target: InvoiceStep) -> Task:
        """Move the invoice track strictly forward."""
        target = InvoiceStep(target)
        if target == InvoiceStep.NONE or target <= task.invoice_step:
            raise InvalidTransitionError(
                f"Task {task.task_id} invoice step cannot move from "
                f"{InvoiceStep(task.invoice_step).name} to {target.name}",
                task_id=task.task_id, from_step=task.invoice_step, to_step=target,
            )
        return replace(task, invoice_step=target)
