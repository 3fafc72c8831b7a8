"""
Bulk renewal workflow actions.

Each action takes the ids of user-selected tasks and applies one transition
to each of them independently: a task that cannot move is reported in the
batch result and does not prevent the others from being updated. Closing a
recurring task stores its successor for the next annuity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from ipren.config import RenewalConfig
from ipren.constants import EVENT_ABANDONED, EVENT_LAPSED
from ipren.core import Event, InvoiceStep, Step, Task
from ipren.errors import InvalidTransitionError, RenewalError
from ipren.rules.due_dates import next_occurrence
from ipren.utils.ids import generate_event_id
from ipren.workflow.states import WorkflowStateMachine

if TYPE_CHECKING:
    from ipren.store import RenewalStore

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    job_id: int
    updated: List[str] = field(default_factory=list)
    rejected: Dict[str, str] = field(default_factory=dict)
    successors: List[Task] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.updated)


class RenewalWorkflow:
    """Workflow actions over a RenewalStore."""

    def __init__(
        self,
        store: RenewalStore,
        config: Optional[RenewalConfig] = None,
        today: Optional[date] = None,
    ):
        self.store = store
        self.config = config or RenewalConfig()
        self.today = today or date.today()
        self.machine = WorkflowStateMachine(receipt_tabs=self.config.receipt_tabs)

    # -------------------------------------------------------------------------
    # Batch driver
    # -------------------------------------------------------------------------

    def _run(
        self,
        action: str,
        task_ids: Iterable[str],
        change: Callable[[Task], Task],
        after_save: Optional[Callable[[Task, BatchResult], None]] = None,
    ) -> BatchResult:
        result = BatchResult(job_id=self.store.log.create_job_id())
        for task_id in dict.fromkeys(task_ids):
            try:
                before = self.store.task(task_id)
                after = change(before)
            except RenewalError as exc:
                result.rejected[task_id] = str(exc)
                continue
            except Exception as exc:
                logger.exception(f"{action}: task {task_id} failed")
                result.rejected[task_id] = f"{type(exc).__name__}: {exc}"
                continue

            self.store.save_task(after)
            if after_save is not None:
                try:
                    after_save(after, result)
                except Exception as exc:
                    # Undo the step change, the task stays as it was
                    self.store.save_task(before)
                    logger.exception(f"{action}: follow-up for task {task_id} failed, change reverted")
                    result.rejected[task_id] = f"{type(exc).__name__}: {exc}"
                    continue
            self.store.log.record(result.job_id, before, after)
            result.updated.append(task_id)

        if result.rejected:
            logger.warning(
                f"{action}: {len(result.rejected)} tasks rejected: {sorted(result.rejected)}"
            )
        logger.info(f"{action}: job {result.job_id} updated {result.count} tasks")
        return result

    def _to_step(self, target: Step) -> Callable[[Task], Task]:
        return lambda task: self.machine.transition(task, target, today=self.today)

    # -------------------------------------------------------------------------
    # Step track
    # -------------------------------------------------------------------------

    def mark_first_call(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run("first call", task_ids, self._to_step(Step.REMINDED))

    def mark_reminder(self, task_ids: Iterable[str], last: bool = False) -> BatchResult:
        """Reminder call; the last call before lapse puts the task in grace period."""
        def change(task: Task) -> Task:
            moved = self.machine.transition(task, Step.REMINDED, today=self.today)
            return replace(moved, grace_period=True) if last else moved

        return self._run("last call" if last else "reminder", task_ids, change)

    def mark_grace_period(self, task_ids: Iterable[str]) -> BatchResult:
        def change(task: Task) -> Task:
            if Step(task.step).is_terminal:
                raise InvalidTransitionError(
                    f"Task {task.task_id} is {Step(task.step).name}",
                    task_id=task.task_id, from_step=task.step, to_step=task.step,
                )
            return replace(task, grace_period=True)

        return self._run("grace period", task_ids, change)

    def mark_to_pay(self, task_ids: Iterable[str]) -> BatchResult:
        """Payment ordered; the task also enters the invoicing track."""
        def change(task: Task) -> Task:
            moved = self.machine.transition(task, Step.PAYMENT_ORDERED, today=self.today)
            if moved.invoice_step == InvoiceStep.NONE:
                moved = replace(moved, invoice_step=InvoiceStep.TO_INVOICE)
            return moved

        return self._run("to pay", task_ids, change)

    def mark_receipt(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run("receipt", task_ids, self._to_step(Step.RECEIPTS))

    def mark_receipt_sent(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run("receipt sent", task_ids, self._to_step(Step.RECEIPTS_SENT))

    def mark_closed(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run("close", task_ids, self._to_step(Step.CLOSED), self._store_successor)

    def mark_abandoned(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run(
            "abandon", task_ids, self._to_step(Step.ABANDONED),
            lambda task, result: self._record_matter_event(task, EVENT_ABANDONED, result),
        )

    def mark_lapsed(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run(
            "lapse", task_ids, self._to_step(Step.LAPSED),
            lambda task, result: self._record_matter_event(task, EVENT_LAPSED, result),
        )

    # -------------------------------------------------------------------------
    # Invoice track
    # -------------------------------------------------------------------------

    def mark_invoiced(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run(
            "invoiced", task_ids,
            lambda task: self.machine.advance_invoice(task, InvoiceStep.INVOICED),
        )

    def mark_paid(self, task_ids: Iterable[str]) -> BatchResult:
        return self._run(
            "paid", task_ids,
            lambda task: self.machine.advance_invoice(task, InvoiceStep.PAID),
        )

    # -------------------------------------------------------------------------
    # Side effects
    # -------------------------------------------------------------------------

    def _store_successor(self, task: Task, result: BatchResult) -> None:
        rule = self.store.rule(task.rule_id)
        if rule is None:
            return
        matter = self.store.matters.get(task.matter_id)
        successor = next_occurrence(task, rule, matter)
        if successor is None or successor.task_id in self.store.tasks:
            return
        self.store.save_task(successor)
        result.successors.append(successor)

    def _record_matter_event(self, task: Task, code: str, result: BatchResult) -> None:
        matter = self.store.matters.get(task.matter_id)
        if matter is None or matter.has_event(code):
            return
        event = Event(
            event_id=generate_event_id(matter.matter_id, code, self.today),
            matter_id=matter.matter_id,
            code=code,
            event_date=self.today,
        )
        self.store.record_event(event)
        result.events.append(event)
