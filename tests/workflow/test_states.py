from __future__ import annotations

from datetime import date

import pytest

from ipren.core import InvoiceStep, Step, Task
from ipren.errors import InvalidTransitionError
from ipren.workflow.states import WorkflowStateMachine

TODAY = date(2021, 2, 1)


def _task(**kwargs) -> Task:
    defaults = dict(task_id="t1", matter_id="m1", trigger_id="ev1", code="REN", due_date=date(2021, 1, 31))
    defaults.update(kwargs)
    return Task(**defaults)


@pytest.fixture
def machine():
    return WorkflowStateMachine()


@pytest.fixture
def receipts():
    return WorkflowStateMachine(receipt_tabs=True)


class TestStepTransitions:
    def test_happy_path_without_receipts(self, machine):
        task = _task()
        for target in (Step.REMINDED, Step.PAYMENT_ORDERED, Step.CLOSED):
            task = machine.transition(task, target, today=TODAY)
        assert task.step == Step.CLOSED
        assert task.done
        assert task.done_date == TODAY

    def test_happy_path_with_receipts(self, receipts):
        task = _task(step=Step.PAYMENT_ORDERED)
        for target in (Step.RECEIPTS, Step.RECEIPTS_SENT, Step.CLOSED):
            task = receipts.transition(task, target, today=TODAY)
        assert task.step == Step.CLOSED

    def test_receipts_disabled(self, machine):
        with pytest.raises(InvalidTransitionError, match="not enabled"):
            machine.transition(_task(step=Step.PAYMENT_ORDERED), Step.RECEIPTS)

    def test_receipts_required_before_close(self, receipts):
        assert not receipts.can_transition(Step.PAYMENT_ORDERED, Step.CLOSED)
        with pytest.raises(InvalidTransitionError):
            receipts.transition(_task(step=Step.PAYMENT_ORDERED), Step.CLOSED)

    def test_repeat_reminder_allowed(self, machine):
        assert machine.can_transition(Step.REMINDED, Step.REMINDED)

    def test_new_cannot_lapse(self, machine):
        assert not machine.can_transition(Step.NEW, Step.LAPSED)

    def test_abandoned_can_only_lapse(self, machine):
        assert machine.allowed_steps(Step.ABANDONED) == frozenset({Step.LAPSED})

    @pytest.mark.parametrize("terminal", [Step.CLOSED, Step.LAPSED])
    def test_terminal_steps_accept_nothing(self, machine, terminal):
        assert machine.allowed_steps(terminal) == frozenset()
        with pytest.raises(InvalidTransitionError):
            machine.transition(_task(step=terminal, done=True), Step.REMINDED)

    def test_rejected_transition_leaves_task_untouched(self, machine):
        task = _task(step=Step.CLOSED, done=True, done_date=TODAY)
        snapshot = Task(**task.__dict__)
        with pytest.raises(InvalidTransitionError) as excinfo:
            machine.transition(task, Step.NEW)
        assert task == snapshot
        assert excinfo.value.task_id == "t1"
        assert excinfo.value.from_step == Step.CLOSED

    def test_abandon_and_lapse_clear_grace(self, machine):
        task = _task(step=Step.REMINDED, grace_period=True)
        abandoned = machine.transition(task, Step.ABANDONED, today=TODAY)
        assert abandoned.done
        assert not abandoned.grace_period

        lapsed = machine.transition(abandoned, Step.LAPSED, today=TODAY)
        assert lapsed.step == Step.LAPSED
        assert not lapsed.grace_period

    def test_reminder_keeps_grace(self, machine):
        task = _task(step=Step.REMINDED, grace_period=True)
        assert machine.transition(task, Step.PAYMENT_ORDERED).grace_period

    def test_step_sequence_is_monotone(self, receipts):
        order = [Step.NEW, Step.REMINDED, Step.PAYMENT_ORDERED, Step.RECEIPTS, Step.RECEIPTS_SENT, Step.CLOSED]
        for step in order:
            for target in receipts.allowed_steps(step):
                if target not in (Step.ABANDONED, Step.LAPSED):
                    assert target >= step


class TestInvoiceTransitions:
    def test_forward(self, machine):
        task = _task(invoice_step=InvoiceStep.TO_INVOICE)
        task = machine.advance_invoice(task, InvoiceStep.INVOICED)
        task = machine.advance_invoice(task, InvoiceStep.PAID)
        assert task.invoice_step == InvoiceStep.PAID

    def test_skip_forward_allowed(self, machine):
        task = _task(invoice_step=InvoiceStep.TO_INVOICE)
        assert machine.advance_invoice(task, InvoiceStep.PAID).invoice_step == InvoiceStep.PAID

    @pytest.mark.parametrize("target", [InvoiceStep.NONE, InvoiceStep.TO_INVOICE, InvoiceStep.INVOICED])
    def test_never_backwards(self, machine, target):
        with pytest.raises(InvalidTransitionError):
            machine.advance_invoice(_task(invoice_step=InvoiceStep.INVOICED), target)
