from __future__ import annotations

from datetime import date

import pytest

from ipren.config import RenewalConfig
from ipren.core import Event, InvoiceStep, Matter, Rule, Step, Task
from ipren.store import RenewalStore
from ipren.workflow.service import RenewalWorkflow

TODAY = date(2021, 2, 1)


def _task(task_id: str, **kwargs) -> Task:
    defaults = dict(
        task_id=task_id, matter_id="m1", trigger_id="ev1", code="REN",
        due_date=date(2021, 1, 31), rule_id="ren",
    )
    defaults.update(kwargs)
    return Task(**defaults)


@pytest.fixture
def store():
    matter = Matter(
        matter_id="m1", category="PAT", country="FR",
        events=[Event("ev1", "m1", "FIL", date(2020, 1, 31))],
    )
    rule = Rule(rule_id="ren", trigger_event="FIL", task_code="REN", years=1, recurring=True)
    tasks = [
        _task("t1"),
        _task("t2", step=Step.REMINDED),
        _task("t3", step=Step.CLOSED, done=True),
    ]
    return RenewalStore(matters=[matter], rules=[rule], tasks=tasks, creator="jdoe")


@pytest.fixture
def workflow(store):
    return RenewalWorkflow(store, today=TODAY)


def test_batch_updates_independently(workflow, store):
    result = workflow.mark_first_call(["t1", "t3", "t2"])

    assert result.updated == ["t1", "t2"]
    assert list(result.rejected) == ["t3"]
    assert store.task("t1").step == Step.REMINDED
    assert store.task("t3").step == Step.CLOSED


def test_unknown_task_is_rejected(workflow):
    result = workflow.mark_first_call(["missing", "t1"])
    assert result.updated == ["t1"]
    assert "not found" in result.rejected["missing"]


def test_duplicate_ids_processed_once(workflow, store):
    result = workflow.mark_first_call(["t1", "t1"])
    assert result.count == 1
    assert len(store.log.for_task("t1")) == 1


def test_last_reminder_sets_grace(workflow, store):
    workflow.mark_reminder(["t2"], last=True)
    assert store.task("t2").grace_period
    workflow.mark_reminder(["t1"])
    assert not store.task("t1").grace_period


def test_grace_period_refused_on_terminal_task(workflow, store):
    result = workflow.mark_grace_period(["t1", "t3"])
    assert result.updated == ["t1"]
    assert "t3" in result.rejected
    assert not store.task("t3").grace_period


def test_to_pay_enters_invoicing(workflow, store):
    workflow.mark_to_pay(["t2"])
    task = store.task("t2")
    assert task.step == Step.PAYMENT_ORDERED
    assert task.invoice_step == InvoiceStep.TO_INVOICE


def test_close_stores_successor_once(workflow, store):
    workflow.mark_to_pay(["t2"])
    result = workflow.mark_closed(["t2"])

    assert store.task("t2").done
    assert len(result.successors) == 1
    successor = result.successors[0]
    assert successor.due_date == date(2022, 1, 31)
    assert successor.step == Step.NEW
    assert store.task(successor.task_id) == successor


def test_close_requires_receipts_when_enabled(store):
    workflow = RenewalWorkflow(store, RenewalConfig(receipt_tabs=True), today=TODAY)
    workflow.mark_to_pay(["t2"])
    assert "t2" in workflow.mark_closed(["t2"]).rejected

    workflow.mark_receipt(["t2"])
    workflow.mark_receipt_sent(["t2"])
    result = workflow.mark_closed(["t2"])
    assert result.updated == ["t2"]


def test_abandon_records_event(workflow, store):
    result = workflow.mark_abandoned(["t1"])

    assert store.task("t1").step == Step.ABANDONED
    assert [e.code for e in result.events] == ["ABA"]
    assert store.matter("m1").has_event("ABA")


def test_lapse_after_abandon(workflow, store):
    workflow.mark_abandoned(["t1"])
    result = workflow.mark_lapsed(["t1"])
    assert result.updated == ["t1"]
    assert store.matter("m1").has_event("LAP")


def test_no_successor_after_abandon(workflow, store):
    workflow.mark_abandoned(["t1"])
    workflow.mark_to_pay(["t2"])
    result = workflow.mark_closed(["t2"])
    assert result.successors == []


def test_invoice_track(workflow, store):
    workflow.mark_to_pay(["t2"])
    workflow.mark_invoiced(["t2"])
    workflow.mark_paid(["t2"])
    assert store.task("t2").invoice_step == InvoiceStep.PAID

    assert "t2" in workflow.mark_invoiced(["t2"]).rejected


def test_job_ids_increase_and_log_transitions(workflow, store):
    first = workflow.mark_first_call(["t1"])
    second = workflow.mark_to_pay(["t1"])

    assert second.job_id == first.job_id + 1
    entry = store.log.for_job(second.job_id)[0]
    assert (entry.from_step, entry.to_step) == (2, 4)
    assert (entry.from_invoice, entry.to_invoice) == (0, 1)
    assert entry.creator == "jdoe"

    frame = store.log.to_frame()
    assert len(frame) == 2


def test_unexpected_error_does_not_stop_batch(workflow, store):
    store.save_task(_task("t9", step=99))
    result = workflow.mark_first_call(["t9", "t1"])

    assert result.updated == ["t1"]
    assert result.rejected["t9"].startswith("ValueError")


def test_failed_follow_up_reverts_task_and_continues(workflow, store, monkeypatch):
    from ipren.workflow import service

    real_next = service.next_occurrence

    def failing_next(task, rule, matter=None):
        if task.task_id == "t1":
            raise RuntimeError("fee table unavailable")
        return real_next(task, rule, matter)

    monkeypatch.setattr(service, "next_occurrence", failing_next)
    workflow.mark_to_pay(["t1", "t2"])
    result = workflow.mark_closed(["t1", "t2"])

    assert result.updated == ["t2"]
    assert "RuntimeError" in result.rejected["t1"]
    assert store.task("t1").step == Step.PAYMENT_ORDERED
    assert not store.task("t1").done
    assert [s.matter_id for s in result.successors] == ["m1"]
    assert [e.task_id for e in store.log.for_job(result.job_id)] == ["t2"]
