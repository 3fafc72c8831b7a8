"""
Due-date computation for rule-generated tasks.

Offsets are applied years, then months, then days, with day-of-month
overflow clamped to the last day of the target month (Jan 31 + 1 month is
Feb 28/29). Calendar arithmetic uses pandas DateOffset, which clamps the
same way.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional

import pandas as pd

from ipren.core import Event, InvoiceStep, Matter, Rule, Step, Task
from ipren.errors import ConfigurationError
from ipren.utils.ids import generate_successor_id

logger = logging.getLogger(__name__)


def add_offset(base: date, years: int = 0, months: int = 0, days: int = 0) -> date:
    """
    Add a years/months/days offset to a date, in that order.

    Example:
        >>> add_offset(date(2020, 1, 31), months=1)
        datetime.date(2020, 2, 29)
        >>> add_offset(date(2020, 2, 29), years=1)
        datetime.date(2021, 2, 28)
    """
    ts = pd.Timestamp(base)
    if years:
        ts = ts + pd.DateOffset(years=years)
    if months:
        ts = ts + pd.DateOffset(months=months)
    if days:
        ts = ts + pd.DateOffset(days=days)
    return ts.date()


def end_of_month(d: date) -> date:
    """Last calendar day of the month containing d."""
    return (pd.Timestamp(d) + pd.offsets.MonthEnd(0)).date()


def validate_offset(rule: Rule) -> None:
    """Raise ConfigurationError for negative or all-zero offsets."""
    for name in ("years", "months", "days"):
        if getattr(rule, name) < 0:
            raise ConfigurationError(
                f"Rule {rule.rule_id}: {name} offset must be non-negative",
                rule_id=rule.rule_id,
            )
    if not rule.has_offset:
        raise ConfigurationError(
            f"Rule {rule.rule_id} has no day/month/year offset",
            rule_id=rule.rule_id,
        )


def compute_due_date(rule: Rule, base: date) -> date:
    """Due date for a rule applied to a base date."""
    validate_offset(rule)
    due = add_offset(base, years=rule.years, months=rule.months, days=rule.days)
    if rule.end_of_month:
        due = end_of_month(due)
    return due


def resolve_base_date(rule: Rule, matter: Matter, event: Event) -> Optional[date]:
    """
    Base date for a rule: the event date, or the matter's earliest priority
    date when the rule uses priority. None when priority is required but
    not recorded.
    """
    if not rule.use_priority:
        return event.event_date
    return matter.priority_date()


def next_occurrence(task: Task, rule: Rule, matter: Optional[Matter] = None) -> Optional[Task]:
    """
    Successor of a closed recurring task, due one year later.

    Returns None when the rule is not recurring or inactive, the task is not
    closed, or the matter is dead, abandoned, lapsed or past its expiry.
    """
    if not rule.recurring or not rule.active:
        return None
    if task.step != Step.CLOSED:
        return None
    if matter is not None and matter.is_terminated:
        return None

    due = add_offset(task.due_date, years=1)
    if rule.end_of_month:
        due = end_of_month(due)

    if matter is not None and matter.expire_date is not None and due > matter.expire_date:
        logger.info(f"Recurrence of {task.task_id} stops at expiry {matter.expire_date}")
        return None

    return replace(
        task,
        task_id=generate_successor_id(task.task_id, due.year),
        due_date=due,
        rule_id=rule.rule_id,
        done=False,
        done_date=None,
        step=Step.NEW,
        invoice_step=InvoiceStep.NONE,
        grace_period=False,
    )
