"""
Country-driven annuity schedules.

Some jurisdictions are easier to describe by three parameters than by one
rule per annuity year: the first annuity year, the event the years count
from (renewal_base), and the event from which renewals become payable
(renewal_start). This module generates the yearly REN tasks from those
parameters, and the EXP events of matters past their expiry date.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from ipren.config import RenewalConfig
from ipren.constants import EVENT_EXPIRED, ORIGIN_PCT, TASK_RENEWAL
from ipren.core import Country, Event, Matter, Rule, Task
from ipren.rules.due_dates import add_offset
from ipren.utils.ids import generate_event_id, generate_task_id

logger = logging.getLogger(__name__)


def grace_cutoff(matter: Matter, today: date, config: RenewalConfig) -> date:
    """Annuities due before this date are past their grace window."""
    months = config.wo_grace_months if matter.origin == ORIGIN_PCT else config.grace_months
    return add_offset(today, months=-months) if months else today


def annuity_schedule(
    matter: Matter,
    trigger: Event,
    country: Country,
    rule: Optional[Rule] = None,
    base_date: Optional[date] = None,
    today: Optional[date] = None,
    config: Optional[RenewalConfig] = None,
) -> List[Task]:
    """
    Yearly renewal tasks for a matter from its country's parameters.

    Args:
        matter: Matter the renewals belong to.
        trigger: The recorded event starting renewals; must carry the
            country's renewal_start code.
        country: Annuity parameters.
        rule: Rule recorded as origin of the tasks, if any.
        base_date: Optional earlier base date (e.g. a priority date).
        today: Reference date for the grace window.
        config: Renewal configuration (horizon and grace windows).

    Returns:
        Tasks ordered by annuity year. Empty when the country has no
        parameters for this trigger or the base event is not recorded.
    """
    config = config or RenewalConfig()
    today = today or date.today()

    if trigger.code != country.renewal_start:
        return []
    base = matter.first_event_date(country.renewal_base)
    if base is None:
        logger.warning(
            f"Matter {matter.matter_id}: no {country.renewal_base} event, no annuities generated"
        )
        return []
    if base_date is not None:
        base = min(base, base_date)

    start = trigger.event_date
    first = country.renewal_first
    cutoff = grace_cutoff(matter, today, config)
    tasks: List[Task] = []

    for year in range(abs(first), config.annuity_horizon + 1):
        origin = base if first > 0 else start
        due = add_offset(origin, years=year - 1)

        if matter.expire_date is not None and due > matter.expire_date:
            break
        if due < start:
            due = start
        if due < cutoff:
            continue

        detail = str(year)
        tasks.append(Task(
            task_id=generate_task_id(matter.matter_id, trigger.event_id, rule.rule_id if rule else None, detail),
            matter_id=matter.matter_id,
            trigger_id=trigger.event_id,
            code=rule.task_code if rule else TASK_RENEWAL,
            due_date=due,
            rule_id=rule.rule_id if rule else None,
            detail=detail,
            cost=rule.cost if rule else None,
            fee=rule.fee if rule else None,
            currency=rule.currency if rule else None,
            assigned_to=rule.responsible if rule else None,
        ))

    logger.info(f"Matter {matter.matter_id}: {len(tasks)} annuities from {country.iso} parameters")
    return tasks


def expired_matters(matters: Iterable[Matter], today: Optional[date] = None) -> List[Event]:
    """EXP events for live matters whose expiry date has passed."""
    today = today or date.today()
    events: List[Event] = []
    for matter in matters:
        if matter.dead or matter.expire_date is None or matter.expire_date >= today:
            continue
        if matter.has_event(EVENT_EXPIRED):
            continue
        events.append(Event(
            event_id=generate_event_id(matter.matter_id, EVENT_EXPIRED, matter.expire_date),
            matter_id=matter.matter_id,
            code=EVENT_EXPIRED,
            event_date=matter.expire_date,
        ))
    if events:
        logger.info(f"{len(events)} matters past expiry")
    return events
