"""
Core Types: Matters, Events, Rules and Tasks.

Layer: Ontology
- Matter: IP right under management
- Event: Dated milestone recorded on a matter
- Rule: Reference-data template generating tasks from events
- Task: Obligation with a due date and workflow position
- Country: Annuity schedule parameters per jurisdiction

Rules are reference data maintained by administrators. Tasks are the only
records this package creates.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from ipren.constants import (
    EVENT_FILING,
    INVOICE_INVOICED,
    INVOICE_NONE,
    INVOICE_PAID,
    INVOICE_TO_INVOICE,
    PRIORITY_EVENTS,
    STEP_ABANDONED,
    STEP_CLOSED,
    STEP_LAPSED,
    STEP_NEW,
    STEP_PAYMENT_ORDERED,
    STEP_RECEIPTS,
    STEP_RECEIPTS_SENT,
    STEP_REMINDED,
    TERMINATING_EVENTS,
)


# =============================================================================
# ENUMS
# =============================================================================

class Step(IntEnum):
    """Administrative workflow position of a renewal task."""
    NEW = STEP_NEW                          # Pending, first call not sent
    REMINDED = STEP_REMINDED                # Call or reminder sent
    PAYMENT_ORDERED = STEP_PAYMENT_ORDERED  # Client instructed payment
    RECEIPTS = STEP_RECEIPTS                # Paid, receipt awaited
    RECEIPTS_SENT = STEP_RECEIPTS_SENT      # Receipt forwarded to client
    CLOSED = STEP_CLOSED
    ABANDONED = STEP_ABANDONED
    LAPSED = STEP_LAPSED

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STEPS


TERMINAL_STEPS = frozenset({Step.CLOSED, Step.ABANDONED, Step.LAPSED})


class InvoiceStep(IntEnum):
    """Independent billing track of a task."""
    NONE = INVOICE_NONE
    TO_INVOICE = INVOICE_TO_INVOICE
    INVOICED = INVOICE_INVOICED
    PAID = INVOICE_PAID


# =============================================================================
# EVENT
# =============================================================================

@dataclass
class Event:
    """
    A dated occurrence on a matter (filing, grant, priority claim, ...).

    `detail` carries the optional registry number linked to the event.
    """
    event_id: str
    matter_id: str
    code: str
    event_date: date
    alt_matter_id: Optional[str] = None
    detail: Optional[str] = None


# =============================================================================
# MATTER
# =============================================================================

@dataclass
class Matter:
    """
    An IP right under management.

    The classification tuple (category, country, origin, type_code) selects
    which rules apply. `discount` is the renewal discount: values above 1 are
    absolute fee overrides, values up to 1 are fractions.
    """
    matter_id: str
    category: str
    country: str
    origin: Optional[str] = None
    type_code: Optional[str] = None
    container_id: Optional[str] = None
    discount: float = 0.0
    sme_status: bool = False
    expire_date: Optional[date] = None
    dead: bool = False
    events: List[Event] = field(default_factory=list)

    def has_event(self, code: str) -> bool:
        return any(ev.code == code for ev in self.events)

    def events_with_code(self, code: str) -> List[Event]:
        return sorted(
            (ev for ev in self.events if ev.code == code),
            key=lambda ev: (ev.event_date, ev.event_id),
        )

    def first_event_date(self, code: str) -> Optional[date]:
        matching = self.events_with_code(code)
        return matching[0].event_date if matching else None

    def priority_date(self) -> Optional[date]:
        """Earliest recorded priority date, or None when no priority exists."""
        for code in PRIORITY_EVENTS:
            found = self.first_event_date(code)
            if found is not None:
                return found
        return None

    @property
    def is_terminated(self) -> bool:
        """Matter has been abandoned or has lapsed."""
        return self.dead or any(self.has_event(code) for code in TERMINATING_EVENTS)


# =============================================================================
# RULE
# =============================================================================

RULE_CLASSIFICATION_FIELDS = ("for_category", "for_country", "for_origin", "for_type")


@dataclass
class Rule:
    """
    Template generating a task when `trigger_event` is recorded on a matter.

    Each classification field is either an exact value or None (any). The
    offset is applied years, then months, then days to the trigger date, or
    to the matter's priority date when `use_priority` is set.
    """
    rule_id: str
    trigger_event: str
    task_code: str

    # Classification
    for_category: Optional[str] = None
    for_country: Optional[str] = None
    for_origin: Optional[str] = None
    for_type: Optional[str] = None

    # Offset
    days: int = 0
    months: int = 0
    years: int = 0
    end_of_month: bool = False
    use_priority: bool = False
    recurring: bool = False

    # Conditions
    condition_event: Optional[str] = None
    abort_on: Optional[str] = None
    use_before: Optional[date] = None
    use_after: Optional[date] = None
    clear_task: bool = False
    delete_task: bool = False
    active: bool = True

    # Amounts
    cost: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    currency: str = "EUR"

    detail: Optional[str] = None
    responsible: Optional[str] = None

    @property
    def classification(self) -> Tuple[Optional[str], ...]:
        return tuple(getattr(self, name) for name in RULE_CLASSIFICATION_FIELDS)

    @property
    def has_offset(self) -> bool:
        return bool(self.days or self.months or self.years)


# =============================================================================
# TASK
# =============================================================================

@dataclass
class Task:
    """
    An obligation for a matter generated from a rule match.

    Terminal steps are CLOSED, ABANDONED and LAPSED. The grace flag is only
    cleared by the abandon and lapse actions.
    """
    task_id: str
    matter_id: str
    trigger_id: str
    code: str
    due_date: date
    rule_id: Optional[str] = None
    detail: Optional[str] = None
    recurring: bool = False
    done: bool = False
    done_date: Optional[date] = None
    step: Step = Step.NEW
    invoice_step: InvoiceStep = InvoiceStep.NONE
    grace_period: bool = False
    cost: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    currency: Optional[str] = None
    assigned_to: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return not self.done and not Step(self.step).is_terminal

    def to_dict(self) -> Dict[str, object]:
        return {
            "task_id": self.task_id,
            "matter_id": self.matter_id,
            "trigger_id": self.trigger_id,
            "code": self.code,
            "due_date": self.due_date,
            "rule_id": self.rule_id,
            "detail": self.detail,
            "recurring": self.recurring,
            "done": self.done,
            "done_date": self.done_date,
            "step": int(self.step),
            "invoice_step": int(self.invoice_step),
            "grace_period": self.grace_period,
            "cost": self.cost,
            "fee": self.fee,
            "currency": self.currency,
            "assigned_to": self.assigned_to,
        }


# =============================================================================
# COUNTRY
# =============================================================================

@dataclass
class Country:
    """
    Annuity parameters of a jurisdiction.

    `renewal_first` is the first annuity year counted from the
    `renewal_base` event. When negative, due dates are counted from the
    `renewal_start` event instead.
    """
    iso: str
    renewal_first: int = 2
    renewal_base: str = EVENT_FILING
    renewal_start: str = EVENT_FILING
