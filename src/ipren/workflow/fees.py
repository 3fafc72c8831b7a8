"""
Renewal cost and fee calculation.

Two sources are supported: a fee table row for the renewal (official cost
and service fee, each with SME-reduced and grace-period surcharge columns),
or the amounts carried on the task itself. Matter discounts above 1 are
absolute fee overrides; discounts up to 1 are fractions taken off the fee.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ipren.config import RenewalConfig
from ipren.core import Matter, Task


@dataclass
class FeeRow:
    """Fee table entry for one annuity of one jurisdiction."""
    cost: float = 0.0
    fee: float = 0.0
    cost_reduced: Optional[float] = None
    fee_reduced: Optional[float] = None
    cost_sup: Optional[float] = None
    fee_sup: Optional[float] = None
    cost_sup_reduced: Optional[float] = None
    fee_sup_reduced: Optional[float] = None


def apply_discount(fee: float, discount: float) -> float:
    """
    Example:
        >>> apply_discount(200.0, 0.1)
        180.0
        >>> apply_discount(200.0, 150.0)
        150.0
    """
    if discount > 1:
        return discount
    return fee * (1.0 - discount)


class FeeCalculator:
    def __init__(self, default_fee: float = 145.0, grace_fee_factor: float = 1.0):
        self.default_fee = default_fee
        self.grace_fee_factor = grace_fee_factor

    @classmethod
    def from_config(cls, config: RenewalConfig) -> "FeeCalculator":
        return cls(default_fee=config.default_fee, grace_fee_factor=config.grace_fee_factor)

    def grace_factor(self, task: Task) -> float:
        """Late-payment multiplier: in grace period and done after the due date."""
        if task.grace_period and task.done_date is not None and task.done_date > task.due_date:
            return self.grace_fee_factor
        return 1.0

    def calculate(self, task: Task, matter: Matter, fee_row: Optional[FeeRow] = None) -> Tuple[float, float]:
        """Return (cost, fee) for a renewal task."""
        if fee_row is not None:
            cost, fee = self.from_table(task, matter, fee_row)
        else:
            cost, fee = self.from_task(task, matter)
        return cost, fee * self.grace_factor(task)

    def from_table(self, task: Task, matter: Matter, row: FeeRow) -> Tuple[float, float]:
        if task.grace_period:
            cost = row.cost_sup_reduced if matter.sme_status else row.cost_sup
            fee = row.fee_sup_reduced if matter.sme_status else row.fee_sup
        else:
            cost = row.cost_reduced if matter.sme_status else row.cost
            fee = row.fee_reduced if matter.sme_status else row.fee
        fee = apply_discount(float(fee or 0.0), float(matter.discount or 0.0))
        return float(cost or 0.0), fee

    def from_task(self, task: Task, matter: Matter) -> Tuple[float, float]:
        """
        Amounts from the task, with the default service fee replaced by the
        discounted one.
        """
        cost = float(task.cost or 0.0)
        fee = float(task.fee or 0.0) - self.default_fee
        discount = float(matter.discount or 0.0)
        if discount > 1:
            fee += discount
        else:
            fee += (1.0 - discount) * self.default_fee
        return cost, fee
