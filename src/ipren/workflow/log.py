"""
Transition log for renewal workflow actions.

Every applied transition is recorded with the batch (job) it belongs to,
so a bulk action can be reviewed or reverted as a unit.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from ipren.core import Task


@dataclass
class TransitionLog:
    task_id: str
    job_id: int
    from_step: int
    to_step: int
    creator: str
    created_at: datetime
    from_invoice: Optional[int] = None
    to_invoice: Optional[int] = None
    from_grace: Optional[bool] = None
    to_grace: Optional[bool] = None
    from_done: Optional[bool] = None
    to_done: Optional[bool] = None

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class RenewalLog:
    """In-memory renewal log with monotonically increasing job ids."""

    def __init__(self, creator: str = "system"):
        self.creator = creator
        self.entries: List[TransitionLog] = []
        self._last_job_id = 0

    def create_job_id(self) -> int:
        self._last_job_id += 1
        return self._last_job_id

    @property
    def current_job_id(self) -> int:
        return self._last_job_id

    def record(self, job_id: int, before: Task, after: Task, when: Optional[datetime] = None) -> TransitionLog:
        entry = TransitionLog(
            task_id=after.task_id,
            job_id=job_id,
            from_step=int(before.step),
            to_step=int(after.step),
            creator=self.creator,
            created_at=when or datetime.now(),
        )
        if before.invoice_step != after.invoice_step:
            entry.from_invoice = int(before.invoice_step)
            entry.to_invoice = int(after.invoice_step)
        if before.grace_period != after.grace_period:
            entry.from_grace = before.grace_period
            entry.to_grace = after.grace_period
        if before.done != after.done:
            entry.from_done = before.done
            entry.to_done = after.done
        self.entries.append(entry)
        return entry

    def for_job(self, job_id: int) -> List[TransitionLog]:
        return [e for e in self.entries if e.job_id == job_id]

    def for_task(self, task_id: str) -> List[TransitionLog]:
        return [e for e in self.entries if e.task_id == task_id]

    def to_frame(self) -> pd.DataFrame:
        if not self.entries:
            return pd.DataFrame(columns=list(TransitionLog.__dataclass_fields__))
        return pd.DataFrame([e.to_dict() for e in self.entries])
