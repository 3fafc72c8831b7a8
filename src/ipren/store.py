"""
In-memory store for matters, rules and tasks.

Persistence proper (database tables, migrations) lives outside this
package. The store is the seam the generator and workflow read from and
write to, one record at a time.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from ipren.core import Country, Event, Matter, Rule, Task
from ipren.errors import TaskNotFoundError
from ipren.workflow.log import RenewalLog

logger = logging.getLogger(__name__)


class RenewalStore:
    def __init__(
        self,
        matters: Optional[Iterable[Matter]] = None,
        rules: Optional[Iterable[Rule]] = None,
        tasks: Optional[Iterable[Task]] = None,
        countries: Optional[Iterable[Country]] = None,
        creator: str = "system",
    ):
        self.matters: Dict[str, Matter] = {m.matter_id: m for m in matters or ()}
        self.rules: List[Rule] = list(rules or ())
        self.tasks: Dict[str, Task] = {t.task_id: t for t in tasks or ()}
        self.countries: Dict[str, Country] = {c.iso: c for c in countries or ()}
        self.log = RenewalLog(creator=creator)

    # Matters and events

    def matter(self, matter_id: str) -> Matter:
        try:
            return self.matters[matter_id]
        except KeyError:
            raise KeyError(f"Unknown matter {matter_id!r}") from None

    def record_event(self, event: Event) -> Event:
        matter = self.matter(event.matter_id)
        if any(ev.event_id == event.event_id for ev in matter.events):
            return event
        matter.events.append(event)
        return event

    # Rules

    def rule(self, rule_id: Optional[str]) -> Optional[Rule]:
        if rule_id is None:
            return None
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    # Tasks

    def task(self, task_id: str) -> Task:
        try:
            return self.tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(f"Task {task_id} not found") from None

    def save_task(self, task: Task) -> Task:
        self.tasks[task.task_id] = task
        return task

    def delete_task(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    def tasks_for_matter(self, matter_id: str) -> List[Task]:
        return [t for t in self.tasks.values() if t.matter_id == matter_id]
