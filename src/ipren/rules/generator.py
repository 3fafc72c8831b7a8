"""
Task generation from recorded events.

For each event recorded on a matter, the matching rules are evaluated and
tasks are created, updated, cleared or deleted. Generation is a pure
function of (matter, event, rules, existing tasks, today): replaying the
same event against an unchanged rule set produces no further changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ipren.config import RenewalConfig
from ipren.core import Event, Matter, Rule, Task
from ipren.rules.due_dates import compute_due_date, resolve_base_date
from ipren.rules.matching import DecisionKind, RuleDecision, evaluate_rules
from ipren.utils.ids import generate_task_id

logger = logging.getLogger(__name__)

SKIP_CONDITION = "condition_event_missing"
SKIP_NO_OFFSET = "invalid_offset"
SKIP_NO_PRIORITY = "missing_priority"
SKIP_ABORTED = "aborted"

# Skips reported as data-quality warnings
_WARNED_SKIPS = {
    DecisionKind.SKIP_NO_PRIORITY: SKIP_NO_PRIORITY,
    DecisionKind.SKIP_INVALID_OFFSET: SKIP_NO_OFFSET,
}


@dataclass
class GenerationResult:
    """Changes produced by evaluating one event (or a whole matter)."""
    created: List[Task] = field(default_factory=list)
    updated: List[Task] = field(default_factory=list)
    cleared: List[Task] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    ambiguities: List[Tuple[str, ...]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.cleared or self.deleted)

    def apply(self, tasks: Dict[str, Task]) -> Dict[str, Task]:
        """Apply the changes to a task_id -> Task mapping in place."""
        for task in self.created + self.updated + self.cleared:
            tasks[task.task_id] = task
        for task_id in self.deleted:
            tasks.pop(task_id, None)
        return tasks

    def summary(self) -> Dict[str, int]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "cleared": len(self.cleared),
            "deleted": len(self.deleted),
            "skipped": len(self.skipped),
            "warnings": len(self.warnings),
        }


class TaskGenerator:
    """Evaluates rules against recorded events to produce task changes."""

    def __init__(self, config: Optional[RenewalConfig] = None, today: Optional[date] = None):
        self.config = config or RenewalConfig()
        self.today = today or date.today()

    # -------------------------------------------------------------------------
    # Single event
    # -------------------------------------------------------------------------

    def evaluate_event(
        self,
        matter: Matter,
        event: Event,
        rules: Sequence[Rule],
        existing_tasks: Iterable[Task] = (),
    ) -> GenerationResult:
        existing = {t.task_id: t for t in existing_tasks if t.matter_id == matter.matter_id}
        match = evaluate_rules(matter, event, rules)
        result = GenerationResult(ambiguities=list(match.ambiguities))
        for tied in match.ambiguities:
            result.warnings.append(
                f"ambiguous rules {', '.join(tied)} for {event.code} on matter {matter.matter_id}"
            )

        for decision in match.decisions:
            if decision.kind == DecisionKind.SKIP_CONDITION:
                result.skipped.append((decision.rule.rule_id, SKIP_CONDITION))
            elif decision.kind in _WARNED_SKIPS:
                logger.warning(f"Skipping {decision.reason}")
                result.skipped.append((decision.rule.rule_id, _WARNED_SKIPS[decision.kind]))
                result.warnings.append(decision.reason)
            elif decision.kind == DecisionKind.ABORT:
                result.skipped.append((decision.rule.rule_id, SKIP_ABORTED))
                self._abort(matter, decision, existing, result)
            else:
                self._apply(matter, event, decision.rule, existing, result)

        if result.changed:
            logger.info(
                f"Matter {matter.matter_id} event {event.code}@{event.event_date}: {result.summary()}"
            )
        return result

    def _apply(
        self,
        matter: Matter,
        event: Event,
        rule: Rule,
        existing: Dict[str, Task],
        result: GenerationResult,
    ) -> None:
        # Base date and offsets were checked when the rule was decided
        due = compute_due_date(rule, resolve_base_date(rule, matter, event))
        task_id = generate_task_id(matter.matter_id, event.event_id, rule.rule_id)
        current = existing.get(task_id)
        if current is not None:
            if current.is_pending and current.due_date != due:
                updated = replace(current, due_date=due)
                existing[task_id] = updated
                result.updated.append(updated)
            return

        task = Task(
            task_id=task_id,
            matter_id=matter.matter_id,
            trigger_id=event.event_id,
            code=rule.task_code,
            due_date=due,
            rule_id=rule.rule_id,
            detail=rule.detail,
            recurring=rule.recurring,
            cost=rule.cost,
            fee=rule.fee,
            currency=rule.currency,
            assigned_to=rule.responsible,
        )
        if self.config.auto_complete_past and due <= self.today:
            task.done = True
            task.done_date = due
        existing[task_id] = task
        result.created.append(task)

    def _abort(
        self,
        matter: Matter,
        decision: RuleDecision,
        existing: Dict[str, Task],
        result: GenerationResult,
    ) -> None:
        rule = decision.rule
        if not (rule.clear_task or rule.delete_task):
            return
        targets = [
            t for t in existing.values()
            if t.is_pending and (t.code == rule.task_code or t.rule_id == rule.rule_id)
        ]
        for task in targets:
            if rule.delete_task:
                existing.pop(task.task_id)
                result.deleted.append(task.task_id)
            else:
                cleared = replace(task, done=True, done_date=self.today)
                existing[task.task_id] = cleared
                result.cleared.append(cleared)

    # -------------------------------------------------------------------------
    # Whole matter
    # -------------------------------------------------------------------------

    def evaluate_matter(
        self,
        matter: Matter,
        rules: Sequence[Rule],
        existing_tasks: Iterable[Task] = (),
    ) -> GenerationResult:
        """Replay every event of a matter in date order and diff the outcome."""
        before = {t.task_id: t for t in existing_tasks if t.matter_id == matter.matter_id}
        working = dict(before)
        combined = GenerationResult()

        for event in sorted(matter.events, key=lambda ev: (ev.event_date, ev.event_id)):
            step = self.evaluate_event(matter, event, rules, working.values())
            step.apply(working)
            combined.skipped.extend(step.skipped)
            combined.warnings.extend(step.warnings)
            combined.ambiguities.extend(step.ambiguities)

        for task_id, task in working.items():
            old = before.get(task_id)
            if old is None:
                combined.created.append(task)
            elif old != task:
                if task.done and not old.done:
                    combined.cleared.append(task)
                else:
                    combined.updated.append(task)
        combined.deleted.extend(task_id for task_id in before if task_id not in working)
        return combined
