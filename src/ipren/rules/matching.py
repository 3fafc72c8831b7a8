"""
Rule matching for recorded events.

A rule matches a matter when each of its classification fields is either
None (any) or equal to the matter's value. Candidates are ordered by
specificity (number of non-null classification fields), then by their
position in the rule list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ipren.core import Event, Matter, Rule
from ipren.errors import ConfigurationError
from ipren.rules.due_dates import resolve_base_date, validate_offset

logger = logging.getLogger(__name__)


class DecisionKind(Enum):
    APPLY = "apply"
    SKIP_CONDITION = "skip_condition"   # condition_event not recorded
    SKIP_NO_PRIORITY = "skip_no_priority"
    SKIP_INVALID_OFFSET = "skip_invalid_offset"
    ABORT = "abort"                     # abort_on event recorded


SKIP_KINDS = frozenset({
    DecisionKind.SKIP_CONDITION,
    DecisionKind.SKIP_NO_PRIORITY,
    DecisionKind.SKIP_INVALID_OFFSET,
})


@dataclass
class RuleDecision:
    rule: Rule
    kind: DecisionKind
    specificity: int
    position: int
    reason: str = ""

    @property
    def clears(self) -> bool:
        return self.kind == DecisionKind.ABORT and self.rule.clear_task

    @property
    def deletes(self) -> bool:
        return self.kind == DecisionKind.ABORT and self.rule.delete_task


@dataclass
class MatchResult:
    decisions: List[RuleDecision] = field(default_factory=list)
    ambiguities: List[Tuple[str, ...]] = field(default_factory=list)

    @property
    def applicable(self) -> List[RuleDecision]:
        return [d for d in self.decisions if d.kind == DecisionKind.APPLY]

    @property
    def aborted(self) -> List[RuleDecision]:
        return [d for d in self.decisions if d.kind == DecisionKind.ABORT]

    @property
    def skipped(self) -> List[RuleDecision]:
        return [d for d in self.decisions if d.kind in SKIP_KINDS]


def _matter_classification(matter: Matter) -> Tuple[Optional[str], ...]:
    return (matter.category, matter.country, matter.origin, matter.type_code)


def specificity(rule: Rule) -> int:
    """Number of classification fields the rule pins to a value."""
    return sum(1 for value in rule.classification if value is not None)


def rule_matches_matter(rule: Rule, matter: Matter) -> bool:
    return all(
        wanted is None or wanted == actual
        for wanted, actual in zip(rule.classification, _matter_classification(matter))
    )


def rule_in_window(rule: Rule, event_date: date) -> bool:
    """use_after is inclusive, use_before exclusive."""
    if rule.use_after is not None and event_date < rule.use_after:
        return False
    if rule.use_before is not None and event_date >= rule.use_before:
        return False
    return True


def match_rules(matter: Matter, event: Event, rules: Sequence[Rule]) -> List[Tuple[int, Rule]]:
    """
    Candidate rules for an event on a matter, most specific first.

    Returns (position, rule) pairs; position is the rule's index in `rules`.
    """
    candidates = [
        (position, rule)
        for position, rule in enumerate(rules)
        if rule.active
        and rule.trigger_event == event.code
        and rule_matches_matter(rule, matter)
        and rule_in_window(rule, event.event_date)
    ]
    candidates.sort(key=lambda pr: (-specificity(pr[1]), pr[0]))
    return candidates


def _decide(rule: Rule, matter: Matter, event: Event) -> Tuple[DecisionKind, str]:
    """
    Decision for one candidate rule, with the reason when it is skipped.

    A rule that cannot produce a due date (no priority recorded, unusable
    offset) is skipped here, before it claims its task code, so the next
    candidate for that code is considered.
    """
    if rule.abort_on and matter.has_event(rule.abort_on):
        return DecisionKind.ABORT, ""
    if rule.condition_event and not matter.has_event(rule.condition_event):
        return DecisionKind.SKIP_CONDITION, f"rule {rule.rule_id} needs a {rule.condition_event} event"
    try:
        validate_offset(rule)
    except ConfigurationError as exc:
        return DecisionKind.SKIP_INVALID_OFFSET, str(exc)
    if resolve_base_date(rule, matter, event) is None:
        return DecisionKind.SKIP_NO_PRIORITY, (
            f"rule {rule.rule_id} uses priority but matter {matter.matter_id} has no priority event"
        )
    return DecisionKind.APPLY, ""


def find_ambiguities(candidates: Sequence[Tuple[int, Rule]]) -> List[Tuple[str, ...]]:
    """Rule ids sharing a task code and the top specificity for that code."""
    by_code: Dict[str, List[Rule]] = {}
    for _, rule in candidates:
        by_code.setdefault(rule.task_code, []).append(rule)

    ambiguous: List[Tuple[str, ...]] = []
    for group in by_code.values():
        if len(group) < 2:
            continue
        top = specificity(group[0])
        tied = [r.rule_id for r in group if specificity(r) == top]
        if len(tied) > 1:
            ambiguous.append(tuple(tied))
    return ambiguous


def evaluate_rules(matter: Matter, event: Event, rules: Sequence[Rule]) -> MatchResult:
    """
    Decide, for each candidate rule, whether it applies, is skipped (condition
    event, priority or offset), or is aborted.

    Only the first applicable rule per task code is kept; equally specific
    competitors are reported as ambiguities and logged with the rule that
    was actually used.
    """
    candidates = match_rules(matter, event, rules)
    result = MatchResult(ambiguities=find_ambiguities(candidates))

    applied: Dict[str, str] = {}
    for position, rule in candidates:
        kind, reason = _decide(rule, matter, event)
        if kind == DecisionKind.APPLY:
            if rule.task_code in applied:
                continue
            applied[rule.task_code] = rule.rule_id
        result.decisions.append(RuleDecision(
            rule=rule,
            kind=kind,
            specificity=specificity(rule),
            position=position,
            reason=reason,
        ))

    task_codes = {rule.rule_id: rule.task_code for _, rule in candidates}
    for tied in result.ambiguities:
        used = applied.get(task_codes[tied[0]])
        logger.warning(
            f"Matter {matter.matter_id} event {event.code}: rules {', '.join(tied)} "
            f"are equally specific, using {used or 'none'}"
        )
    return result
