"""
Rule table deterministic audits.

These gates check the rule reference data for conditions that make task
generation silently incomplete: rules without an offset, equally specific
competing rules, and priority-based rules applied to matters without a
recorded priority.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from ipren.core import Matter, Rule
from ipren.rules.matching import rule_matches_matter, specificity


@dataclass
class AuditResult:
    gate_id: str
    passed: bool
    total: int
    succeeded: int
    threshold: float
    details: str = ""

    @property
    def success_rate(self) -> float:
        return self.succeeded / self.total if self.total else 1.0


def offset_configuration_gate(rules: Sequence[Rule]) -> AuditResult:
    """Every active rule has a positive day, month or year offset."""
    active = [r for r in rules if r.active]
    bad = [
        r.rule_id for r in active
        if not r.has_offset or min(r.days, r.months, r.years) < 0
    ]
    return AuditResult(
        gate_id="rule_offset_configuration",
        passed=not bad,
        total=len(active),
        succeeded=len(active) - len(bad),
        threshold=1.0,
        details=f"invalid offsets: {bad[:10]}" if bad else "",
    )


def _overlap_key(rule: Rule) -> Tuple:
    return (rule.trigger_event, rule.task_code) + rule.classification


def ambiguous_rule_gate(rules: Sequence[Rule]) -> AuditResult:
    """
    No two active rules share trigger, task code and classification.

    Rules with the same key are equally specific for every matter they
    match, so only insertion order decides between them.
    """
    groups: Dict[Tuple, List[str]] = defaultdict(list)
    for rule in rules:
        if rule.active:
            groups[_overlap_key(rule)].append(rule.rule_id)
    clashes = [ids for ids in groups.values() if len(ids) > 1]
    clashing = sum(len(ids) for ids in clashes)
    total = sum(len(ids) for ids in groups.values())
    return AuditResult(
        gate_id="rule_ambiguity",
        passed=not clashes,
        total=total,
        succeeded=total - clashing,
        threshold=1.0,
        details=f"equally specific rules: {clashes[:10]}" if clashes else "",
    )


def priority_basis_gate(rules: Sequence[Rule], matters: Iterable[Matter]) -> AuditResult:
    """Matters reached by a priority-based rule have a priority event recorded."""
    priority_rules = [r for r in rules if r.active and r.use_priority]
    checked = 0
    missing: List[str] = []
    for matter in matters:
        relevant = [
            r for r in priority_rules
            if rule_matches_matter(r, matter) and matter.has_event(r.trigger_event)
        ]
        if not relevant:
            continue
        checked += 1
        if matter.priority_date() is None:
            missing.append(matter.matter_id)
    return AuditResult(
        gate_id="priority_basis",
        passed=not missing,
        total=checked,
        succeeded=checked - len(missing),
        threshold=1.0,
        details=f"matters without priority: {missing[:10]}" if missing else "",
    )


def run_rule_audits(rules: Sequence[Rule], matters: Iterable[Matter]) -> List[AuditResult]:
    matters = list(matters)
    return [
        offset_configuration_gate(rules),
        ambiguous_rule_gate(rules),
        priority_basis_gate(rules, matters),
    ]


def audits_to_frame(results: Sequence[AuditResult]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "gate_id": r.gate_id,
            "passed": r.passed,
            "total": r.total,
            "succeeded": r.succeeded,
            "success_rate": r.success_rate,
            "threshold": r.threshold,
            "details": r.details,
        }
        for r in results
    ], columns=["gate_id", "passed", "total", "succeeded", "success_rate", "threshold", "details"])


def specificity_report(rules: Sequence[Rule]) -> pd.DataFrame:
    """Active rules with their specificity, in matching order per trigger."""
    rows = [
        {
            "rule_id": r.rule_id,
            "trigger_event": r.trigger_event,
            "task_code": r.task_code,
            "specificity": specificity(r),
            "position": pos,
        }
        for pos, r in enumerate(rules) if r.active
    ]
    frame = pd.DataFrame(rows, columns=["rule_id", "trigger_event", "task_code", "specificity", "position"])
    return frame.sort_values(
        ["trigger_event", "specificity", "position"], ascending=[True, False, True]
    ).reset_index(drop=True)
