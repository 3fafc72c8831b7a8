from __future__ import annotations

from datetime import date

from ipren.core import Event, Matter, Rule
from ipren.evaluation import (
    ambiguous_rule_gate,
    audits_to_frame,
    offset_configuration_gate,
    priority_basis_gate,
    run_rule_audits,
    specificity_report,
)


def _rule(rule_id: str, **kwargs) -> Rule:
    defaults = dict(rule_id=rule_id, trigger_event="FIL", task_code="REN", years=1)
    defaults.update(kwargs)
    return Rule(**defaults)


def test_offset_gate_flags_rules_without_offset():
    result = offset_configuration_gate([_rule("ok"), _rule("bad", years=0), _rule("off", years=0, active=False)])

    assert not result.passed
    assert result.total == 2
    assert result.succeeded == 1
    assert "bad" in result.details


def test_ambiguity_gate():
    rules = [
        _rule("a", for_country="FR"),
        _rule("b", for_country="FR"),
        _rule("c", for_country="DE"),
        _rule("d"),
    ]
    result = ambiguous_rule_gate(rules)

    assert not result.passed
    assert result.succeeded == 2
    assert "['a', 'b']" in result.details
    assert ambiguous_rule_gate(rules[2:]).passed


def test_priority_gate():
    rule = _rule("pct", months=30, years=0, use_priority=True)
    filed = Event("ev1", "m1", "FIL", date(2020, 1, 1))
    with_priority = Matter(
        matter_id="m2", category="PAT", country="FR",
        events=[Event("ev2", "m2", "FIL", date(2020, 1, 1)), Event("ev3", "m2", "PRI", date(2019, 1, 1))],
    )
    without = Matter(matter_id="m1", category="PAT", country="FR", events=[filed])
    untouched = Matter(matter_id="m3", category="PAT", country="FR")

    result = priority_basis_gate([rule], [with_priority, without, untouched])

    assert result.total == 2
    assert result.succeeded == 1
    assert "m1" in result.details


def test_run_rule_audits_and_frame():
    results = run_rule_audits([_rule("a")], [])
    assert [r.gate_id for r in results] == ["rule_offset_configuration", "rule_ambiguity", "priority_basis"]
    assert all(r.passed for r in results)
    assert results[2].success_rate == 1.0

    frame = audits_to_frame(results)
    assert list(frame["gate_id"]) == [r.gate_id for r in results]


def test_specificity_report_order():
    rules = [_rule("general"), _rule("country", for_country="FR"), _rule("both", for_country="FR", for_category="PAT")]
    report = specificity_report(rules)
    assert list(report["rule_id"]) == ["both", "country", "general"]
