"""
Rule evaluation for ipren.

Provides rule matching, due-date computation, task generation and
country-driven annuity schedules.
"""

from .matching import (
    DecisionKind,
    MatchResult,
    RuleDecision,
    evaluate_rules,
    match_rules,
    rule_in_window,
    rule_matches_matter,
    specificity,
)
from .due_dates import (
    add_offset,
    compute_due_date,
    end_of_month,
    next_occurrence,
    resolve_base_date,
)
from .generator import GenerationResult, TaskGenerator
from .annuities import annuity_schedule, expired_matters

__all__ = [
    # Matching
    "DecisionKind",
    "MatchResult",
    "RuleDecision",
    "evaluate_rules",
    "match_rules",
    "rule_in_window",
    "rule_matches_matter",
    "specificity",
    # Due dates
    "add_offset",
    "compute_due_date",
    "end_of_month",
    "next_occurrence",
    "resolve_base_date",
    # Generation
    "GenerationResult",
    "TaskGenerator",
    # Annuities
    "annuity_schedule",
    "expired_matters",
]
