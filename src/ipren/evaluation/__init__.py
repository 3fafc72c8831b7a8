"""
Data-quality audits for rule reference data.
"""

from .rule_audits import (
    AuditResult,
    ambiguous_rule_gate,
    audits_to_frame,
    offset_configuration_gate,
    priority_basis_gate,
    run_rule_audits,
    specificity_report,
)

__all__ = [
    "AuditResult",
    "ambiguous_rule_gate",
    "audits_to_frame",
    "offset_configuration_gate",
    "priority_basis_gate",
    "run_rule_audits",
    "specificity_report",
]
