"""
Core data model re-export facade.

Import from this module rather than from core_types directly.
"""

from ipren.core.core_types import (
    # Enums
    Step,
    InvoiceStep,
    TERMINAL_STEPS,
    # Records
    Event,
    Matter,
    Rule,
    RULE_CLASSIFICATION_FIELDS,
    Task,
    Country,
)

__all__ = [
    "Step",
    "InvoiceStep",
    "TERMINAL_STEPS",
    "Event",
    "Matter",
    "Rule",
    "RULE_CLASSIFICATION_FIELDS",
    "Task",
    "Country",
]
