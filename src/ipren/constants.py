"""
Shared constants across ipren modules.

This module is the single source of truth for:
- Event codes recorded on matters
- Workflow step and invoice step values
- Derived sets (priority events, terminating events)
"""

# =============================================================================
# EVENT CODES
# =============================================================================
# Lifecycle milestones recorded against a matter

EVENT_FILING = "FIL"
EVENT_PCT_FILING = "PFIL"
EVENT_PUBLICATION = "PUB"
EVENT_GRANT = "GRT"
EVENT_REGISTRATION = "REG"
EVENT_PRIORITY = "PRI"
EVENT_PRIORITY_CLAIM = "PR"
EVENT_ENTRY = "ENT"
EVENT_ALLOWANCE = "ALL"
EVENT_ABANDONED = "ABA"
EVENT_LAPSED = "LAP"
EVENT_EXPIRED = "EXP"

# Task codes
TASK_RENEWAL = "REN"


# =============================================================================
# WORKFLOW STEPS
# =============================================================================

STEP_NEW = 0
STEP_REMINDED = 2
STEP_PAYMENT_ORDERED = 4
STEP_RECEIPTS = 6
STEP_RECEIPTS_SENT = 8
STEP_CLOSED = 10
STEP_ABANDONED = 12
STEP_LAPSED = 14

INVOICE_NONE = 0
INVOICE_TO_INVOICE = 1
INVOICE_INVOICED = 2
INVOICE_PAID = 3


# =============================================================================
# DERIVED SETS
# =============================================================================

# Events whose date can serve as the priority basis, in order of preference
PRIORITY_EVENTS = (EVENT_PRIORITY, EVENT_PRIORITY_CLAIM)

# Events that end a renewal chain
TERMINATING_EVENTS = (EVENT_ABANDONED, EVENT_LAPSED)

# Origin that gets the extended grace window for past annuities
ORIGIN_PCT = "WO"

# Last annuity year generated by country schedules
MAX_ANNUITY_YEAR = 20
