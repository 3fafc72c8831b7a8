"""
Renewal workflow for ipren.

Provides the step/invoice state machine, bulk workflow actions, the
transition log, fee calculation and renewal listings.
"""

from .states import WorkflowStateMachine
from .log import RenewalLog, TransitionLog
from .fees import FeeCalculator, FeeRow, apply_discount
from .listing import export_ready, filter_renewals, tasks_frame
from .service import BatchResult, RenewalWorkflow

__all__ = [
    "WorkflowStateMachine",
    "RenewalLog",
    "TransitionLog",
    "FeeCalculator",
    "FeeRow",
    "apply_discount",
    "export_ready",
    "filter_renewals",
    "tasks_frame",
    "BatchResult",
    "RenewalWorkflow",
]
