"""
ipren: rule-driven renewal task generation for IP matters.

Computes the tasks (renewals and other deadlines) a matter's recorded
events give rise to, and tracks renewal tasks through the administrative
and invoicing workflow.
"""

from ipren.config import RenewalConfig
from ipren.core import Country, Event, InvoiceStep, Matter, Rule, Step, Task
from ipren.errors import ConfigurationError, InvalidTransitionError, RenewalError
from ipren.rules import TaskGenerator, compute_due_date, next_occurrence
from ipren.store import RenewalStore
from ipren.workflow import RenewalWorkflow, WorkflowStateMachine

__version__ = "0.1.0"

__all__ = [
    "RenewalConfig",
    "Country",
    "Event",
    "InvoiceStep",
    "Matter",
    "Rule",
    "Step",
    "Task",
    "ConfigurationError",
    "InvalidTransitionError",
    "RenewalError",
    "TaskGenerator",
    "compute_due_date",
    "next_occurrence",
    "RenewalStore",
    "RenewalWorkflow",
    "WorkflowStateMachine",
]
