"""Exception types raised by renewal evaluation and workflow actions."""


class RenewalError(Exception):
    """Base class for errors reported per task or per rule."""


class ConfigurationError(RenewalError, ValueError):
    """A rule cannot produce a due date as configured (e.g. no offset)."""

    def __init__(self, message: str, rule_id=None):
        super().__init__(message)
        self.rule_id = rule_id


class InvalidTransitionError(RenewalError, ValueError):
    """A workflow transition is not allowed from the task's current state."""

    def __init__(self, message: str, task_id=None, from_step=None, to_step=None):
        super().__init__(message)
        self.task_id = task_id
        self.from_step = from_step
        self.to_step = to_step


class TaskNotFoundError(RenewalError, KeyError):
    """A selected task id does not exist in the store."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "task not found"
