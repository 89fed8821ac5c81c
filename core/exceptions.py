"""
Intake Review – Workflow Exceptions
====================================
Raised by the submission / review / roster / payout pipelines. The risk flag
engine itself never raises.
"""


class WorkflowError(Exception):
    """Base class for recoverable workflow failures."""


class NotFoundError(WorkflowError, LookupError):
    """Referenced assessment, reviewer or payout cycle does not exist."""


class InvalidRequestError(WorkflowError, ValueError):
    """Caller supplied missing or malformed arguments."""


class InvalidStateError(WorkflowError, ValueError):
    """The entity is not in a state that allows the requested transition."""


class PermissionDeniedError(WorkflowError):
    """The acting reviewer lacks the role or standing for the operation."""
